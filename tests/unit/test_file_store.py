from datetime import datetime
from pathlib import Path

import pytest

from regforms.documents.file_store import FileStore, document_file_name

NOW = datetime(2026, 10, 19, 14, 30)


class TestDocumentFileName:
    def test_builds_name_from_reference_and_language(self) -> None:
        assert document_file_name("REG-20261019-00001", "ar") == "REG-20261019-00001_ar.docx"


class TestWrite:
    def test_writes_under_date_partition(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)

        relative = store.write("REG-20261019-00001", "fr", b"content", NOW)

        assert relative == "2026/10/19/REG-20261019-00001_fr.docx"
        assert (tmp_path / relative).read_bytes() == b"content"

    def test_zero_pads_month_and_day(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        relative = store.write("R", "fr", b"x", datetime(2026, 1, 5))
        assert relative.startswith("2026/01/05/")

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        store.write("R", "fr", b"old", NOW)
        relative = store.write("R", "fr", b"new", NOW)
        assert (tmp_path / relative).read_bytes() == b"new"

    def test_creates_missing_root(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path / "generated")
        relative = store.write("R", "ar", b"x", NOW)
        assert store.exists(relative)


class TestResolve:
    def test_resolves_inside_root(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        assert store.resolve("2026/10/19/R_fr.docx") == (tmp_path / "2026/10/19/R_fr.docx").resolve()

    def test_rejects_path_outside_root(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path / "generated")
        with pytest.raises(ValueError, match="escapes"):
            store.resolve("../secrets.txt")


class TestDelete:
    def test_removes_existing_file(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        relative = store.write("R", "fr", b"x", NOW)

        assert store.delete(relative) is True
        assert not store.exists(relative)

    def test_missing_file_is_not_an_error(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        assert store.delete("2026/10/19/absent_fr.docx") is False

    @pytest.mark.parametrize("relative", [None, ""])
    def test_empty_path_is_ignored(self, tmp_path: Path, relative: str | None) -> None:
        assert FileStore(tmp_path).delete(relative) is False

    def test_escaping_path_is_refused(self, tmp_path: Path) -> None:
        root = tmp_path / "generated"
        outside = tmp_path / "keep.txt"
        outside.write_text("x")

        assert FileStore(root).delete("../keep.txt") is False
        assert outside.exists()


class TestFind:
    def test_finds_document_in_any_partition(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        store.write("R", "ar", b"x", datetime(2025, 3, 2))

        found = store.find("R", "ar")

        assert found == tmp_path / "2025" / "03" / "02" / "R_ar.docx"

    def test_returns_none_when_absent(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        store.write("R", "fr", b"x", NOW)
        assert store.find("R", "ar") is None

    def test_returns_none_without_root(self, tmp_path: Path) -> None:
        assert FileStore(tmp_path / "missing").find("R", "fr") is None
