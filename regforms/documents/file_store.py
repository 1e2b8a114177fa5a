from datetime import datetime
from pathlib import Path

from regforms.logging.logger import Log

DOCUMENT_EXTENSION = ".docx"


def document_file_name(reference: str, language: str) -> str:
    """Build file name: {reference}_{language}.docx"""
    return f"{reference}_{language}{DOCUMENT_EXTENSION}"


class FileStore:
    """Date-partitioned storage for generated documents.

    Layout: {root}/{YYYY}/{MM}/{DD}/{reference}_{lang}.docx. Paths handed to
    callers are relative to the root.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def directory_for(self, timestamp: datetime) -> Path:
        return self._root / f"{timestamp:%Y}" / f"{timestamp:%m}" / f"{timestamp:%d}"

    def write(
        self, reference: str, language: str, content: bytes, timestamp: datetime
    ) -> str:
        """Write one document and return its path relative to the root."""
        directory = self.directory_for(timestamp)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / document_file_name(reference, language)
        path.write_bytes(content)
        return path.relative_to(self._root).as_posix()

    def resolve(self, relative_path: str) -> Path:
        """Resolve a stored path, refusing anything outside the root."""
        root = self._root.resolve()
        path = (root / relative_path).resolve()
        if not path.is_relative_to(root):
            raise ValueError(f"Path escapes storage root: {relative_path}")
        return path

    def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    def delete(self, relative_path: str | None) -> bool:
        """Best-effort removal. Returns False when nothing was deleted."""
        if not relative_path:
            return False
        try:
            path = self.resolve(relative_path)
            if not path.is_file():
                return False
            path.unlink()
        except (OSError, ValueError) as exc:
            Log.warning(f"Could not delete {relative_path}: {exc}")
            return False
        return True

    def find(self, reference: str, language: str) -> Path | None:
        """Search the date tree for a document when its stored path is unknown."""
        name = document_file_name(reference, language)
        if not self._root.is_dir():
            return None
        for path in sorted(self._root.glob(f"*/*/*/{name}")):
            if path.is_file():
                return path
        return None
