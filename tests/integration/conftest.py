import os
import random
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from regforms.config.settings import Settings
from regforms.database.connection import Database
from regforms.database.repositories.document_repository import DocumentRepository
from regforms.directory.dolibarr_client import DolibarrClient
from regforms.documents.file_store import FileStore
from regforms.documents.reference import ReferenceGenerator
from regforms.documents.workflow import DocumentWorkflow
from regforms.templating.renderer import TemplateRenderer

TEST_REFERENCE_PREFIX = "ITEST"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "registration_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def database(test_settings: Settings) -> Generator[Database, None, None]:
    try:
        db = Database(test_settings)
    except Exception as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run integration tests")
    health = db.check_health()
    if not health.healthy:
        db.close()
        pytest.skip(f"PostgreSQL test DB not available: {health.error}")
    db.initialize_schema()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def integration_cleanup(database: Database) -> Generator[list[tuple[str, object]], None, None]:
    """Collect (table, key) pairs created by a test and delete them afterwards."""
    cleanup: list[tuple[str, object]] = []
    yield cleanup
    with database.connection() as conn:
        with conn.cursor() as cur:
            for table, key in cleanup:
                if table == "documents":
                    cur.execute("DELETE FROM documents WHERE reference = %s", (key,))
                elif table == "cpe_models":
                    cur.execute("DELETE FROM cpe_models WHERE name = %s", (key,))
                elif table == "internet_offers":
                    cur.execute("DELETE FROM internet_offers WHERE name = %s", (key,))
            cur.execute(
                "DELETE FROM documents WHERE reference LIKE %s", (f"{TEST_REFERENCE_PREFIX}-%",)
            )
        conn.commit()


@pytest.fixture
def doc_repo(database: Database) -> DocumentRepository:
    return DocumentRepository(database)


@pytest.fixture
def disabled_directory() -> Generator[DolibarrClient, None, None]:
    client = DolibarrClient(enabled=False, base_url="http://erp.invalid/api/index.php", api_key="")
    yield client
    client.close()


@pytest.fixture
def integration_workflow(
    renderer: TemplateRenderer,
    tmp_path: Path,
    doc_repo: DocumentRepository,
    disabled_directory: DolibarrClient,
    integration_cleanup: list[tuple[str, object]],
) -> DocumentWorkflow:
    return DocumentWorkflow(
        renderer=renderer,
        file_store=FileStore(tmp_path / "generated"),
        doc_repo=doc_repo,
        directory=disabled_directory,
        reference_generator=ReferenceGenerator(TEST_REFERENCE_PREFIX, rng=random.Random()),
    )


@pytest.fixture
def mock_directory() -> MagicMock:
    directory = MagicMock(spec=DolibarrClient)
    directory.create_record.return_value = None
    directory.search_by_national_id.return_value = None
    directory.search_by_tax_id.return_value = None
    return directory
