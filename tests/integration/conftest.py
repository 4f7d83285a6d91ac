import os
import uuid
from collections.abc import Generator

import pytest

from piiscan.config.settings import Settings
from piiscan.database.connection import Database
from piiscan.processor.models import ArchiveSubmission


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "piiscan_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def database(test_settings: Settings) -> Generator[Database, None, None]:
    db = Database(test_settings, max_size=4)
    try:
        db.open()
        db.apply_schema()
    except Exception as e:
        db.close()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def integration_cleanup(database: Database) -> Generator[list[tuple[str, str | int]], None, None]:
    cleanup: list[tuple[str, str | int]] = []
    yield cleanup
    if not cleanup:
        return
    with database.connection() as conn:
        with conn.cursor() as cur:
            for table, key in cleanup:
                if table == "scan_jobs":
                    cur.execute("DELETE FROM scan_jobs WHERE id = %s", (key,))
            for table, key in cleanup:
                if table == "scan_sessions":
                    cur.execute("DELETE FROM scan_sessions WHERE session_id = %s", (key,))
        conn.commit()


@pytest.fixture
def unique_queue() -> str:
    """A queue name no other test run uses, so claims only see this test's jobs."""
    return f"test-{uuid.uuid4().hex}"


@pytest.fixture
def seed_submission(integration_cleanup: list[tuple[str, str | int]]) -> ArchiveSubmission:
    session_id = str(uuid.uuid4())
    integration_cleanup.append(("scan_sessions", session_id))
    return ArchiveSubmission(
        session_id=session_id,
        storage_path=f"/uploads/{session_id}.zip",
        original_name="clientes.zip",
        mime_type="application/zip",
        size_bytes=2048,
    )
