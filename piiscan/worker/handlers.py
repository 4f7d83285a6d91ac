from abc import ABC, abstractmethod
from typing import Any

from piiscan.detection.exceptions import DetectionError
from piiscan.logging.logger import Log
from piiscan.processor.file_processor import FileProcessor
from piiscan.processor.models import ArchiveSubmission, FileJobPayload
from piiscan.processor.processor import ArchiveProcessor
from piiscan.queue.base import ARCHIVE_QUEUE, FILE_QUEUE
from piiscan.sessions.base import SessionStore


class JobHandler(ABC):
    """Executes the jobs of one queue and decides their retry policy."""

    queue: str

    @abstractmethod
    def handle(self, payload: dict[str, Any]) -> None: ...

    def is_retryable(self, exc: Exception) -> bool:
        return True

    def on_terminal_failure(self, payload: dict[str, Any], exc: Exception) -> None:
        """Called once a job will not be attempted again."""


class ArchiveJobHandler(JobHandler):
    queue = ARCHIVE_QUEUE

    def __init__(self, processor: ArchiveProcessor, session_store: SessionStore) -> None:
        self._processor = processor
        self._session_store = session_store

    def handle(self, payload: dict[str, Any]) -> None:
        self._processor.process(ArchiveSubmission(**payload))

    def is_retryable(self, exc: Exception) -> bool:
        return False

    def on_terminal_failure(self, payload: dict[str, Any], exc: Exception) -> None:
        session_id = payload.get("session_id", "")
        try:
            self._session_store.fail(
                session_id, "validating", "Internal error while processing the archive"
            )
        except Exception as store_exc:
            Log.error(f"Could not mark session {session_id} failed: {store_exc}")


class FileJobHandler(JobHandler):
    queue = FILE_QUEUE

    def __init__(self, processor: FileProcessor) -> None:
        self._processor = processor

    def handle(self, payload: dict[str, Any]) -> None:
        self._processor.process(FileJobPayload(**payload))

    def is_retryable(self, exc: Exception) -> bool:
        return not isinstance(exc, DetectionError)

    def on_terminal_failure(self, payload: dict[str, Any], exc: Exception) -> None:
        self._processor.record_failure(FileJobPayload(**payload), exc)
