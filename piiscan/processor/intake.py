from dataclasses import asdict

from piiscan.logging.logger import Log
from piiscan.processor.exceptions import SubmissionValidationError
from piiscan.processor.models import ArchiveSubmission
from piiscan.queue.base import ARCHIVE_QUEUE, JobQueue
from piiscan.sessions.base import SessionStore
from piiscan.sessions.models import SessionRecord

ZIP_MIME_TYPES = frozenset({"application/zip", "application/x-zip-compressed"})


class ArchiveIntake:
    """Accepts upload records, opens a session and queues the archive job."""

    def __init__(
        self,
        session_store: SessionStore,
        job_queue: JobQueue,
        max_archive_size: int,
    ) -> None:
        self._session_store = session_store
        self._job_queue = job_queue
        self._max_archive_size = max_archive_size

    def submit(self, submission: ArchiveSubmission) -> SessionRecord:
        """Validate the upload record and schedule its processing.

        Raises:
            SubmissionValidationError: if the record cannot be an acceptable ZIP.
        """
        self._validate(submission)
        record = self._session_store.create(submission)
        self._job_queue.enqueue(ARCHIVE_QUEUE, asdict(submission))
        Log.info(
            f"Session {submission.session_id} created for {submission.original_name} "
            f"({submission.size_bytes} bytes)"
        )
        return record

    def _validate(self, submission: ArchiveSubmission) -> None:
        if not submission.session_id.strip():
            raise SubmissionValidationError("Session id is required")
        if not submission.original_name.strip():
            raise SubmissionValidationError("Archive name is required")
        is_zip = (
            submission.mime_type.lower() in ZIP_MIME_TYPES
            or submission.original_name.lower().endswith(".zip")
        )
        if not is_zip:
            raise SubmissionValidationError("Only ZIP files are allowed")
        if submission.size_bytes <= 0:
            raise SubmissionValidationError("Archive is empty")
        if submission.size_bytes > self._max_archive_size:
            raise SubmissionValidationError(
                f"Archive too large: {submission.size_bytes} bytes "
                f"(max {self._max_archive_size})"
            )
