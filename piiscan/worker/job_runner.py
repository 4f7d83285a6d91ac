from piiscan.config.settings import Settings
from piiscan.detection.exceptions import DetectionError
from piiscan.logging.logger import Log
from piiscan.queue.base import JobQueue
from piiscan.queue.models import QueuedJob
from piiscan.worker.handlers import JobHandler


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        handlers: list[JobHandler],
        job_queue: JobQueue,
        settings: Settings,
    ) -> None:
        self._handlers = {handler.queue: handler for handler in handlers}
        self._job_queue = job_queue
        self._settings = settings

    def run(self, job: QueuedJob) -> None:
        """Execute a single job with error handling."""
        handler = self._handlers[job.queue]
        if job.attempts >= self._settings.max_job_attempts:
            # Reclaimed after its lease expired on the last attempt.
            self._fail_terminally(job, handler, RuntimeError("job lease expired"))
            return

        Log.info(f"Running {job.queue} job {job.id} (attempt {job.attempts + 1})")
        try:
            handler.handle(job.payload)
            self._job_queue.complete(job.id)
            Log.info(f"Job {job.id} completed successfully")
        except Exception as exc:
            self._handle_failure(job, handler, exc)

    def retry_delay(self, attempts: int) -> float:
        """Exponential backoff: base * 2**attempts."""
        return self._settings.file_retry_base_seconds * (2**attempts)

    def _handle_failure(self, job: QueuedJob, handler: JobHandler, exc: Exception) -> None:
        """Retry with backoff while allowed, otherwise fail terminally."""
        if isinstance(exc, DetectionError):
            Log.exception(f"Job {job.id} failed: {exc}")
        else:
            Log.error(f"Job {job.id} failed: {exc}")

        if handler.is_retryable(exc) and job.attempts + 1 < self._settings.max_job_attempts:
            delay = self.retry_delay(job.attempts)
            self._job_queue.retry(job.id, delay, str(exc))
            Log.warning(f"Job {job.id} will be retried in {delay:.1f}s (attempt {job.attempts + 2})")
            return
        self._fail_terminally(job, handler, exc)

    def _fail_terminally(self, job: QueuedJob, handler: JobHandler, exc: Exception) -> None:
        self._job_queue.fail(job.id, str(exc))
        Log.error(f"Job {job.id} permanently failed after {job.attempts + 1} attempts")
        try:
            handler.on_terminal_failure(job.payload, exc)
        except Exception as hook_exc:
            Log.exception(f"Terminal failure handling for job {job.id} failed: {hook_exc}")
