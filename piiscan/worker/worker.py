import threading

from piiscan.config.settings import Settings
from piiscan.logging.logger import Log
from piiscan.queue.base import JobQueue
from piiscan.queue.models import QueuedJob
from piiscan.worker.job_runner import JobRunner


class Worker:
    """Poll loop for one queue: claim -> dispatch -> sleep when idle."""

    def __init__(
        self,
        queue_name: str,
        job_queue: JobQueue,
        job_runner: JobRunner,
        settings: Settings,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._queue_name = queue_name
        self._job_queue = job_queue
        self._job_runner = job_runner
        self._settings = settings
        self._stop_event = stop_event or threading.Event()

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs until the stop event is set or interrupted.

        If max_jobs is set, stop after processing that many jobs (for testing).
        """
        Log.info(f"Worker started, polling {self._queue_name} jobs")
        jobs_done = 0
        try:
            while not self._stop_event.is_set():
                if max_jobs is not None and jobs_done >= max_jobs:
                    break
                job = self._try_claim_job()
                if job:
                    self._run_job(job)
                    jobs_done += 1
                else:
                    Log.debug(f"No {self._queue_name} jobs available, sleeping")
                    self._stop_event.wait(self._settings.job_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        Log.info(f"Worker for {self._queue_name} stopped after {jobs_done} jobs")

    def _try_claim_job(self) -> QueuedJob | None:
        """Attempt to claim the next job. Gracefully handle queue errors."""
        try:
            return self._job_queue.claim(self._queue_name)
        except Exception as exc:
            Log.warning(f"Queue error, will retry: {exc}")
            return None

    def _run_job(self, job: QueuedJob) -> None:
        try:
            self._job_runner.run(job)
        except Exception as exc:
            # The job's lease expires and it is claimed again.
            Log.exception(f"Job {job.id} could not be settled: {exc}")
