import threading

from piiscan.config.settings import Settings
from piiscan.logging.logger import Log
from piiscan.queue.base import ARCHIVE_QUEUE, FILE_QUEUE, JobQueue
from piiscan.worker.job_runner import JobRunner
from piiscan.worker.worker import Worker


class WorkerPool:
    """One archive worker and file_worker_count file workers, each on a thread."""

    def __init__(self, job_queue: JobQueue, job_runner: JobRunner, settings: Settings) -> None:
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        plan = [(ARCHIVE_QUEUE, 1), (FILE_QUEUE, settings.file_worker_count)]
        for queue_name, count in plan:
            for index in range(count):
                worker = Worker(queue_name, job_queue, job_runner, settings, self._stop_event)
                self._threads.append(
                    threading.Thread(
                        target=worker.run,
                        name=f"{queue_name}-worker-{index + 1}",
                        daemon=True,
                    )
                )

    @property
    def size(self) -> int:
        return len(self._threads)

    def start(self) -> None:
        for thread in self._threads:
            thread.start()
        Log.info(f"Worker pool started with {self.size} workers")

    def stop(self, timeout: float | None = 30.0) -> None:
        """Signal every worker and wait for in-flight jobs to finish."""
        self._stop_event.set()
        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout)
        Log.info("Worker pool stopped")

    def wait(self) -> None:
        """Block until interrupted or stopped."""
        try:
            while not self._stop_event.wait(1.0):
                pass
        except KeyboardInterrupt:
            Log.info("Interrupt received, stopping workers")
