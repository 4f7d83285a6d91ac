from abc import ABC, abstractmethod
from typing import Any

from piiscan.queue.models import QueuedJob

ARCHIVE_QUEUE = "archive"
FILE_QUEUE = "file"


class JobQueue(ABC):
    """Contract for durable, at-least-once job queues."""

    @abstractmethod
    def enqueue(self, queue: str, payload: dict[str, Any], delay_seconds: float = 0.0) -> int:
        """Add a job and return its id."""

    @abstractmethod
    def claim(self, queue: str) -> QueuedJob | None:
        """Claim the next available job on *queue*, or None if there is none.

        Jobs whose lease expired while processing are claimable again.
        """

    @abstractmethod
    def complete(self, job_id: int) -> None: ...

    @abstractmethod
    def retry(self, job_id: int, delay_seconds: float, error: str) -> None:
        """Increment attempts and make the job available after *delay_seconds*."""

    @abstractmethod
    def fail(self, job_id: int, error: str) -> None:
        """Mark a job as permanently failed."""
