import itertools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from piiscan.queue.base import JobQueue
from piiscan.queue.models import QueuedJob


@dataclass
class _Entry:
    id: int
    queue: str
    payload: dict[str, Any]
    status: str = "pending"
    attempts: int = 0
    available_at: float = 0.0
    locked_at: float | None = None
    error_message: str | None = None


class InMemoryJobQueue(JobQueue):
    """Thread-safe in-process queue with the same claim semantics as the table."""

    def __init__(
        self,
        max_attempts: int,
        lease_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_attempts = max_attempts
        self._lease_seconds = lease_seconds
        self._clock = clock
        self._entries: dict[int, _Entry] = {}
        # Finished jobs keep only their status; payloads are released.
        self._finished: dict[int, str] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def enqueue(self, queue: str, payload: dict[str, Any], delay_seconds: float = 0.0) -> int:
        with self._lock:
            job_id = next(self._ids)
            self._entries[job_id] = _Entry(
                id=job_id,
                queue=queue,
                payload=payload,
                available_at=self._clock() + delay_seconds,
            )
            return job_id

    def claim(self, queue: str) -> QueuedJob | None:
        with self._lock:
            now = self._clock()
            for entry in self._entries.values():
                if entry.queue != queue:
                    continue
                if (
                    entry.status == "pending"
                    and entry.available_at <= now
                    and entry.attempts < self._max_attempts
                ):
                    break
                # Reclaimed even on the last attempt so the runner can fail it.
                if entry.status == "processing" and self._lease_expired(entry, now):
                    entry.attempts += 1
                    break
            else:
                return None
            entry.status = "processing"
            entry.locked_at = now
            return QueuedJob(
                id=entry.id,
                queue=entry.queue,
                payload=entry.payload,
                attempts=entry.attempts,
            )

    def complete(self, job_id: int) -> None:
        with self._lock:
            if self._entries.pop(job_id, None) is not None:
                self._finished[job_id] = "done"

    def retry(self, job_id: int, delay_seconds: float, error: str) -> None:
        with self._lock:
            entry = self._entries.get(job_id)
            if entry is None:
                return
            entry.attempts += 1
            entry.status = "pending"
            entry.locked_at = None
            entry.error_message = error
            entry.available_at = self._clock() + delay_seconds

    def fail(self, job_id: int, error: str) -> None:
        with self._lock:
            if self._entries.pop(job_id, None) is not None:
                self._finished[job_id] = "failed"

    def status_of(self, job_id: int) -> str:
        with self._lock:
            if job_id in self._finished:
                return self._finished[job_id]
            return self._entries[job_id].status

    def pending_count(self, queue: str) -> int:
        """Jobs on *queue* that are not done or failed. Useful for tests."""
        with self._lock:
            return sum(
                1
                for entry in self._entries.values()
                if entry.queue == queue and entry.status in ("pending", "processing")
            )

    def _lease_expired(self, entry: _Entry, now: float) -> bool:
        return entry.locked_at is not None and now - entry.locked_at >= self._lease_seconds
