from piiscan.config.settings import Settings
from piiscan.database.connection import Database
from piiscan.queue.base import JobQueue
from piiscan.queue.memory import InMemoryJobQueue
from piiscan.queue.postgres import PostgresJobQueue


class JobQueueFactory:
    """Creates the job queue selected by settings.queue_backend."""

    @classmethod
    def create(cls, settings: Settings, database: Database | None = None) -> JobQueue:
        backend = settings.queue_backend.lower()
        if backend == "memory":
            return InMemoryJobQueue(
                max_attempts=settings.max_job_attempts,
                lease_seconds=settings.job_lease_seconds,
            )
        if backend == "postgres":
            if database is None:
                raise ValueError("queue_backend=postgres requires a Database")
            return PostgresJobQueue(
                database,
                max_attempts=settings.max_job_attempts,
                lease_seconds=settings.job_lease_seconds,
            )
        raise ValueError(f"Unknown queue backend '{backend}'. Choose from: ['memory', 'postgres']")
