from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from piiscan.database.connection import Database
from piiscan.processor.exceptions import InfrastructureError
from piiscan.queue.base import JobQueue
from piiscan.queue.models import QueuedJob


class PostgresJobQueue(JobQueue):
    """Job queue backed by the scan_jobs table."""

    def __init__(self, database: Database, max_attempts: int, lease_seconds: int) -> None:
        self._database = database
        self._max_attempts = max_attempts
        self._lease_seconds = lease_seconds

    def enqueue(self, queue: str, payload: dict[str, Any], delay_seconds: float = 0.0) -> int:
        try:
            with self._database.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        INSERT INTO scan_jobs (queue, payload, available_at)
                        VALUES (%s, %s, NOW() + make_interval(secs => %s))
                        RETURNING id
                        """,
                        (queue, Jsonb(payload), delay_seconds),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise InfrastructureError(f"Failed to enqueue {queue} job: {exc}") from exc
        if row is None:
            raise InfrastructureError(f"Failed to enqueue {queue} job: no id returned")
        return int(row["id"])

    def claim(self, queue: str) -> QueuedJob | None:
        """Claim the next job using SELECT FOR UPDATE SKIP LOCKED.

        A processing job whose lease expired is claimed again with its
        attempt count incremented, even on its last attempt.
        """
        try:
            with self._database.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT id, queue, payload, status, attempts
                        FROM scan_jobs
                        WHERE queue = %s
                          AND (
                            (status = 'pending' AND available_at <= NOW() AND attempts < %s)
                            OR (status = 'processing'
                                AND locked_at < NOW() - make_interval(secs => %s))
                          )
                        ORDER BY available_at, id
                        LIMIT 1
                        FOR UPDATE SKIP LOCKED
                        """,
                        (queue, self._max_attempts, self._lease_seconds),
                    )
                    row = cur.fetchone()

                if row is None:
                    conn.commit()
                    return None

                attempts = row["attempts"] + (1 if row["status"] == "processing" else 0)
                conn.execute(
                    """
                    UPDATE scan_jobs
                    SET status = 'processing', attempts = %s,
                        locked_at = NOW(), updated_at = NOW()
                    WHERE id = %s
                    """,
                    (attempts, row["id"]),
                )
                conn.commit()
        except psycopg.Error as exc:
            raise InfrastructureError(f"Failed to claim {queue} job: {exc}") from exc

        return QueuedJob(
            id=row["id"],
            queue=row["queue"],
            payload=row["payload"],
            attempts=attempts,
        )

    def complete(self, job_id: int) -> None:
        self._execute(
            """
            UPDATE scan_jobs
            SET status = 'done', locked_at = NULL, updated_at = NOW()
            WHERE id = %s
            """,
            (job_id,),
        )

    def retry(self, job_id: int, delay_seconds: float, error: str) -> None:
        self._execute(
            """
            UPDATE scan_jobs
            SET attempts = attempts + 1, status = 'pending', locked_at = NULL,
                error_message = %s,
                available_at = NOW() + make_interval(secs => %s),
                updated_at = NOW()
            WHERE id = %s
            """,
            (error, delay_seconds, job_id),
        )

    def fail(self, job_id: int, error: str) -> None:
        self._execute(
            """
            UPDATE scan_jobs
            SET status = 'failed', locked_at = NULL, error_message = %s, updated_at = NOW()
            WHERE id = %s
            """,
            (error, job_id),
        )

    def find_status(self, job_id: int) -> tuple[str, int] | None:
        """Return (status, attempts) for a job. Useful for tests."""
        with self._database.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT status, attempts FROM scan_jobs WHERE id = %s", (job_id,))
                row = cur.fetchone()
        if row is None:
            return None
        return row["status"], row["attempts"]

    def _execute(self, sql: str, params: tuple[Any, ...]) -> None:
        try:
            with self._database.connection() as conn:
                conn.execute(sql, params)
                conn.commit()
        except psycopg.Error as exc:
            raise InfrastructureError(f"Job queue update failed: {exc}") from exc
