from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from piiscan.database.connection import Database
from piiscan.processor.exceptions import InfrastructureError
from piiscan.processor.models import ArchiveSubmission, FileProcessingResult, SessionVerdict
from piiscan.sessions.base import SessionStore
from piiscan.sessions.models import COLLECTING_STATES, SessionRecord, SessionState
from piiscan.sessions.serialization import result_from_dict, result_to_dict, verdict_to_dict


class PostgresSessionStore(SessionStore):
    """Database operations for the scan_sessions and scan_file_results tables."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def create(self, submission: ArchiveSubmission) -> SessionRecord:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO scan_sessions
                    (session_id, original_name, storage_path, mime_type, size_bytes, state)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    submission.session_id,
                    submission.original_name,
                    submission.storage_path,
                    submission.mime_type,
                    submission.size_bytes,
                    SessionState.RECEIVED.value,
                ),
            )
            conn.commit()
        return SessionRecord(
            session_id=submission.session_id,
            original_name=submission.original_name,
            state=SessionState.RECEIVED,
        )

    def get(self, session_id: str) -> SessionRecord | None:
        with self._connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT s.session_id, s.original_name, s.state, s.total_files,
                           s.failed_stage, s.error_message, s.verdict,
                           (SELECT COUNT(*) FROM scan_file_results r
                            WHERE r.session_id = s.session_id) AS resolved_files
                    FROM scan_sessions s
                    WHERE s.session_id = %s
                    """,
                    (session_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return SessionRecord(
            session_id=row["session_id"],
            original_name=row["original_name"],
            state=SessionState(row["state"]),
            total_files=row["total_files"],
            resolved_files=row["resolved_files"],
            failed_stage=row["failed_stage"],
            error_message=row["error_message"],
            verdict=row["verdict"],
        )

    def set_state(self, session_id: str, state: SessionState) -> bool:
        with self._connection() as conn:
            current = self._lock_state(conn, session_id)
            if current is None or not current.can_advance_to(state):
                conn.rollback()
                return False
            self._update_state(conn, session_id, state)
            conn.commit()
        return True

    def set_total_files(self, session_id: str, total_files: int) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE scan_sessions
                SET total_files = %s, updated_at = NOW()
                WHERE session_id = %s
                """,
                (total_files, session_id),
            )
            conn.commit()

    def record_file_result(self, result: FileProcessingResult) -> bool:
        """Insert one result while holding the session row lock."""
        with self._connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT state, total_files
                    FROM scan_sessions
                    WHERE session_id = %s
                    FOR UPDATE
                    """,
                    (result.session_id,),
                )
                row = cur.fetchone()
                if row is None or SessionState(row["state"]).is_terminal:
                    conn.rollback()
                    return False

                cur.execute(
                    """
                    INSERT INTO scan_file_results
                        (session_id, entry_index, filename, failed, result)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (session_id, entry_index) DO NOTHING
                    """,
                    (
                        result.session_id,
                        result.entry_index,
                        result.filename,
                        result.failed,
                        Jsonb(result_to_dict(result)),
                    ),
                )
                if cur.rowcount == 0:
                    conn.rollback()
                    return False

                cur.execute(
                    "SELECT COUNT(*) AS resolved FROM scan_file_results WHERE session_id = %s",
                    (result.session_id,),
                )
                counted = cur.fetchone()

            resolved = counted["resolved"] if counted is not None else 0
            total = row["total_files"]
            is_last = (
                total is not None
                and resolved >= total
                and SessionState(row["state"]) in COLLECTING_STATES
            )
            if is_last:
                self._update_state(conn, result.session_id, SessionState.AGGREGATING)
            conn.commit()
        return is_last

    def file_results(self, session_id: str) -> list[FileProcessingResult]:
        with self._connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT result
                    FROM scan_file_results
                    WHERE session_id = %s
                    ORDER BY entry_index
                    """,
                    (session_id,),
                )
                rows = cur.fetchall()
        return [result_from_dict(row["result"]) for row in rows]

    def complete(self, session_id: str, verdict: SessionVerdict) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE scan_sessions
                SET state = %s, verdict = %s, updated_at = NOW()
                WHERE session_id = %s
                  AND state NOT IN ('completed', 'failed', 'cancelled')
                """,
                (SessionState.COMPLETED.value, Jsonb(verdict_to_dict(verdict)), session_id),
            )
            conn.commit()

    def fail(self, session_id: str, stage: str, message: str) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE scan_sessions
                SET state = %s, failed_stage = %s, error_message = %s, updated_at = NOW()
                WHERE session_id = %s
                  AND state NOT IN ('completed', 'failed', 'cancelled')
                """,
                (SessionState.FAILED.value, stage, message, session_id),
            )
            conn.commit()

    def cancel(self, session_id: str) -> bool:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE scan_sessions
                    SET state = %s, updated_at = NOW()
                    WHERE session_id = %s
                      AND state NOT IN ('completed', 'failed', 'cancelled')
                    """,
                    (SessionState.CANCELLED.value, session_id),
                )
                cancelled = cur.rowcount > 0
            conn.commit()
        return cancelled

    @contextmanager
    def _connection(self) -> Generator[psycopg.Connection[Any], None, None]:
        try:
            with self._database.connection() as conn:
                yield conn
        except psycopg.Error as exc:
            raise InfrastructureError(f"Session store unavailable: {exc}") from exc

    @staticmethod
    def _lock_state(conn: psycopg.Connection[Any], session_id: str) -> SessionState | None:
        with conn.cursor() as cur:
            cur.execute(
                "SELECT state FROM scan_sessions WHERE session_id = %s FOR UPDATE",
                (session_id,),
            )
            row = cur.fetchone()
        return SessionState(row[0]) if row is not None else None

    @staticmethod
    def _update_state(
        conn: psycopg.Connection[Any], session_id: str, state: SessionState
    ) -> None:
        conn.execute(
            "UPDATE scan_sessions SET state = %s, updated_at = NOW() WHERE session_id = %s",
            (state.value, session_id),
        )
