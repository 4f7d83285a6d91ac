import threading
from abc import ABC, abstractmethod

import psycopg
from psycopg.types.json import Jsonb

from piiscan.database.connection import Database
from piiscan.events.models import SessionCompleted
from piiscan.processor.exceptions import InfrastructureError
from piiscan.processor.models import FileProcessingResult, SessionVerdict
from piiscan.sessions.serialization import verdict_to_dict


class BasePersistence(ABC):
    """Contract for storing a completed session's findings."""

    @abstractmethod
    def persist(self, verdict: SessionVerdict, results: list[FileProcessingResult]) -> None:
        """Store the verdict and every detection. Repeated calls replace earlier rows."""

    def __call__(self, event: SessionCompleted) -> None:
        self.persist(event.verdict, event.results)


class InMemoryPersistence(BasePersistence):
    def __init__(self) -> None:
        self.verdicts: dict[str, SessionVerdict] = {}
        self.results: dict[str, list[FileProcessingResult]] = {}
        self._lock = threading.Lock()

    def persist(self, verdict: SessionVerdict, results: list[FileProcessingResult]) -> None:
        with self._lock:
            self.verdicts[verdict.session_id] = verdict
            self.results[verdict.session_id] = list(results)


class PostgresPersistence(BasePersistence):
    """Writes scan_detections rows and the session verdict in one transaction."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def persist(self, verdict: SessionVerdict, results: list[FileProcessingResult]) -> None:
        rows = [
            (
                verdict.session_id,
                item.detection.filename,
                item.detection.subject,
                item.detection.document_type.value,
                item.detection.value,
                item.detection.position,
                item.detection.context,
                item.detection.risk_level.value,
                item.assessment.risk_level.value,
                item.assessment.is_valid,
                item.assessment.confidence,
                item.assessment.sensitivity_score,
                item.assessment.reasoning,
                item.assessment.contextual_risk,
                Jsonb(item.assessment.recommendations),
            )
            for result in results
            for item in result.detections
        ]
        try:
            with self._database.connection() as conn:
                conn.execute(
                    "DELETE FROM scan_detections WHERE session_id = %s",
                    (verdict.session_id,),
                )
                with conn.cursor() as cur:
                    cur.executemany(
                        """
                        INSERT INTO scan_detections
                            (session_id, filename, subject, document_type, value,
                             position, context, baseline_risk, risk_level, is_valid,
                             confidence, sensitivity_score, reasoning, contextual_risk,
                             recommendations)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        rows,
                    )
                conn.execute(
                    """
                    UPDATE scan_sessions
                    SET verdict = %s, updated_at = NOW()
                    WHERE session_id = %s
                    """,
                    (Jsonb(verdict_to_dict(verdict)), verdict.session_id),
                )
                conn.commit()
        except psycopg.Error as exc:
            raise InfrastructureError(
                f"Failed to persist session {verdict.session_id}: {exc}"
            ) from exc
