import threading

from piiscan.processor.models import ArchiveSubmission, FileProcessingResult, SessionVerdict
from piiscan.sessions.base import SessionStore
from piiscan.sessions.models import COLLECTING_STATES, SessionRecord, SessionState
from piiscan.sessions.serialization import verdict_to_dict


class InMemorySessionStore(SessionStore):
    """Session store for a single process; one lock guards all sessions."""

    def __init__(self) -> None:
        self._records: dict[str, SessionRecord] = {}
        self._results: dict[str, dict[int, FileProcessingResult]] = {}
        self._lock = threading.Lock()

    def create(self, submission: ArchiveSubmission) -> SessionRecord:
        with self._lock:
            if submission.session_id in self._records:
                raise ValueError(f"Session {submission.session_id} already exists")
            record = SessionRecord(
                session_id=submission.session_id,
                original_name=submission.original_name,
                state=SessionState.RECEIVED,
            )
            self._records[submission.session_id] = record
            self._results[submission.session_id] = {}
            return self._copy(record)

    def get(self, session_id: str) -> SessionRecord | None:
        with self._lock:
            record = self._records.get(session_id)
            return self._copy(record) if record is not None else None

    def set_state(self, session_id: str, state: SessionState) -> bool:
        with self._lock:
            record = self._records[session_id]
            if not record.state.can_advance_to(state):
                return False
            record.state = state
            return True

    def set_total_files(self, session_id: str, total_files: int) -> None:
        with self._lock:
            self._records[session_id].total_files = total_files

    def record_file_result(self, result: FileProcessingResult) -> bool:
        with self._lock:
            record = self._records.get(result.session_id)
            if record is None or record.state.is_terminal:
                return False
            results = self._results[result.session_id]
            if result.entry_index in results:
                return False
            results[result.entry_index] = result
            record.resolved_files = len(results)
            if (
                record.total_files is not None
                and record.resolved_files >= record.total_files
                and record.state in COLLECTING_STATES
            ):
                record.state = SessionState.AGGREGATING
                return True
            return False

    def file_results(self, session_id: str) -> list[FileProcessingResult]:
        with self._lock:
            results = self._results.get(session_id, {})
            return [results[index] for index in sorted(results)]

    def complete(self, session_id: str, verdict: SessionVerdict) -> None:
        with self._lock:
            record = self._records[session_id]
            if record.state.is_terminal:
                return
            record.state = SessionState.COMPLETED
            record.verdict = verdict_to_dict(verdict)

    def fail(self, session_id: str, stage: str, message: str) -> None:
        with self._lock:
            record = self._records[session_id]
            if record.state.is_terminal:
                return
            record.state = SessionState.FAILED
            record.failed_stage = stage
            record.error_message = message

    def cancel(self, session_id: str) -> bool:
        with self._lock:
            record = self._records.get(session_id)
            if record is None or record.state.is_terminal:
                return False
            record.state = SessionState.CANCELLED
            return True

    @staticmethod
    def _copy(record: SessionRecord) -> SessionRecord:
        return SessionRecord(**vars(record))
