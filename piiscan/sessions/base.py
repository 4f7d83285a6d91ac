from abc import ABC, abstractmethod

from piiscan.processor.models import ArchiveSubmission, FileProcessingResult, SessionVerdict
from piiscan.sessions.models import SessionRecord, SessionState


class SessionStore(ABC):
    """Shared record of each session's state and its per-file results."""

    @abstractmethod
    def create(self, submission: ArchiveSubmission) -> SessionRecord: ...

    @abstractmethod
    def get(self, session_id: str) -> SessionRecord | None: ...

    @abstractmethod
    def set_state(self, session_id: str, state: SessionState) -> bool:
        """Move the session forward to *state*. Returns False if not allowed."""

    @abstractmethod
    def set_total_files(self, session_id: str, total_files: int) -> None: ...

    @abstractmethod
    def record_file_result(self, result: FileProcessingResult) -> bool:
        """Store one file's result.

        Returns True exactly once per session: for the call that stores the
        last expected result, which also moves the session to aggregating.
        Results for terminal sessions and duplicate entries are ignored.
        """

    @abstractmethod
    def file_results(self, session_id: str) -> list[FileProcessingResult]: ...

    @abstractmethod
    def complete(self, session_id: str, verdict: SessionVerdict) -> None: ...

    @abstractmethod
    def fail(self, session_id: str, stage: str, message: str) -> None: ...

    @abstractmethod
    def cancel(self, session_id: str) -> bool:
        """Cancel a non-terminal session. Returns False if it already ended."""

    def is_active(self, session_id: str) -> bool:
        record = self.get(session_id)
        return record is not None and not record.state.is_terminal
