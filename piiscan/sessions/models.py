from dataclasses import dataclass
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    FANNING_OUT = "fanning_out"
    AWAITING_FILE_RESULTS = "awaiting_file_results"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    def can_advance_to(self, target: "SessionState") -> bool:
        """Transitions only move forward; terminal states never change."""
        if self.is_terminal:
            return False
        if target.is_terminal:
            return True
        return _FLOW.index(target) > _FLOW.index(self)


_FLOW: list[SessionState] = [
    SessionState.RECEIVED,
    SessionState.VALIDATING,
    SessionState.EXTRACTING,
    SessionState.FANNING_OUT,
    SessionState.AWAITING_FILE_RESULTS,
    SessionState.AGGREGATING,
]

_TERMINAL_STATES = frozenset(
    {SessionState.COMPLETED, SessionState.FAILED, SessionState.CANCELLED}
)

# States in which the last file result may start aggregation.
COLLECTING_STATES = frozenset({SessionState.FANNING_OUT, SessionState.AWAITING_FILE_RESULTS})


@dataclass
class SessionRecord:
    """Represents a row from the scan_sessions table."""

    session_id: str
    original_name: str
    state: SessionState
    total_files: int | None = None
    resolved_files: int = 0
    failed_stage: str | None = None
    error_message: str | None = None
    verdict: dict[str, Any] | None = None
