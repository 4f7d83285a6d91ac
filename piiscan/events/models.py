from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from piiscan.processor.models import FileProcessingResult, SessionVerdict


class Stage(str, Enum):
    """Progress stages reported to the notification channel."""

    VALIDATING = "validating"
    SCANNING = "scanning"
    EXTRACTING = "extracting"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    session_id: str
    stage: Stage
    percent: int
    message: str
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionCompleted:
    verdict: SessionVerdict
    results: list[FileProcessingResult]


@dataclass(frozen=True)
class SessionFailed:
    session_id: str
    stage: str
    message: str


Event = ProgressEvent | SessionCompleted | SessionFailed
