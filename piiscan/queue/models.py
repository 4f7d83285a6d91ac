from dataclasses import dataclass
from typing import Any


@dataclass
class QueuedJob:
    """Represents a claimed row from the scan_jobs table."""

    id: int
    queue: str
    payload: dict[str, Any]
    attempts: int
