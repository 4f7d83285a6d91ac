from dataclasses import dataclass, field

from piiscan.detection.models import Detection, RiskLevel
from piiscan.enhancement.models import RiskAssessment


@dataclass(frozen=True)
class ArchiveSubmission:
    """One uploaded archive, as handed over by the upload collaborator."""

    session_id: str
    storage_path: str
    original_name: str
    mime_type: str
    size_bytes: int


@dataclass(frozen=True)
class FileJobPayload:
    """Work unit for one extracted entry."""

    session_id: str
    entry_index: int
    filename: str
    content: str
    archive_name: str


@dataclass(frozen=True)
class AssessedDetection:
    detection: Detection
    assessment: RiskAssessment


@dataclass(frozen=True)
class FileProcessingResult:
    """Detections and assessments for one file, or the error that ended it."""

    session_id: str
    entry_index: int
    filename: str
    detections: list[AssessedDetection] = field(default_factory=list)
    risk_counts: dict[str, int] = field(default_factory=dict)
    false_positives: int = 0
    processing_ms: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def valid_detections(self) -> list[AssessedDetection]:
        return [d for d in self.detections if d.assessment.is_valid]


@dataclass(frozen=True)
class SessionVerdict:
    """Aggregated risk verdict for one archive."""

    session_id: str
    overall_risk_level: RiskLevel
    risk_score: int
    high_risk_files: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    total_files: int = 0
    failed_files: int = 0
    total_detections: int = 0
    risk_counts: dict[str, int] = field(default_factory=dict)


def empty_risk_counts() -> dict[str, int]:
    return {level.value: 0 for level in RiskLevel}
