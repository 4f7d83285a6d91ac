from dataclasses import dataclass, field

from piiscan.detection.models import RiskLevel


@dataclass(frozen=True)
class RiskAssessment:
    """Refined risk classification attached to one detection."""

    is_valid: bool
    risk_level: RiskLevel
    confidence: float  # 0-1
    sensitivity_score: float  # 0-10
    reasoning: str
    contextual_risk: str
    recommendations: list[str] = field(default_factory=list)
