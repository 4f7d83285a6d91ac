"""Decodes the classifier's JSON reply into a RiskAssessment.

This is the only place the external response shape is trusted. `isValid`
is required; every other field is defaulted when missing or mistyped and
numeric fields are clamped to their ranges.
"""

from typing import Any

from piiscan.detection.models import RiskLevel
from piiscan.enhancement.exceptions import EnhancementValidationError
from piiscan.enhancement.models import RiskAssessment

DEFAULT_CONFIDENCE = 0.5
DEFAULT_SENSITIVITY = 5.0
DEFAULT_REASONING = "AI analysis completed"
DEFAULT_CONTEXTUAL_RISK = "Standard risk assessment"
_MAX_RECOMMENDATIONS = 20


def build_assessment(data: dict[str, Any], default_level: RiskLevel) -> RiskAssessment:
    """Validate a parsed classifier reply and build a RiskAssessment.

    Args:
        data: Parsed JSON object from the classifier.
        default_level: Level used when `riskLevel` is missing or unknown.

    Raises:
        EnhancementValidationError: if `isValid` is missing or not a boolean.
    """
    is_valid = data.get("isValid")
    if not isinstance(is_valid, bool):
        raise EnhancementValidationError("'isValid' must be a boolean")

    return RiskAssessment(
        is_valid=is_valid,
        risk_level=_risk_level(data.get("riskLevel"), default_level),
        confidence=_clamped_number(data.get("confidence"), DEFAULT_CONFIDENCE, 0.0, 1.0),
        sensitivity_score=_clamped_number(
            data.get("sensitivityScore"), DEFAULT_SENSITIVITY, 0.0, 10.0
        ),
        reasoning=_text(data.get("reasoning"), DEFAULT_REASONING),
        contextual_risk=_text(data.get("contextualRisk"), DEFAULT_CONTEXTUAL_RISK),
        recommendations=_recommendations(data.get("recommendations")),
    )


def _risk_level(raw: Any, default: RiskLevel) -> RiskLevel:
    if isinstance(raw, str):
        try:
            return RiskLevel(raw.strip().lower())
        except ValueError:
            pass
    return default


def _clamped_number(raw: Any, default: float, low: float, high: float) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return default
    value = float(raw)
    if value != value:  # NaN
        return default
    return max(low, min(high, value))


def _text(raw: Any, default: str) -> str:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return default


def _recommendations(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    items = [item.strip() for item in raw if isinstance(item, str) and item.strip()]
    return items[:_MAX_RECOMMENDATIONS]
