"""Rule-based risk assessment used when the classifier is unavailable."""

from piiscan.detection.models import Detection, DocumentType
from piiscan.detection.risk import SensitivityMatcher, baseline_risk
from piiscan.enhancement.models import RiskAssessment

FALLBACK_CONFIDENCE = 0.7

_SENSITIVITY_SCORES: dict[DocumentType, float] = {
    DocumentType.CPF: 8.0,
    DocumentType.RG: 8.0,
    DocumentType.CNPJ: 6.0,
    DocumentType.PHONE: 6.0,
    DocumentType.EMAIL: 5.0,
    DocumentType.FULL_NAME: 5.0,
    DocumentType.CEP: 3.0,
}

_RECOMMENDATIONS: dict[DocumentType, list[str]] = {
    DocumentType.CPF: [
        "Mask CPF numbers in logs and displays",
        "Implement access controls for CPF data",
        "Ensure LGPD compliance for CPF processing",
    ],
    DocumentType.RG: [
        "Mask RG numbers in logs and displays",
        "Restrict access to identity document data",
    ],
    DocumentType.CNPJ: [
        "Validate business context for CNPJ usage",
        "Implement audit trail for CNPJ access",
    ],
    DocumentType.EMAIL: [
        "Validate email collection consent",
        "Implement email encryption in transit",
    ],
    DocumentType.PHONE: [
        "Mask phone numbers in logs",
        "Validate phone number collection purpose",
    ],
    DocumentType.FULL_NAME: [
        "Confirm a legal basis for processing personal names",
    ],
    DocumentType.CEP: [
        "Avoid storing postal codes together with other identifiers",
    ],
}

_SENSITIVE_BONUS = 2.0


def rule_based_assessment(
    detection: Detection,
    sensitivity: SensitivityMatcher,
) -> RiskAssessment:
    """Deterministic assessment from the baseline decision table.

    A sensitive keyword in the filename or the surrounding context raises
    the level by one and the sensitivity score by two points (capped at 10),
    the same test the detector applies to its baseline level.
    """
    sensitive = sensitivity.matches(detection.filename) or sensitivity.matches(
        detection.context
    )
    score = _SENSITIVITY_SCORES.get(detection.document_type, 5.0)
    if sensitive:
        score = min(10.0, score + _SENSITIVE_BONUS)

    return RiskAssessment(
        is_valid=True,
        risk_level=baseline_risk(detection.document_type, sensitive=sensitive),
        confidence=FALLBACK_CONFIDENCE,
        sensitivity_score=score,
        reasoning=(
            f"Rule-based assessment: {detection.document_type.value} "
            f"detected in {detection.filename}"
        ),
        contextual_risk="Rule-based contextual assessment",
        recommendations=list(_RECOMMENDATIONS.get(detection.document_type, [])),
    )
