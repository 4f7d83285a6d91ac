"""JSON-compatible conversion of file results and verdicts for storage."""

from dataclasses import asdict
from typing import Any

from piiscan.detection.models import Detection, DocumentType, RiskLevel
from piiscan.enhancement.models import RiskAssessment
from piiscan.processor.models import AssessedDetection, FileProcessingResult, SessionVerdict


def result_to_dict(result: FileProcessingResult) -> dict[str, Any]:
    # asdict keeps Enum members; storage needs their values.
    data = asdict(result)
    for item in data["detections"]:
        item["detection"]["document_type"] = item["detection"]["document_type"].value
        item["detection"]["risk_level"] = item["detection"]["risk_level"].value
        item["assessment"]["risk_level"] = item["assessment"]["risk_level"].value
    return data


def result_from_dict(data: dict[str, Any]) -> FileProcessingResult:
    detections = [
        AssessedDetection(
            detection=_detection_from_dict(item["detection"]),
            assessment=_assessment_from_dict(item["assessment"]),
        )
        for item in data.get("detections", [])
    ]
    return FileProcessingResult(
        session_id=data["session_id"],
        entry_index=int(data["entry_index"]),
        filename=data["filename"],
        detections=detections,
        risk_counts=dict(data.get("risk_counts", {})),
        false_positives=int(data.get("false_positives", 0)),
        processing_ms=int(data.get("processing_ms", 0)),
        error=data.get("error"),
    )


def verdict_to_dict(verdict: SessionVerdict) -> dict[str, Any]:
    data = asdict(verdict)
    data["overall_risk_level"] = verdict.overall_risk_level.value
    return data


def verdict_from_dict(data: dict[str, Any]) -> SessionVerdict:
    return SessionVerdict(
        session_id=data["session_id"],
        overall_risk_level=RiskLevel(data["overall_risk_level"]),
        risk_score=int(data["risk_score"]),
        high_risk_files=list(data.get("high_risk_files", [])),
        recommendations=list(data.get("recommendations", [])),
        total_files=int(data.get("total_files", 0)),
        failed_files=int(data.get("failed_files", 0)),
        total_detections=int(data.get("total_detections", 0)),
        risk_counts=dict(data.get("risk_counts", {})),
    )


def _detection_from_dict(data: dict[str, Any]) -> Detection:
    return Detection(
        subject=data["subject"],
        document_type=DocumentType(data["document_type"]),
        value=data["value"],
        filename=data["filename"],
        position=int(data["position"]),
        context=data["context"],
        risk_level=RiskLevel(data["risk_level"]),
    )


def _assessment_from_dict(data: dict[str, Any]) -> RiskAssessment:
    return RiskAssessment(
        is_valid=bool(data["is_valid"]),
        risk_level=RiskLevel(data["risk_level"]),
        confidence=float(data["confidence"]),
        sensitivity_score=float(data["sensitivity_score"]),
        reasoning=data["reasoning"],
        contextual_risk=data["contextual_risk"],
        recommendations=list(data.get("recommendations", [])),
    )
