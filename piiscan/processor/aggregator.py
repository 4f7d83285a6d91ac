import math

from piiscan.detection.models import RiskLevel
from piiscan.processor.models import FileProcessingResult, SessionVerdict, empty_risk_counts

LEVEL_SCORES: dict[RiskLevel, int] = {
    RiskLevel.CRITICAL: 100,
    RiskLevel.HIGH: 75,
    RiskLevel.MEDIUM: 50,
    RiskLevel.LOW: 25,
}

HIGH_RISK_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


class SessionAggregator:
    """Combines the per-file results of one session into its verdict.

    Results are ordered by filename before combining, so the verdict does not
    depend on the order in which file jobs finished.
    """

    def __init__(self, max_recommendations: int = 10) -> None:
        self._max_recommendations = max_recommendations

    def aggregate(self, session_id: str, results: list[FileProcessingResult]) -> SessionVerdict:
        ordered = sorted(results, key=lambda r: (r.filename, r.entry_index))
        valid = [item for result in ordered for item in result.valid_detections]

        risk_counts = empty_risk_counts()
        for item in valid:
            risk_counts[item.assessment.risk_level.value] += 1

        return SessionVerdict(
            session_id=session_id,
            overall_risk_level=RiskLevel.worst([item.assessment.risk_level for item in valid]),
            risk_score=self._risk_score(ordered),
            high_risk_files=self._high_risk_files(ordered),
            recommendations=self._recommendations(ordered),
            total_files=len(ordered),
            failed_files=sum(1 for result in ordered if result.failed),
            total_detections=len(valid),
            risk_counts=risk_counts,
        )

    @staticmethod
    def _risk_score(results: list[FileProcessingResult]) -> int:
        """Mean of level score times confidence over valid detections, 0 if none."""
        weighted = [
            LEVEL_SCORES[item.assessment.risk_level] * item.assessment.confidence
            for result in results
            for item in result.valid_detections
        ]
        if not weighted:
            return 0
        return math.floor(sum(weighted) / len(weighted) + 0.5)

    @staticmethod
    def _high_risk_files(results: list[FileProcessingResult]) -> list[str]:
        return sorted(
            {
                result.filename
                for result in results
                if any(
                    item.assessment.risk_level in HIGH_RISK_LEVELS
                    for item in result.valid_detections
                )
            }
        )

    def _recommendations(self, results: list[FileProcessingResult]) -> list[str]:
        seen: dict[str, None] = {}
        for result in results:
            for item in result.valid_detections:
                for recommendation in item.assessment.recommendations:
                    text = recommendation.strip()
                    if text:
                        seen.setdefault(text, None)
        return list(seen)[: self._max_recommendations]
