from abc import ABC, abstractmethod

from piiscan.detection.models import Detection
from piiscan.enhancement.models import RiskAssessment


class BaseRiskEnhancer(ABC):
    """Contract for all risk enhancement adapters."""

    @abstractmethod
    def enhance(self, detection: Detection) -> RiskAssessment:
        """Refine the risk of a single detection.

        Never raises: implementations must fall back to a rule-based
        assessment when the external classifier cannot be used.
        """

    @abstractmethod
    def enhance_all(self, detections: list[Detection]) -> list[RiskAssessment]:
        """Refine a batch of detections; output order matches input order."""
