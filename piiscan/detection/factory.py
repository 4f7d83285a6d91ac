from piiscan.config.settings import Settings
from piiscan.detection.base import BaseDetector
from piiscan.detection.detector import PiiDetector
from piiscan.detection.risk import SensitivityMatcher


class DetectorFactory:
    """Creates the configured PII detector."""

    @classmethod
    def create(cls, settings: Settings) -> BaseDetector:
        sensitivity = SensitivityMatcher(settings.sensitive_keyword_list())
        return PiiDetector(sensitivity, context_radius=settings.context_radius)
