from abc import ABC, abstractmethod

from piiscan.detection.models import Detection


class BaseDetector(ABC):
    """Contract for all PII detection adapters."""

    @abstractmethod
    def detect(self, text: str, filename: str) -> list[Detection]:
        """Find PII occurrences in *text*.

        Args:
            text: Plain text extracted from an archive entry.
            filename: Entry path, used for risk context and attribution.

        Returns:
            Validated detections, ordered by position.

        Raises:
            DetectionError: if a pattern or validator fails unexpectedly.
        """
