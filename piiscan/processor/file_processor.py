import time

from piiscan.detection.base import BaseDetector
from piiscan.detection.exceptions import DetectionError
from piiscan.enhancement.base import BaseRiskEnhancer
from piiscan.logging.logger import Log
from piiscan.processor.finalizer import SessionFinalizer
from piiscan.processor.models import (
    AssessedDetection,
    FileJobPayload,
    FileProcessingResult,
    empty_risk_counts,
)
from piiscan.sessions.base import SessionStore


class FileProcessor:
    """Runs one file job: detect -> enhance -> record."""

    def __init__(
        self,
        detector: BaseDetector,
        enhancer: BaseRiskEnhancer,
        session_store: SessionStore,
        finalizer: SessionFinalizer,
    ) -> None:
        self._detector = detector
        self._enhancer = enhancer
        self._session_store = session_store
        self._finalizer = finalizer

    def process(self, payload: FileJobPayload) -> FileProcessingResult | None:
        """Scan one extracted file and record its result.

        Returns None without doing any work when the session was cancelled
        or has already ended.

        Raises:
            DetectionError: on a detector defect; not worth retrying.
        """
        if not self._session_store.is_active(payload.session_id):
            Log.info(
                f"Session {payload.session_id} is no longer active, "
                f"skipping {payload.filename}"
            )
            return None

        started = time.perf_counter()
        detections = self._detector.detect(payload.content, payload.filename)
        assessments = self._enhancer.enhance_all(detections)
        assessed = [
            AssessedDetection(detection=detection, assessment=assessment)
            for detection, assessment in zip(detections, assessments, strict=True)
        ]

        risk_counts = empty_risk_counts()
        false_positives = 0
        for item in assessed:
            if item.assessment.is_valid:
                risk_counts[item.assessment.risk_level.value] += 1
            else:
                false_positives += 1

        result = FileProcessingResult(
            session_id=payload.session_id,
            entry_index=payload.entry_index,
            filename=payload.filename,
            detections=assessed,
            risk_counts=risk_counts,
            false_positives=false_positives,
            processing_ms=int((time.perf_counter() - started) * 1000),
        )
        Log.info(
            f"Session {payload.session_id}: {payload.filename} -> "
            f"{len(assessed) - false_positives} detections, {false_positives} false positives"
        )
        self._finalizer.record(result)
        return result

    def record_failure(self, payload: FileJobPayload, exc: Exception) -> None:
        """Record a terminally failed file so the session can still finish."""
        if isinstance(exc, DetectionError):
            message = "Detection failed"
        else:
            message = f"Processing failed: {type(exc).__name__}"
        result = FileProcessingResult(
            session_id=payload.session_id,
            entry_index=payload.entry_index,
            filename=payload.filename,
            risk_counts=empty_risk_counts(),
            error=message,
        )
        self._finalizer.record(result)
