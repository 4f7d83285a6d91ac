from unittest.mock import MagicMock

import pytest

from piiscan.detection.exceptions import DetectionError
from piiscan.detection.models import Detection, DocumentType, RiskLevel
from piiscan.enhancement.models import RiskAssessment
from piiscan.processor.file_processor import FileProcessor
from piiscan.processor.models import FileJobPayload


def _make_processor(active: bool = True) -> tuple[FileProcessor, MagicMock, MagicMock, MagicMock]:
    detector = MagicMock()
    enhancer = MagicMock()
    store = MagicMock()
    store.is_active.return_value = active
    finalizer = MagicMock()
    return FileProcessor(detector, enhancer, store, finalizer), detector, enhancer, finalizer


def _payload() -> FileJobPayload:
    return FileJobPayload(
        session_id="s-1",
        entry_index=4,
        filename="clientes.csv",
        content="CPF: 111.444.777-35",
        archive_name="upload.zip",
    )


def _detection(value: str) -> Detection:
    return Detection(
        subject="unidentified",
        document_type=DocumentType.CPF,
        value=value,
        filename="clientes.csv",
        position=5,
        context="CPF: 111.444.777-35",
        risk_level=RiskLevel.HIGH,
    )


def _assessment(level: RiskLevel, is_valid: bool = True) -> RiskAssessment:
    return RiskAssessment(
        is_valid=is_valid,
        risk_level=level,
        confidence=0.9,
        sensitivity_score=8.0,
        reasoning="r",
        contextual_risk="c",
    )


class TestProcess:
    def test_pairs_detections_with_assessments(self) -> None:
        processor, detector, enhancer, finalizer = _make_processor()
        detections = [_detection("111.444.777-35"), _detection("529.982.247-25")]
        detector.detect.return_value = detections
        enhancer.enhance_all.return_value = [
            _assessment(RiskLevel.CRITICAL),
            _assessment(RiskLevel.LOW, is_valid=False),
        ]

        result = processor.process(_payload())

        assert result is not None
        detector.detect.assert_called_once_with("CPF: 111.444.777-35", "clientes.csv")
        enhancer.enhance_all.assert_called_once_with(detections)
        assert [item.detection.value for item in result.detections] == [
            "111.444.777-35",
            "529.982.247-25",
        ]
        assert result.entry_index == 4
        assert result.risk_counts == {"low": 0, "medium": 0, "high": 0, "critical": 1}
        assert result.false_positives == 1
        finalizer.record.assert_called_once_with(result)

    def test_file_without_detections(self) -> None:
        processor, detector, enhancer, finalizer = _make_processor()
        detector.detect.return_value = []
        enhancer.enhance_all.return_value = []

        result = processor.process(_payload())

        assert result is not None
        assert result.detections == []
        assert result.failed is False
        finalizer.record.assert_called_once()

    def test_skips_inactive_session(self) -> None:
        processor, detector, _enhancer, finalizer = _make_processor(active=False)

        assert processor.process(_payload()) is None
        detector.detect.assert_not_called()
        finalizer.record.assert_not_called()

    def test_detection_error_propagates(self) -> None:
        processor, detector, _enhancer, finalizer = _make_processor()
        detector.detect.side_effect = DetectionError("broken")

        with pytest.raises(DetectionError):
            processor.process(_payload())

        finalizer.record.assert_not_called()


class TestRecordFailure:
    def test_detection_error_message(self) -> None:
        processor, _detector, _enhancer, finalizer = _make_processor()

        processor.record_failure(_payload(), DetectionError("regex blew up"))

        result = finalizer.record.call_args.args[0]
        assert result.error == "Detection failed"
        assert result.entry_index == 4
        assert result.failed is True

    def test_other_error_names_type_only(self) -> None:
        processor, _detector, _enhancer, finalizer = _make_processor()

        processor.record_failure(_payload(), OSError("/secret/path"))

        result = finalizer.record.call_args.args[0]
        assert result.error == "Processing failed: OSError"
