import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from piiscan.detection.models import Detection, DocumentType, RiskLevel
from piiscan.enhancement.models import RiskAssessment
from piiscan.processor.models import ArchiveSubmission, AssessedDetection, FileProcessingResult

ZipBuilder = Callable[..., Path]


def write_zip(
    path: Path,
    files: dict[str, bytes | str],
    compression: int = zipfile.ZIP_DEFLATED,
) -> Path:
    """Write a ZIP at *path* with one entry per item of *files*, in order."""
    with zipfile.ZipFile(path, "w", compression=compression) as zf:
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            zf.writestr(name, data)
    return path


@pytest.fixture()
def make_zip(tmp_path: Path) -> ZipBuilder:
    """Build a ZIP archive under tmp_path and return its path."""
    counter = {"n": 0}

    def _make(
        files: dict[str, bytes | str],
        name: str | None = None,
        compression: int = zipfile.ZIP_DEFLATED,
    ) -> Path:
        counter["n"] += 1
        target = tmp_path / (name or f"archive-{counter['n']}.zip")
        return write_zip(target, files, compression)

    return _make


@pytest.fixture()
def cpf_text() -> str:
    return "CPF: 111.444.777-35"


ResultBuilder = Callable[..., FileProcessingResult]


def assessed(
    level: RiskLevel = RiskLevel.HIGH,
    *,
    confidence: float = 1.0,
    is_valid: bool = True,
    filename: str = "a.txt",
    recommendations: list[str] | None = None,
    document_type: DocumentType = DocumentType.CPF,
) -> AssessedDetection:
    """Build one assessed detection with the given refined risk."""
    detection = Detection(
        subject="Maria Silva",
        document_type=document_type,
        value="111.444.777-35",
        filename=filename,
        position=0,
        context="CPF: 111.444.777-35",
        risk_level=RiskLevel.HIGH,
    )
    assessment = RiskAssessment(
        is_valid=is_valid,
        risk_level=level,
        confidence=confidence,
        sensitivity_score=7.0,
        reasoning="test",
        contextual_risk="test",
        recommendations=list(recommendations or []),
    )
    return AssessedDetection(detection=detection, assessment=assessment)


@pytest.fixture()
def make_result() -> ResultBuilder:
    """Build a FileProcessingResult for session "s-1"."""

    def _make(
        entry_index: int = 0,
        filename: str = "a.txt",
        detections: list[AssessedDetection] | None = None,
        error: str | None = None,
        session_id: str = "s-1",
    ) -> FileProcessingResult:
        return FileProcessingResult(
            session_id=session_id,
            entry_index=entry_index,
            filename=filename,
            detections=list(detections or []),
            error=error,
        )

    return _make


@pytest.fixture()
def submission(tmp_path: Path) -> ArchiveSubmission:
    archive = tmp_path / "upload.zip"
    archive.write_bytes(b"PK")
    return ArchiveSubmission(
        session_id="s-1",
        storage_path=str(archive),
        original_name="clientes.zip",
        mime_type="application/zip",
        size_bytes=2,
    )


@pytest.fixture()
def make_assessed() -> Callable[..., AssessedDetection]:
    return assessed
