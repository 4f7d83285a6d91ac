import pytest

from piiscan.config.settings import Settings
from piiscan.detection.detector import UNIDENTIFIED_SUBJECT, PiiDetector
from piiscan.detection.exceptions import DetectionError
from piiscan.detection.factory import DetectorFactory
from piiscan.detection.models import DocumentType, RiskLevel
from piiscan.detection.risk import SensitivityMatcher

KEYWORDS = ["confidencial", "confidential", "secret", "private", "backup", "export"]


def _detector(context_radius: int = 60) -> PiiDetector:
    return PiiDetector(SensitivityMatcher(KEYWORDS), context_radius=context_radius)


def _types(detections: list) -> list[DocumentType]:
    return [d.document_type for d in detections]


class TestCpfDetection:
    def test_single_valid_cpf(self, cpf_text: str) -> None:
        detections = _detector().detect(cpf_text, "dados.txt")

        assert len(detections) == 1
        detection = detections[0]
        assert detection.document_type is DocumentType.CPF
        assert detection.value == "111.444.777-35"
        assert detection.position == 5
        assert detection.risk_level is RiskLevel.HIGH
        assert detection.subject == UNIDENTIFIED_SUBJECT

    def test_invalid_cpf_is_discarded(self) -> None:
        assert _detector().detect("CPF: 111.444.777-36", "dados.txt") == []

    def test_sensitive_filename_escalates_high_to_critical(self, cpf_text: str) -> None:
        detections = _detector().detect(cpf_text, "backup_clientes.txt")

        assert detections[0].risk_level is RiskLevel.CRITICAL


class TestCnpjDetection:
    def test_invalid_cnpj_yields_nothing(self) -> None:
        assert _detector().detect("CNPJ 11.222.333/0001-82", "empresa.txt") == []

    def test_valid_cnpj_is_medium(self) -> None:
        detections = _detector().detect("CNPJ 11.222.333/0001-81", "empresa.txt")

        assert _types(detections) == [DocumentType.CNPJ]
        assert detections[0].risk_level is RiskLevel.MEDIUM


class TestLabelledTypes:
    def test_rg_value_excludes_label(self) -> None:
        text = "RG: 12.345.678-9"
        detections = _detector().detect(text, "doc.txt")

        rg = [d for d in detections if d.document_type is DocumentType.RG]
        assert len(rg) == 1
        assert rg[0].value == "12.345.678-9"
        assert rg[0].position == text.index("12.345")
        assert rg[0].risk_level is RiskLevel.HIGH

    def test_cep_is_low(self) -> None:
        detections = _detector().detect("CEP 01310-100", "endereco.txt")

        cep = [d for d in detections if d.document_type is DocumentType.CEP]
        assert [d.value for d in cep] == ["01310-100"]
        assert cep[0].risk_level is RiskLevel.LOW

    def test_all_zero_cep_is_discarded(self) -> None:
        detections = _detector().detect("CEP 00000-000", "endereco.txt")

        assert DocumentType.CEP not in _types(detections)


class TestContactTypes:
    def test_email(self) -> None:
        detections = _detector().detect("contato: maria@example.com.br", "a.txt")

        assert _types(detections) == [DocumentType.EMAIL]
        assert detections[0].value == "maria@example.com.br"

    def test_phone(self) -> None:
        detections = _detector().detect("tel (11) 98765-4321", "a.txt")

        assert DocumentType.PHONE in _types(detections)


class TestNamesAndSubjects:
    def test_full_name_is_its_own_subject(self) -> None:
        detections = _detector().detect("cliente Maria da Silva assinou", "a.txt")

        names = [d for d in detections if d.document_type is DocumentType.FULL_NAME]
        assert [d.value for d in names] == ["Maria da Silva"]
        assert names[0].subject == "Maria da Silva"

    def test_single_capitalized_word_is_not_a_name(self) -> None:
        detections = _detector().detect("Relatório anual", "a.txt")

        assert DocumentType.FULL_NAME not in _types(detections)

    def test_subject_is_nearest_preceding_name(self) -> None:
        text = "Ana Souza e depois Carlos Pereira CPF 111.444.777-35"
        detections = _detector().detect(text, "a.txt")

        cpf = next(d for d in detections if d.document_type is DocumentType.CPF)
        assert cpf.subject == "Carlos Pereira"


class TestContext:
    def test_context_is_bounded_by_radius(self) -> None:
        text = "x" * 100 + " CPF 111.444.777-35 " + "y" * 100
        detections = _detector(context_radius=10).detect(text, "a.txt")

        cpf = next(d for d in detections if d.document_type is DocumentType.CPF)
        assert len(cpf.context) == len(cpf.value) + 20
        assert cpf.value in cpf.context

    def test_keyword_in_context_escalates(self) -> None:
        detections = _detector().detect("documento confidencial CPF 111.444.777-35", "a.txt")

        assert detections[0].risk_level is RiskLevel.CRITICAL

    def test_accented_keyword_matches(self) -> None:
        detections = _detector().detect("CPF 111.444.777-35", "CONFIDÊNCIAL.txt")

        assert detections[0].risk_level is RiskLevel.CRITICAL


class TestDeterminism:
    def test_output_sorted_by_position(self) -> None:
        text = "maria@example.com 111.444.777-35 CEP 01310-100"
        detections = _detector().detect(text, "a.txt")

        positions = [d.position for d in detections]
        assert positions == sorted(positions)

    def test_detect_is_idempotent(self) -> None:
        text = "João da Silva CPF 111.444.777-35, tel (11) 98765-4321"
        detector = _detector()

        assert detector.detect(text, "a.txt") == detector.detect(text, "a.txt")

    def test_empty_text(self) -> None:
        assert _detector().detect("", "a.txt") == []


class TestErrors:
    def test_validator_failure_is_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        detector = _detector()

        def _boom(_text: str, _filename: str) -> list:
            raise ValueError("broken pattern")

        monkeypatch.setattr(detector, "_run", _boom)

        with pytest.raises(DetectionError, match="broken pattern"):
            detector.detect("anything", "a.txt")


class TestDetectorFactory:
    def test_uses_configured_keywords(self, cpf_text: str) -> None:
        detector = DetectorFactory.create(Settings(sensitive_keywords="sigiloso"))

        assert detector.detect(cpf_text, "sigiloso.txt")[0].risk_level is RiskLevel.CRITICAL
        assert detector.detect(cpf_text, "backup.txt")[0].risk_level is RiskLevel.HIGH
