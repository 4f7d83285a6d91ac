from dataclasses import dataclass
from enum import Enum


class RiskLevel(str, Enum):
    """Ordered LGPD exposure level: low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)

    def escalate(self) -> "RiskLevel":
        """Return the next level up, saturating at CRITICAL."""
        return _RISK_ORDER[min(self.rank + 1, len(_RISK_ORDER) - 1)]

    @classmethod
    def worst(cls, levels: "list[RiskLevel]") -> "RiskLevel":
        """Return the most severe level in *levels*, LOW when empty."""
        return max(levels, key=lambda level: level.rank, default=cls.LOW)


_RISK_ORDER: list[RiskLevel] = [
    RiskLevel.LOW,
    RiskLevel.MEDIUM,
    RiskLevel.HIGH,
    RiskLevel.CRITICAL,
]


class DocumentType(str, Enum):
    """Closed set of PII document types recognized by the detector."""

    FULL_NAME = "full_name"
    CPF = "cpf"
    CNPJ = "cnpj"
    RG = "rg"
    CEP = "cep"
    EMAIL = "email"
    PHONE = "phone"


@dataclass(frozen=True)
class Detection:
    """Single PII occurrence found in a file's text."""

    subject: str  # best-effort name of the data subject, or "unidentified"
    document_type: DocumentType
    value: str
    filename: str
    position: int  # character offset of the match in the file text
    context: str
    risk_level: RiskLevel
