from typing import ClassVar

import icu  # type: ignore[import-untyped]

from piiscan.detection.models import DocumentType, RiskLevel

BASELINE_RISK: dict[DocumentType, RiskLevel] = {
    DocumentType.CPF: RiskLevel.HIGH,
    DocumentType.RG: RiskLevel.HIGH,
    DocumentType.CNPJ: RiskLevel.MEDIUM,
    DocumentType.EMAIL: RiskLevel.MEDIUM,
    DocumentType.PHONE: RiskLevel.MEDIUM,
    DocumentType.FULL_NAME: RiskLevel.MEDIUM,
    DocumentType.CEP: RiskLevel.LOW,
}


class SensitivityMatcher:
    """Finds sensitivity keywords in filenames and surrounding text.

    Both sides are folded through ICU (Latin-ASCII, lowercase) so that
    "CONFIDÊNCIAL.txt" and "confidencial" match.
    """

    _ICU_TRANSFORM: ClassVar[str] = "Any-Latin; Latin-ASCII; Lower"

    def __init__(self, keywords: list[str]) -> None:
        self._transliterator: icu.Transliterator = icu.Transliterator.createInstance(
            self._ICU_TRANSFORM
        )
        self._keywords = [k for k in (self.fold(w) for w in keywords) if k]

    @property
    def keywords(self) -> list[str]:
        return list(self._keywords)

    def fold(self, text: str) -> str:
        return self._transliterator.transliterate(text).strip()

    def matches(self, *texts: str) -> bool:
        """Return True if any keyword occurs in any of *texts*."""
        if not self._keywords:
            return False
        folded = [self.fold(t) for t in texts if t]
        return any(k in text for text in folded for k in self._keywords)


def baseline_risk(
    document_type: DocumentType,
    *,
    sensitive: bool,
) -> RiskLevel:
    """Decision-table risk for a document type, one level up in a sensitive setting."""
    level = BASELINE_RISK.get(document_type, RiskLevel.MEDIUM)
    return level.escalate() if sensitive else level
