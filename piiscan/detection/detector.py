"""Deterministic Brazilian PII detector.

Processing flow:
1. Run one structural regex per document type over the text.
2. Drop candidates that fail the type's validator (checksums, lengths).
3. For each accepted match, cut a context window, attribute a subject
   name and compute the baseline risk level.

No deduplication across types: a substring may be reported under more than
one document type.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import ClassVar

from piiscan.detection import validators
from piiscan.detection.base import BaseDetector
from piiscan.detection.exceptions import DetectionError
from piiscan.detection.models import Detection, DocumentType
from piiscan.detection.risk import SensitivityMatcher, baseline_risk
from piiscan.logging.logger import Log

_UPPER = "A-ZÁÀÂÃÉÊÍÓÔÕÚÇ"
_LOWER = "a-záàâãéêíóôõúç"
_NAME_TOKEN = rf"[{_UPPER}][{_LOWER}]+"

UNIDENTIFIED_SUBJECT = "unidentified"

_Rule = tuple[DocumentType, re.Pattern[str], Callable[[str], bool]]


class PiiDetector(BaseDetector):
    """Regex + checksum PII detector for LGPD document types."""

    _RULES: ClassVar[list[_Rule]] = [
        (
            DocumentType.CPF,
            re.compile(r"\b\d{3}\.?\d{3}\.?\d{3}[-.]?\d{2}\b"),
            validators.is_valid_cpf,
        ),
        (
            DocumentType.CNPJ,
            re.compile(r"\b\d{2}\.?\d{3}\.?\d{3}/?\d{4}[-.]?\d{2}\b"),
            validators.is_valid_cnpj,
        ),
        (
            DocumentType.RG,
            re.compile(
                r"\bRG:?\s*(?P<value>\d{1,2}\.?\d{3}\.?\d{3}[-.]?[0-9xX])\b",
                re.IGNORECASE,
            ),
            validators.is_valid_rg,
        ),
        (
            DocumentType.CEP,
            re.compile(r"\bCEP:?\s*(?P<value>\d{5}[-.]?\d{3})\b", re.IGNORECASE),
            validators.is_valid_cep,
        ),
        (
            DocumentType.EMAIL,
            re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b"),
            validators.is_valid_email,
        ),
        (
            DocumentType.PHONE,
            re.compile(
                r"(?<![\w+])(?:\+55\s?)?(?:\(?\d{2}\)?\s?)?9?\d{4}[-\s]?\d{4}(?!\w)"
            ),
            validators.is_valid_phone,
        ),
        (
            DocumentType.FULL_NAME,
            re.compile(
                rf"\b{_NAME_TOKEN}(?:[ \t]+(?:(?:da|de|do|dos|das)[ \t]+)?{_NAME_TOKEN})+\b"
            ),
            validators.is_valid_full_name,
        ),
    ]

    _SUBJECT_RE: ClassVar[re.Pattern[str]] = re.compile(
        rf"{_NAME_TOKEN}(?:[ \t]+{_NAME_TOKEN})*"
    )
    _TYPE_ORDER: ClassVar[dict[DocumentType, int]] = {
        doc_type: i for i, (doc_type, _, _) in enumerate(_RULES)
    }

    def __init__(
        self,
        sensitivity: SensitivityMatcher,
        *,
        context_radius: int = 60,
        subject_lookback: int = 500,
    ) -> None:
        self._sensitivity = sensitivity
        self._context_radius = context_radius
        self._subject_lookback = subject_lookback

    def detect(self, text: str, filename: str) -> list[Detection]:
        try:
            detections = self._run(text, filename)
        except DetectionError:
            raise
        except Exception as exc:
            raise DetectionError(f"Detection failed for {filename}: {exc}") from exc
        Log.debug(f"Detected {len(detections)} PII items in {filename}")
        return detections

    def _run(self, text: str, filename: str) -> list[Detection]:
        if not text:
            return []

        filename_sensitive = self._sensitivity.matches(filename)
        detections: list[Detection] = []

        for doc_type, pattern, is_valid in self._RULES:
            group = "value" if "value" in pattern.groupindex else 0
            for match in pattern.finditer(text):
                value = match.group(group)
                if not is_valid(value):
                    continue
                position = match.start(group)
                context = self._context(text, position, len(value))
                sensitive = filename_sensitive or self._sensitivity.matches(context)
                detections.append(
                    Detection(
                        subject=self._subject(text, doc_type, value, position),
                        document_type=doc_type,
                        value=value,
                        filename=filename,
                        position=position,
                        context=context,
                        risk_level=baseline_risk(doc_type, sensitive=sensitive),
                    )
                )

        detections.sort(key=lambda d: (d.position, self._TYPE_ORDER[d.document_type]))
        return detections

    def _context(self, text: str, position: int, length: int) -> str:
        start = max(0, position - self._context_radius)
        end = min(len(text), position + length + self._context_radius)
        return text[start:end]

    def _subject(
        self,
        text: str,
        doc_type: DocumentType,
        value: str,
        position: int,
    ) -> str:
        """Nearest capitalized name run before *position*; heuristic by nature."""
        if doc_type is DocumentType.FULL_NAME:
            return value
        window = text[max(0, position - self._subject_lookback) : position]
        names = self._SUBJECT_RE.findall(window)
        return names[-1] if names else UNIDENTIFIED_SUBJECT
