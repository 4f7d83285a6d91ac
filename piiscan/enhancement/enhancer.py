"""AI-assisted risk enhancer with a deterministic rule-based fallback."""

import json
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from piiscan.detection.models import Detection
from piiscan.detection.risk import SensitivityMatcher
from piiscan.enhancement.base import BaseRiskEnhancer
from piiscan.enhancement.client_base import BaseRiskClient
from piiscan.enhancement.exceptions import EnhancementError, EnhancementNetworkError
from piiscan.enhancement.fallback import rule_based_assessment
from piiscan.enhancement.models import RiskAssessment
from piiscan.enhancement.prompt_loader import load_prompt_template, load_system_prompt
from piiscan.enhancement.validator import build_assessment
from piiscan.logging.logger import Log


class RiskEnhancer(BaseRiskEnhancer):
    """Classifies detections through an AI provider, falling back to rules.

    With no client configured every detection takes the rule-based path.
    """

    def __init__(
        self,
        *,
        client: BaseRiskClient | None,
        model: str,
        sensitivity: SensitivityMatcher,
        temperature: float = 0.1,
        batch_size: int = 5,
        batch_delay_seconds: float = 0.1,
        max_retries: int = 2,
        retry_base_seconds: float = 0.5,
        prompt_template_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._sensitivity = sensitivity
        self._temperature = max(0.0, min(0.2, temperature))
        self._batch_size = max(1, batch_size)
        self._batch_delay_seconds = batch_delay_seconds
        self._max_retries = max(0, max_retries)
        self._retry_base_seconds = retry_base_seconds
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._system_prompt = load_system_prompt()

    @property
    def uses_classifier(self) -> bool:
        return self._client is not None

    def enhance(self, detection: Detection) -> RiskAssessment:
        assessment, _ = self._enhance(detection)
        return assessment

    def enhance_all(self, detections: list[Detection]) -> list[RiskAssessment]:
        if not detections:
            return []
        if self._client is None:
            outcomes = [self._enhance(d) for d in detections]
        else:
            outcomes = self._enhance_batched(detections)

        fallbacks = sum(1 for _, used_fallback in outcomes if used_fallback)
        Log.info(
            f"Risk enhancement for {detections[0].filename}: "
            f"{len(outcomes) - fallbacks} classified, {fallbacks} rule-based"
        )
        return [assessment for assessment, _ in outcomes]

    def _enhance_batched(self, detections: list[Detection]) -> list[tuple[RiskAssessment, bool]]:
        outcomes: list[tuple[RiskAssessment, bool]] = []
        with ThreadPoolExecutor(
            max_workers=self._batch_size, thread_name_prefix="risk"
        ) as executor:
            for start in range(0, len(detections), self._batch_size):
                batch = detections[start : start + self._batch_size]
                outcomes.extend(executor.map(self._enhance, batch))
                if start + self._batch_size < len(detections):
                    time.sleep(self._batch_delay_seconds)
        return outcomes

    def _enhance(self, detection: Detection) -> tuple[RiskAssessment, bool]:
        """Return (assessment, used_fallback). Never raises."""
        if self._client is None:
            return rule_based_assessment(detection, self._sensitivity), True
        try:
            return self._classify(self._client, detection), False
        except Exception as exc:
            Log.warning(
                f"Risk classification failed for {detection.document_type.value} "
                f"in {detection.filename}, using rule-based fallback: {exc}"
            )
            return rule_based_assessment(detection, self._sensitivity), True

    def _classify(self, client: BaseRiskClient, detection: Detection) -> RiskAssessment:
        prompt = self._prompt_template.format(
            value=detection.value,
            document_type=detection.document_type.value,
            filename=detection.filename,
            context=detection.context,
        )
        raw = self._call_with_retry(client, prompt)
        return build_assessment(self._parse_json(raw), default_level=detection.risk_level)

    def _call_with_retry(self, client: BaseRiskClient, prompt: str) -> str:
        attempt = 0
        while True:
            try:
                return client.create_chat_completion(
                    model=self._model,
                    temperature=self._temperature,
                    system_prompt=self._system_prompt,
                    user_prompt=prompt,
                )
            except EnhancementNetworkError as exc:
                if attempt >= self._max_retries:
                    raise
                delay = self._retry_base_seconds * (2**attempt)
                Log.debug(f"Classifier call failed ({exc}), retrying in {delay:.2f}s")
                time.sleep(delay)
                attempt += 1

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise EnhancementError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise EnhancementError("JSON response must be an object")
        return parsed
