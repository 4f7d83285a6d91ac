from typing import ClassVar

from piiscan.config.settings import Settings
from piiscan.detection.risk import SensitivityMatcher
from piiscan.enhancement.base import BaseRiskEnhancer
from piiscan.enhancement.client_base import BaseRiskClient
from piiscan.enhancement.enhancer import RiskEnhancer
from piiscan.enhancement.openai_client_adapter import OpenAIClientAdapter
from piiscan.logging.logger import Log


class EnhancerFactory:
    """Creates the configured risk enhancer."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings, sensitivity: SensitivityMatcher) -> BaseRiskEnhancer:
        """Create a risk enhancer from application settings.

        Provider "rules", or a provider without credentials, yields an
        enhancer that only uses the rule-based assessment.
        """
        provider = settings.risk_provider.lower()
        client = cls._create_client(provider, settings)
        if client is None:
            Log.info(f"Risk provider '{provider}' has no client; rule-based assessment only")
        return RiskEnhancer(
            client=client,
            model=cls._resolve_model_name(provider, settings),
            sensitivity=sensitivity,
            temperature=settings.risk_temperature,
            batch_size=settings.risk_batch_size,
            batch_delay_seconds=settings.risk_batch_delay_seconds,
            max_retries=settings.risk_max_retries,
            retry_base_seconds=settings.risk_retry_base_seconds,
        )

    @classmethod
    def _create_client(cls, provider: str, settings: Settings) -> BaseRiskClient | None:
        if provider == "rules":
            return None
        base_url = cls._resolve_base_url(provider, settings)
        api_key = cls._resolve_api_key(provider, settings)
        if not api_key:
            return None
        return OpenAIClientAdapter(
            api_key=api_key,
            timeout_seconds=cls._resolve_timeout_seconds(provider, settings),
            base_url=base_url,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.risk_openai_compatible_base_url.strip()
            if not url:
                raise ValueError(
                    "risk_openai_compatible_base_url is required for "
                    "risk_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "rules",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(f"Unknown risk provider '{provider}'. Choose from: {supported}")

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.risk_openai_api_key,
            "openai_compatible": settings.risk_openai_compatible_api_key,
            "openrouter": settings.risk_openrouter_api_key,
            "groq": settings.risk_groq_api_key,
            "ollama": settings.risk_ollama_api_key,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_model_name(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.risk_openai_model_name,
            "openai_compatible": settings.risk_openai_compatible_model_name,
            "openrouter": settings.risk_openrouter_model_name,
            "groq": settings.risk_groq_model_name,
            "ollama": settings.risk_ollama_model_name,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_timeout_seconds(cls, provider: str, settings: Settings) -> int:
        if provider == "openai_compatible":
            return settings.risk_openai_compatible_timeout_seconds
        return settings.risk_openai_timeout_seconds
