from abc import ABC, abstractmethod


class BaseRiskClient(ABC):
    """Contract for provider-specific risk classification clients."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Return provider response as plain text (expected to be a JSON object)."""
