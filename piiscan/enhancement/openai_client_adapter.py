import httpx
import openai

from piiscan.enhancement.client_base import BaseRiskClient
from piiscan.enhancement.exceptions import EnhancementError, EnhancementNetworkError


class OpenAIClientAdapter(BaseRiskClient):
    """Risk classification client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
        max_tokens: int = 1000,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )
        self._max_tokens = max_tokens

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise EnhancementNetworkError(
                f"AI provider network error: {exc}"
            ) from exc
        except openai.APIError as exc:
            raise EnhancementNetworkError(
                f"AI provider API error: {exc}"
            ) from exc

        if not response.choices:
            raise EnhancementError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise EnhancementError("AI returned empty response")
        return content
