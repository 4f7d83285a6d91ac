from dataclasses import asdict

import httpx

from piiscan.events.models import ProgressEvent
from piiscan.logging.logger import Log


class HttpProgressNotifier:
    """Forwards progress events to the front end's webhook.

    Delivery is fire-and-forget: failures are logged and dropped.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def __call__(self, event: ProgressEvent) -> None:
        url = f"{self._base_url}/sessions/{event.session_id}/progress"
        payload = asdict(event)
        payload["stage"] = event.stage.value
        try:
            response = self._client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            Log.warning(f"Progress notification for session {event.session_id} failed: {exc}")

    def close(self) -> None:
        self._client.close()
