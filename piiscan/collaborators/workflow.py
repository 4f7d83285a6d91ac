import httpx

from piiscan.events.models import SessionCompleted
from piiscan.logging.logger import Log


class WorkflowTrigger:
    """Starts the downstream incident workflow once a session completes."""

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def __call__(self, event: SessionCompleted) -> None:
        session_id = event.verdict.session_id
        try:
            response = self._client.post(self._webhook_url, json={"fileId": session_id})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            Log.warning(f"Workflow trigger for session {session_id} failed: {exc}")
            return
        Log.info(f"Workflow triggered for session {session_id}")

    def close(self) -> None:
        self._client.close()
