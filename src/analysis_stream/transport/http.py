"""HTTP transport for the backend task runner."""

from typing import Any, AsyncIterator

import httpx

from analysis_stream.config.settings import Settings, get_settings
from analysis_stream.core.exceptions import AuthenticationError, TransportError
from analysis_stream.execution.cancellation import CancellationToken
from analysis_stream.utils.logging import get_logger

from .base import iter_chunks


logger = get_logger(__name__)


class HttpTaskTransport:
    """
    Streams task output from ``POST /session/run_task_v2/{session_id}``.

    The response body is relayed chunk by chunk as decoded text. Reads
    have no timeout unless ``chunk_timeout_seconds`` is configured; only the
    cancellation token ends a stalled stream.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize transport.

        Args:
            settings: Settings (defaults to environment settings)
            session_id: Analysis session to run tasks in
            client: Preconfigured client (cookies, auth headers, mock transport)
        """
        self._settings = settings or get_settings()
        self._session_id = session_id or self._settings.session_id
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = build_client(self._settings)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def request_body(self, task: str) -> dict[str, Any]:
        return {
            "task": task,
            "log_iter": self._settings.log_iter,
            "red_report": self._settings.red_report,
        }

    async def stream(self, task: str, token: CancellationToken) -> AsyncIterator[str]:
        """
        Stream the output of one task.

        Raises:
            AuthenticationError: Backend answered 401
            TransportError: Other error responses or connection failures
            StreamCancelledError: Token cancelled while streaming
        """
        client = await self._get_client()
        path = self._settings.task_url_path(self._session_id)
        logger.debug("Opening task stream", path=path)

        try:
            async with client.stream(
                "POST",
                path,
                json=self.request_body(task),
                headers={"Accept": "application/json"},
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise error_from_response(response, "Streaming task failed")

                async for chunk in iter_chunks(
                    response.aiter_text(),
                    token,
                    idle_timeout=self._settings.chunk_timeout_seconds,
                ):
                    yield chunk
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}") from e
        except httpx.TransportError as e:
            raise TransportError(f"Connection error: {e}") from e


def build_client(settings: Settings) -> httpx.AsyncClient:
    """HTTP client for the backend API; reads are never timed out."""
    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/"),
        timeout=httpx.Timeout(settings.request_timeout_seconds, read=None),
    )


def error_from_response(response: httpx.Response, fallback: str) -> TransportError:
    """Build a TransportError from an error response's JSON ``detail``."""
    try:
        payload = response.json()
    except ValueError:
        payload = {}

    message = None
    if isinstance(payload, dict):
        message = payload.get("detail") or payload.get("message")
    if not isinstance(message, str) or not message:
        message = fallback

    if response.status_code == 401:
        return AuthenticationError(message)

    return TransportError(
        message,
        status_code=response.status_code,
        recoverable=response.status_code >= 500 or response.status_code == 429,
    )
