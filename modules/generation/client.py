"""HTTP client for the external ``/api/generate`` backend."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

import httpx

from config.settings import AppConfig
from modules.generation.errors import MalformedResponseError, NetworkError, ServerError
from modules.generation.models import GenerationRequest

logger = logging.getLogger(__name__)


class GenerationClient:
    """POST generation requests and return the decoded JSON body.

    Each call opens its own ``httpx.AsyncClient``; cancelling the awaiting
    task closes that client and with it the in-flight connection.
    """

    def __init__(
        self,
        config: AppConfig,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
    ) -> None:
        self.config = config
        self._client_factory = client_factory

    @property
    def endpoint(self) -> str:
        return self.config.generate_url

    async def generate(self, request: GenerationRequest) -> Dict[str, Any]:
        """Send ``request`` and return the parsed response payload.

        Raises:
            ServerError: the backend answered with a non-2xx status.
            MalformedResponseError: the body is not a JSON object.
            NetworkError: the request never got a response.
            asyncio.CancelledError: the awaiting task was cancelled.
        """
        logger.info(
            "POST %s (style=%s, size=%s, num=%d)",
            self.endpoint,
            request.style,
            request.size,
            request.count,
        )
        async with self._client_factory(timeout=self.config.request_timeout) as http:
            try:
                response = await http.post(self.endpoint, json=request.to_payload())
            except httpx.RequestError as exc:
                logger.warning("Generation request failed: %s", exc)
                raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        if not 200 <= response.status_code < 300:
            body = response.text or ""
            logger.warning("Generation backend returned %s: %s", response.status_code, body[:200])
            raise ServerError(response.status_code, body)

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError() from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError()
        return payload
