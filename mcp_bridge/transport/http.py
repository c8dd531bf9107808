"""Streamable HTTP transport to the upstream MCP endpoint.

Sends one JSON-RPC envelope per POST with plain ``httpx`` and accepts either a
single JSON document or a ``text/event-stream`` body in return. The
``Mcp-Session-Id`` response header is adopted into the shared session context
on every response, before status or body are looked at, because the upstream
may assign or rotate the session at any point of an exchange.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Dict, Optional, TypeVar

import httpx
from pydantic import ValidationError

from mcp_bridge.errors import (
    UpstreamConnectionError,
    UpstreamHTTPError,
    UpstreamProtocolError,
    UpstreamTimeoutError,
)
from mcp_bridge.schemas.envelope import NotificationEnvelope, RequestEnvelope, ResponseEnvelope
from mcp_bridge.session.context import SessionContext

from .sse import read_event_stream_answer

SESSION_HEADER = "Mcp-Session-Id"
ACCEPT = "application/json, text/event-stream"
EVENT_STREAM = "text/event-stream"

T = TypeVar("T")


class UpstreamTransport:
    """HTTP transport for one upstream endpoint.

    - send(envelope): POST a request and return the parsed response envelope
    - notify(notification): POST a one-way notification, ignoring the body
    - aclose(): close the underlying client when the transport created it

    Every exchange is bounded by ``timeout_seconds``; on expiry the connection
    is aborted and `UpstreamTimeoutError` is raised. Provide a custom
    ``httpx.AsyncClient`` for tests or proxies.
    """

    def __init__(
        self,
        endpoint_url: str,
        context: SessionContext,
        *,
        auth_header: Optional[str] = None,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = endpoint_url
        self._context = context
        self._auth_header = auth_header
        self._timeout = timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True)
        self._logger = logging.getLogger(__name__)

    @property
    def endpoint_url(self) -> str:
        return self._url

    def _headers(self) -> Dict[str, str]:
        """Build request headers, attaching the session id once one is known."""
        headers: Dict[str, str] = {"Content-Type": "application/json", "Accept": ACCEPT}
        if self._auth_header:
            headers["Authorization"] = self._auth_header
        if self._context.token:
            headers[SESSION_HEADER] = self._context.token
        return headers

    async def send(self, envelope: RequestEnvelope) -> ResponseEnvelope:
        """POST a request envelope and return the upstream answer.

        Raises:
            UpstreamHTTPError: For non-2xx statuses.
            UpstreamProtocolError: For bodies that are not a valid JSON-RPC answer.
            UpstreamTimeoutError: If the exchange exceeds the timeout.
            UpstreamConnectionError: For connection-level failures.
        """
        self._logger.debug(
            "UpstreamTransport.send: POST %s method=%s id=%s session=%s",
            self._url,
            envelope.method,
            envelope.id,
            self._context.token or "<none>",
        )
        payload = await self._bounded(self._exchange(envelope.to_wire(), expect_answer=True))
        try:
            response = ResponseEnvelope.model_validate(payload)
        except ValidationError as e:
            raise UpstreamProtocolError(f"Malformed upstream response for {envelope.method}: {e}") from e
        if isinstance(response.result, dict) and isinstance(response.result.get("sessionId"), str):
            self._context.adopt(response.result["sessionId"])
        return response

    async def notify(self, notification: NotificationEnvelope) -> None:
        """POST a notification; the upstream reply carries nothing to wait for."""
        self._logger.debug("UpstreamTransport.notify: POST %s method=%s", self._url, notification.method)
        await self._bounded(self._exchange(notification.to_wire(), expect_answer=False))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _bounded(self, exchange: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(exchange, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(self._timeout) from e

    async def _exchange(self, body: Dict[str, Any], *, expect_answer: bool) -> Any:
        try:
            async with self._client.stream("POST", self._url, json=body, headers=self._headers()) as response:
                self._logger.debug(
                    "UpstreamTransport: status=%s headers=%s", response.status_code, dict(response.headers)
                )
                self._context.adopt(response.headers.get(SESSION_HEADER))

                if not response.is_success:
                    await response.aread()
                    if not expect_answer:
                        self._logger.warning(
                            "Upstream rejected notification %s with status %s", body.get("method"), response.status_code
                        )
                        return None
                    raise self._status_error(response)

                if not expect_answer:
                    return None

                content_type = response.headers.get("content-type", "").lower()
                if EVENT_STREAM in content_type:
                    # Leaving the context manager closes the stream once the answer is in.
                    return await read_event_stream_answer(response.aiter_text())

                await response.aread()
                try:
                    return response.json()
                except ValueError as e:
                    raise UpstreamProtocolError(f"Upstream returned invalid JSON: {e}") from e
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(self._timeout) from e
        except httpx.TransportError as e:
            raise UpstreamConnectionError(f"Upstream connection failed: {e}") from e
        except httpx.DecodingError as e:
            raise UpstreamProtocolError(f"Upstream body could not be decoded: {e}") from e

    @staticmethod
    def _status_error(response: httpx.Response) -> UpstreamHTTPError:
        text = response.text
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        err = parsed.get("error") if isinstance(parsed, dict) else None
        if isinstance(err, dict):
            code = err.get("code")
            return UpstreamHTTPError(
                response.status_code,
                message=err.get("message") if isinstance(err.get("message"), str) else None,
                code=code if isinstance(code, int) else None,
                data=err.get("data"),
                body=text,
            )
        return UpstreamHTTPError(response.status_code, body=text)
