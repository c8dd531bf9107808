from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import httpx
import pytest

from mcp_bridge.bridge import RequestBridge
from mcp_bridge.session import SessionContext, SessionManager, SessionStore
from mcp_bridge.transport import UpstreamTransport

UPSTREAM_URL = "http://mock/mcp"

Reply = Union[httpx.Response, Dict[str, Any], Callable[[Dict[str, Any], httpx.Request], httpx.Response]]


class FakeUpstream:
    """Scriptable streamable-HTTP MCP server for ``httpx.MockTransport``.

    - ``initialize`` answers with ``session_id`` in the ``Mcp-Session-Id`` header
    - ``notifications/initialized`` answers 202
    - any other method answers ``{"result": {}}`` unless scripted via ``script()``

    Scripted replies are consumed in order per method; the last one repeats.
    A reply is an ``httpx.Response``, a JSON-RPC member dict (``{"result": ...}``
    or ``{"error": ...}``) or a callable ``(body, request) -> httpx.Response``.
    """

    def __init__(self, session_id: Optional[str] = "abc123") -> None:
        self.session_id = session_id
        self.bodies: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self._scripts: Dict[str, List[Reply]] = {}

    def script(self, method: str, *replies: Reply) -> "FakeUpstream":
        self._scripts[method] = list(replies)
        return self

    @property
    def methods(self) -> List[str]:
        return [b.get("method") for b in self.bodies]

    def count(self, method: str) -> int:
        return self.methods.count(method)

    def session_headers(self, method: str) -> List[Optional[str]]:
        return [
            r.headers.get("mcp-session-id") for r, b in zip(self.requests, self.bodies) if b.get("method") == method
        ]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), base_url="http://mock")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(request)
        self.bodies.append(body)
        method = body.get("method")
        replies = self._scripts.get(method)
        if replies:
            reply = replies.pop(0) if len(replies) > 1 else replies[0]
            return self._render(reply, body, request)
        if method == "initialize":
            return self.json_response(
                body,
                {
                    "result": {
                        "protocolVersion": "2024-11-05",
                        "capabilities": {"tools": {}},
                        "serverInfo": {"name": "fake-upstream", "version": "0.0.1"},
                    }
                },
                session_id=self.session_id,
            )
        if method == "notifications/initialized":
            return httpx.Response(202)
        return self.json_response(body, {"result": {}})

    def _render(self, reply: Reply, body: Dict[str, Any], request: httpx.Request) -> httpx.Response:
        if isinstance(reply, httpx.Response):
            return reply
        if callable(reply):
            return reply(body, request)
        return self.json_response(body, reply)

    @staticmethod
    def json_response(
        body: Dict[str, Any], member: Dict[str, Any], *, session_id: Optional[str] = None, status: int = 200
    ) -> httpx.Response:
        headers = {"mcp-session-id": session_id} if session_id else {}
        return httpx.Response(status, json={"jsonrpc": "2.0", "id": body.get("id"), **member}, headers=headers)


def sse_body(*payloads: Dict[str, Any]) -> bytes:
    return b"".join(b"event: message\ndata: " + json.dumps(p).encode() + b"\n\n" for p in payloads)


class ChunkedStream(httpx.AsyncByteStream):
    """Async byte stream delivering fixed chunks, recording whether it was closed."""

    def __init__(self, parts: Iterable[bytes]) -> None:
        self._parts = list(parts)
        self.consumed = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self._parts:
            self.consumed += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "mcp-session-cache")


@pytest.fixture
def make_bridge(store: SessionStore) -> Callable[..., RequestBridge]:
    """Factory wiring a bridge to a fake upstream through a real transport."""

    def _make(fake: FakeUpstream, *, token: Optional[str] = None, timeout_seconds: float = 5.0) -> RequestBridge:
        context = SessionContext.load(store, token)
        transport = UpstreamTransport(
            UPSTREAM_URL,
            context,
            auth_header="Bearer test",
            timeout_seconds=timeout_seconds,
            client=fake.client(),
        )
        return RequestBridge(SessionManager(context, transport), transport, store)

    return _make


@pytest.fixture
def fake_cls():
    return FakeUpstream


@pytest.fixture
def sse():
    return sse_body


@pytest.fixture
def chunked():
    return ChunkedStream


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
    )

    orig_send = httpx.AsyncClient.send

    async def offline_send(self, request, *args, **kwargs):
        url_str = str(request.url)
        if any(url_str.startswith(p) for p in allowed_prefixes):
            return await orig_send(self, request, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx.AsyncClient, "send", offline_send, raising=True)
