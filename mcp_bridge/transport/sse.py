"""Server-Sent Events (SSE) body decoding.

The upstream may answer a POST with a ``text/event-stream`` body instead of a
single JSON document. Chunks arrive with arbitrary boundaries, so the decoder
keeps the unterminated tail of the previous chunk and only interprets complete
lines. ``data:`` lines accumulate into one event until a blank line; comments
(``:`` prefix) and other fields (``id``, ``event``, ``retry``) are ignored.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from mcp_bridge.errors import UpstreamProtocolError
from mcp_bridge.schemas.envelope import ResponseEnvelope

logger = logging.getLogger(__name__)

DATA_FIELD = "data"
STREAM_ENDED_MESSAGE = "Upstream SSE stream ended without a result"


class EventStreamDecoder:
    """Incremental decoder turning text chunks into event data payloads.

    - feed(chunk): returns the data of every event completed by this chunk
    - flush(): returns the data of a final event that lacked its blank line
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._data: List[str] = []

    def feed(self, chunk: str) -> List[str]:
        self._buffer += chunk
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        events: List[str] = []
        for line in lines:
            event = self._handle_line(line.rstrip("\r"))
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[str]:
        events: List[str] = []
        if self._buffer:
            tail, self._buffer = self._buffer, ""
            event = self._handle_line(tail.rstrip("\r"))
            if event is not None:
                events.append(event)
        if self._data:
            events.append(self._dispatch())
        return events

    def _handle_line(self, line: str) -> Optional[str]:
        if not line:
            return self._dispatch() if self._data else None
        if line.startswith(":"):
            return None
        key, _, val = line.partition(":")
        if val.startswith(" "):
            val = val[1:]
        if key.strip() == DATA_FIELD:
            self._data.append(val)
        return None

    def _dispatch(self) -> str:
        data = "\n".join(self._data)
        self._data = []
        return data


async def read_event_stream_answer(chunks: AsyncIterator[str]) -> Dict[str, Any]:
    """Consume SSE text chunks until the first JSON-RPC answer and return it.

    An answer is the first event whose data decodes to a JSON object carrying
    ``result`` or ``error``. Notifications and undecodable events are skipped.
    The caller is responsible for closing the underlying response, which
    cancels whatever the upstream still had to send.

    Raises:
        UpstreamProtocolError: If the stream ends before an answer arrives.
    """
    decoder = EventStreamDecoder()
    async for chunk in chunks:
        for data in decoder.feed(chunk):
            payload = _decode(data)
            if ResponseEnvelope.is_terminal_payload(payload):
                return payload
    for data in decoder.flush():
        payload = _decode(data)
        if ResponseEnvelope.is_terminal_payload(payload):
            return payload
    raise UpstreamProtocolError(STREAM_ENDED_MESSAGE)


def _decode(data: str) -> Any:
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        logger.debug("Skipping undecodable SSE event: %r", data[:200])
        return None
