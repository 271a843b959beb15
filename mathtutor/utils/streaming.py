"""
Incremental completion stream format.

Server side, each text delta becomes one Server-Sent Event carrying an
OpenAI-style chunk, and the stream ends with a sentinel:

    data: {"choices": [{"delta": {"content": "Fact"}}]}

    data: {"choices": [{"delta": {"content": "or x"}}]}

    data: [DONE]

Client side, ``DeltaStreamDecoder`` reassembles deltas from arbitrary
network chunks. Only newline-terminated lines are parsed; a partial line
stays buffered until the rest arrives. A complete line that is not valid
JSON is held back and retried once, joined with the next data line; if
that still fails it is skipped, so the deltas after it keep flowing.
"""

import codecs
import json
import logging
from typing import AsyncIterator, List, Optional, Union

import httpx

from mathtutor.core.config import settings
from mathtutor.models.tutor import ChatMessage, TutorQuestion

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data: "

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# ============================================================================
# ENCODING
# ============================================================================

def encode_delta(content: str) -> str:
    chunk = {"choices": [{"delta": {"content": content}}]}
    return f"{DATA_PREFIX}{json.dumps(chunk, ensure_ascii=False)}\n\n"


def encode_error(message: str) -> str:
    return f"{DATA_PREFIX}{json.dumps({'error': message}, ensure_ascii=False)}\n\n"


def encode_done() -> str:
    return f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"


async def sse_from_deltas(deltas: AsyncIterator[str]) -> AsyncIterator[str]:
    """Wrap a text-delta iterator as an event stream, always ending with [DONE]."""
    try:
        async for delta in deltas:
            if delta:
                yield encode_delta(delta)
    except Exception as e:
        logger.error(f"❌ Stream aborted: {e}")
        yield encode_error(str(e))
    yield encode_done()


# ============================================================================
# DECODING
# ============================================================================

class DeltaStreamDecoder:
    """Turns raw stream chunks into text deltas."""

    def __init__(self):
        self.buffer = ""
        self.done = False
        # payload of the last complete line that failed to parse
        self.pending: Optional[str] = None
        self._utf8 = codecs.getincrementaldecoder("utf-8")()

    def feed(self, chunk: Union[str, bytes]) -> List[str]:
        """
        Add a network chunk and return every delta completed by it.

        Multi-byte characters split across chunks are held back by the
        incremental UTF-8 decoder.
        """
        if self.done:
            return []
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self.buffer += chunk
        return self._drain()

    def finish(self) -> List[str]:
        """Flush whatever is left once the connection closes."""
        if self.done:
            return []
        self.buffer += self._utf8.decode(b"", final=True)
        if self.buffer and not self.buffer.endswith("\n"):
            self.buffer += "\n"
        deltas = self._drain()
        if self.pending is not None:
            logger.warning(f"⚠️ Stream closed with malformed line: {self.pending[:80]}")
            self.pending = None
        return deltas

    def _drain(self) -> List[str]:
        deltas = []
        while "\n" in self.buffer:
            line, self.buffer = self.buffer.split("\n", 1)
            if line.endswith("\r"):
                line = line[:-1]

            if not line.strip() or line.startswith(":"):
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            payload = line[len(DATA_PREFIX):].strip()
            if payload == DONE_SENTINEL:
                self.done = True
                self.buffer = ""
                self.pending = None
                break

            if self.pending is not None:
                held, self.pending = self.pending, None
                parsed = _parse(held + payload)
                if parsed is not None:
                    content = _delta_content(parsed)
                    if content:
                        deltas.append(content)
                    continue
                logger.warning(f"⚠️ Skipping malformed stream line: {held[:80]}")

            parsed = _parse(payload)
            if parsed is None:
                self.pending = payload
                continue

            content = _delta_content(parsed)
            if content:
                deltas.append(content)
        return deltas


def _parse(payload: str):
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        return None


def _delta_content(parsed) -> Optional[str]:
    if not isinstance(parsed, dict):
        return None
    choices = parsed.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta") or {}
    return delta.get("content")


def append_delta(messages: List[ChatMessage], delta: str) -> List[ChatMessage]:
    """Grow the trailing assistant message, starting one if needed."""
    if messages and messages[-1].role == "assistant":
        last = messages[-1]
        messages[-1] = ChatMessage(role="assistant", content=last.content + delta)
    else:
        messages.append(ChatMessage(role="assistant", content=delta))
    return messages


# ============================================================================
# HTTP CLIENT
# ============================================================================

async def stream_tutor_answer(
    base_url: str,
    question: TutorQuestion,
    session_id: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 60.0
) -> AsyncIterator[str]:
    """
    POST a question to ``/tutor/ask`` and yield answer deltas as they arrive.

    Args:
        base_url: API root, e.g. "http://localhost:8000"
        question: The question payload (``stream`` is forced on)
        session_id: Sent as the session header when given
        client: Reuse an existing client instead of opening one
        timeout: Read timeout in seconds
    """
    headers = {"Accept": "text/event-stream"}
    if session_id:
        headers[settings.SESSION_HEADER_NAME] = session_id

    payload = question.model_copy(update={"stream": True}).model_dump(mode="json")
    decoder = DeltaStreamDecoder()

    owns_client = client is None
    client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
    try:
        async with client.stream("POST", "/tutor/ask", json=payload, headers=headers) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                for delta in decoder.feed(chunk):
                    yield delta
                if decoder.done:
                    break
            for delta in decoder.finish():
                yield delta
    finally:
        if owns_client:
            await client.aclose()
