import json

import httpx

from mathtutor.models.tutor import ChatMessage, TutorQuestion
from mathtutor.utils.streaming import (
    DeltaStreamDecoder, append_delta, encode_delta, encode_done, sse_from_deltas,
    stream_tutor_answer
)


def test_decoder_reassembles_split_lines():
    decoder = DeltaStreamDecoder()
    payload = encode_delta("Factor ") + encode_delta("x² first") + encode_done()

    deltas = []
    for index in range(0, len(payload), 7):
        deltas.extend(decoder.feed(payload[index:index + 7]))

    assert "".join(deltas) == "Factor x² first"
    assert decoder.done is True


def test_decoder_handles_split_multibyte_characters():
    decoder = DeltaStreamDecoder()
    raw = encode_delta("π ≈ 3.14").encode("utf-8")

    deltas = []
    for byte in raw:
        deltas.extend(decoder.feed(bytes([byte])))
    deltas.extend(decoder.finish())

    assert deltas == ["π ≈ 3.14"]


def test_decoder_ignores_noise_and_stops_at_done():
    decoder = DeltaStreamDecoder()
    chunk = (
        ": keep-alive\n\n"
        "event: ping\n"
        'data: {"choices": [{"delta": {}}]}\n\n'
        + encode_delta("ok")
        + encode_done()
        + encode_delta("ignored")
    )

    assert decoder.feed(chunk) == ["ok"]
    assert decoder.feed(encode_delta("late")) == []


def test_decoder_drops_unparseable_line_at_end():
    decoder = DeltaStreamDecoder()
    assert decoder.feed('data: {"choices": [\n') == []
    assert decoder.finish() == []


def test_malformed_line_does_not_stall_later_deltas():
    decoder = DeltaStreamDecoder()

    assert decoder.feed("data: {not json}\n\n") == []
    assert decoder.feed(encode_delta("A")) == ["A"]
    assert decoder.feed(encode_delta("B") + encode_delta("C")) == ["B", "C"]
    assert decoder.buffer == ""


def test_line_split_by_stray_newline_is_rejoined():
    decoder = DeltaStreamDecoder()

    assert decoder.feed('data: {"choices": [{"delta": \n') == []
    assert decoder.feed('data: {"content": "x + 1"}}]}\n\n') == ["x + 1"]
    assert decoder.pending is None


def test_partial_line_waits_for_rest():
    decoder = DeltaStreamDecoder()
    line = encode_delta("x = 2")

    assert decoder.feed(line[:12]) == []
    assert decoder.feed(line[12:]) == ["x = 2"]


def test_append_delta():
    messages = [ChatMessage(role="user", content="Why?")]

    append_delta(messages, "Because ")
    append_delta(messages, "of symmetry.")

    assert [m.role for m in messages] == ["user", "assistant"]
    assert messages[-1].content == "Because of symmetry."


async def test_sse_from_deltas_reports_errors_then_done():
    async def deltas():
        yield "first"
        raise RuntimeError("connection reset")

    events = [event async for event in sse_from_deltas(deltas())]

    assert json.loads(events[0][len("data: "):])["choices"][0]["delta"]["content"] == "first"
    assert "connection reset" in events[1]
    assert events[-1] == encode_done()


async def test_stream_tutor_answer_over_http():
    body = (encode_delta("The ") + encode_delta("roots are ±2.") + encode_done()).encode("utf-8")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content)
        seen["session"] = request.headers.get("X-Session-Id")
        return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://tutor.test")
    question = TutorQuestion(
        step_content="Solve $x^2 = 4$",
        user_question="What are the roots?",
        topic="Quadratic Equations",
        grade_level="9",
        stream=False
    )

    deltas = [
        delta async for delta in stream_tutor_answer(
            "http://tutor.test", question, session_id="abc", client=client
        )
    ]
    await client.aclose()

    assert "".join(deltas) == "The roots are ±2."
    assert seen["path"] == "/tutor/ask"
    assert seen["payload"]["stream"] is True
    assert seen["session"] == "abc"
