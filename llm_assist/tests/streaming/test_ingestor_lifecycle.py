"""Stream ingestion lifecycle tests.

Drive ``StreamIngestor`` with scripted process handles and a real
``TextDocument`` sink; assert on the document contents, the terminal
``StreamResult`` and registry cleanup.
"""

from __future__ import annotations

import asyncio

import pytest

from llm_assist.anthropic.adapter import AnthropicMessagesAdapter
from llm_assist.base.cancellation import CancellationToken
from llm_assist.base.errors import ErrorCode
from llm_assist.base.models import ExtractOptions
from llm_assist.base.streaming import SessionState
from llm_assist.document import TextDocument
from llm_assist.openai.adapter import OpenAIChatAdapter
from llm_assist.tests.helpers import (
    DONE,
    IDLE,
    FakeProcessHandle,
    anthropic_chunk,
    openai_chunk,
)

ARGV = ["curl", "-N", "https://example.invalid"]


def _doc_and_mark():
    doc = TextDocument("write a haiku\n")
    return doc, doc.create_mark(1, 0)


@pytest.mark.asyncio
async def test_five_fragments_written_in_order(make_ingestor, registry):
    words = ["one ", "two ", "three ", "four ", "five"]
    handle = FakeProcessHandle([openai_chunk(w) for w in words] + [DONE], hang=True)
    ingestor, runner = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "done"
    assert result.ok
    assert result.has_tokens is True
    assert result.state is SessionState.DRAINING
    assert result.metrics.emitted == 5
    assert result.text == "one two three four five"
    assert doc.line(1) == "one two three four five"
    assert mark.position == (1, len("one two three four five"))
    assert runner.started == [ARGV]
    assert handle.terminated is True
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_chunks_split_mid_line_and_mid_character(make_ingestor):
    raw = openai_chunk("héllo") + openai_chunk(" wörld") + DONE
    cut1 = raw.index("é".encode("utf-8")) + 1
    cut2 = raw.index("ö".encode("utf-8")) + 1
    handle = FakeProcessHandle([raw[:cut1], IDLE, raw[cut1:cut2], raw[cut2:]])
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "done"
    assert doc.line(1) == "héllo wörld"


@pytest.mark.asyncio
async def test_anthropic_stream_stops_on_message_stop(make_ingestor):
    stop = b'event: message_stop\ndata: {"type": "message_stop"}\n\n'
    start = b'event: message_start\ndata: {"type": "message_start", "message": {}}\n\n'
    handle = FakeProcessHandle([start, anthropic_chunk("Hello"), anthropic_chunk(", world"), stop], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=AnthropicMessagesAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "done"
    assert doc.line(1) == "Hello, world"


@pytest.mark.asyncio
async def test_no_response_times_out_and_unregisters(make_ingestor, registry, notifier):
    handle = FakeProcessHandle(hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=0.05)

    assert result.reason == "timeout_no_response"
    assert result.state is SessionState.TIMED_OUT
    assert result.error is not None and result.error.code is ErrorCode.TIMEOUT
    assert result.has_tokens is False
    assert doc.text == "write a haiku\n"
    assert handle.terminated is True
    assert len(registry) == 0
    assert notifier.messages and "no response" in notifier.messages[0][0]


@pytest.mark.asyncio
async def test_stall_after_first_bytes_times_out_when_idle_timeout_set(make_ingestor):
    handle = FakeProcessHandle([openai_chunk("partial")], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()
    session = ingestor.create_session(doc, mark, provider="groq", model="m")

    result = await ingestor.run(
        session, ARGV, adapter=OpenAIChatAdapter(), timeout=5.0, idle_timeout=0.03
    )

    assert result.reason == "timeout_stalled"
    assert result.state is SessionState.TIMED_OUT
    assert result.has_tokens is True
    assert doc.line(1) == "partial"
    assert session.history[0] is SessionState.STARTING
    assert session.history[-1] is SessionState.STOPPED


@pytest.mark.asyncio
async def test_cancel_during_write_stops_further_writes(make_ingestor, registry):
    class CancellingDocument(TextDocument):
        def write_at_mark(self, mark, text):
            super().write_at_mark(mark, text)
            registry.cancel_all("user")

    handle = FakeProcessHandle([openai_chunk("first"), openai_chunk("second"), DONE], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc = CancellingDocument("q\n")
    mark = doc.create_mark(1, 0)

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "cancelled"
    assert result.state is SessionState.CANCELLED
    assert result.error is None
    assert doc.line(1) == "first"
    assert handle.terminated is True
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_cancel_at_row_from_another_task(make_ingestor, registry):
    handle = FakeProcessHandle([openai_chunk("a")], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    task = asyncio.create_task(
        ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)
    )
    for _ in range(2000):
        if doc.line(1) == "a":
            break
        await asyncio.sleep(0.001)
    assert doc.line(1) == "a"

    assert registry.cancel_at(doc, 0) == 0
    assert registry.cancel_at(TextDocument("other\n"), 1) == 0
    assert registry.cancel_at(doc, 1) == 1
    result = await asyncio.wait_for(task, timeout=2.0)

    assert result.reason == "cancelled"
    assert doc.line(1) == "a"
    assert handle.terminated is True
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_cancelled_parent_never_launches(make_ingestor):
    handle = FakeProcessHandle([openai_chunk("x")])
    ingestor, runner = make_ingestor(handle)
    parent = CancellationToken()
    parent.cancel("shutdown")
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(
        ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0, parent=parent
    )

    assert result.reason == "cancelled"
    assert runner.started == []
    assert doc.line(1) == ""


@pytest.mark.asyncio
async def test_non_streamed_body_is_written_once(make_ingestor):
    body = b'{"choices": [{"message": {"role": "assistant", "content": "full answer"}}]}'
    handle = FakeProcessHandle([body])
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "eof"
    assert result.ok
    assert result.metrics.emitted == 1
    assert doc.line(1) == "full answer"


@pytest.mark.asyncio
async def test_error_body_is_reported_verbatim(make_ingestor, notifier):
    handle = FakeProcessHandle([b'{"error": {"message": "Invalid API Key", "type": "auth"}}\n'])
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(
        ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0, provider="groq"
    )

    assert result.reason == "provider_error"
    assert result.error.code is ErrorCode.PROVIDER
    assert result.error.message == "Invalid API Key"
    assert result.error.provider == "groq"
    assert doc.line(1) == ""
    assert notifier.messages == [("Invalid API Key", 40)]


@pytest.mark.asyncio
async def test_streamed_error_event_stops_the_session(make_ingestor):
    err = b'data: {"error": {"message": "model overloaded"}}\n\n'
    handle = FakeProcessHandle([openai_chunk("ok "), err, openai_chunk("never")], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "provider_error"
    assert result.error.message == "model overloaded"
    assert result.has_tokens is True
    assert doc.line(1) == "ok "


@pytest.mark.asyncio
async def test_malformed_event_is_terminal(make_ingestor):
    handle = FakeProcessHandle([b"data: {not json\n"], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(
        ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0, provider="openai", model="gpt"
    )

    assert result.reason == "malformed_payload"
    assert result.error.code is ErrorCode.MALFORMED_PAYLOAD
    assert result.error.provider == "openai"
    assert result.error.model == "gpt"


@pytest.mark.asyncio
async def test_unparseable_fallback_body_is_malformed(make_ingestor):
    handle = FakeProcessHandle([b"<html>502 Bad Gateway</html>"])
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "malformed_payload"
    assert doc.line(1) == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("exit_code,expected", [(7, ErrorCode.UNAVAILABLE), (28, ErrorCode.TIMEOUT)])
async def test_failed_process_without_output(make_ingestor, exit_code, expected):
    handle = FakeProcessHandle([], exit_code=exit_code)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "process_failed"
    assert result.error.code is expected
    assert str(exit_code) in result.error.message


@pytest.mark.asyncio
async def test_launch_failure_is_reported(make_ingestor, registry, notifier):
    ingestor, _ = make_ingestor(start_error=FileNotFoundError("curl"))
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert result.reason == "launch_failed"
    assert result.state is SessionState.STARTING
    assert result.error.code is ErrorCode.UNAVAILABLE
    assert len(registry) == 0
    assert len(notifier.messages) == 1


@pytest.mark.asyncio
async def test_reasoning_only_output_is_trimmed(make_ingestor):
    reasoning = b'data: {"choices": [{"delta": {"reasoning_content": "hmm"}}]}\n\n'
    handle = FakeProcessHandle([reasoning, openai_chunk("<think>x</think>answer"), DONE], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(
        ARGV,
        adapter=OpenAIChatAdapter(),
        sink=doc,
        mark=mark,
        timeout=5.0,
        opts=ExtractOptions(trim_thinking=True),
    )

    assert result.metrics.emitted == 1
    assert doc.line(1) == "answer"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "deltas",
    [
        ["<think>", "secret plan", "</think>", "answer"],
        ["<thi", "nk>secret", " plan</th", "ink>ans", "wer"],
        ["<think>secret\n", "plan\n</think>", "answer"],
    ],
)
async def test_think_span_split_across_deltas_is_hidden(make_ingestor, deltas):
    handle = FakeProcessHandle([openai_chunk(d) for d in deltas] + [DONE], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(
        ARGV,
        adapter=OpenAIChatAdapter(),
        sink=doc,
        mark=mark,
        timeout=5.0,
        opts=ExtractOptions(trim_thinking=True),
    )

    assert result.reason == "done"
    assert result.text == "answer"
    assert doc.text == "write a haiku\nanswer"
    assert result.has_tokens is True


@pytest.mark.asyncio
async def test_split_think_span_is_kept_without_trimming(make_ingestor):
    deltas = ["<think>", "secret plan", "</think>", "answer"]
    handle = FakeProcessHandle([openai_chunk(d) for d in deltas] + [DONE], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0)

    assert doc.line(1) == "<think>secret plan</think>answer"
    assert result.metrics.emitted == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("ending,reason", [([], "eof"), ([DONE], "done")])
async def test_held_partial_tag_is_written_at_end(make_ingestor, ending, reason):
    handle = FakeProcessHandle([openai_chunk("x <"), openai_chunk("y <")] + ending)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(
        ARGV,
        adapter=OpenAIChatAdapter(),
        sink=doc,
        mark=mark,
        timeout=5.0,
        opts=ExtractOptions(trim_thinking=True),
    )

    assert result.reason == reason
    assert doc.line(1) == "x <y <"


@pytest.mark.asyncio
async def test_unclosed_think_span_writes_nothing(make_ingestor):
    handle = FakeProcessHandle([openai_chunk("<think>"), openai_chunk("still thinking"), DONE], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    result = await ingestor.stream(
        ARGV,
        adapter=OpenAIChatAdapter(),
        sink=doc,
        mark=mark,
        timeout=5.0,
        opts=ExtractOptions(trim_thinking=True),
    )

    assert result.has_tokens is False
    assert doc.line(1) == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "first",
    [
        b'data: {"choices": [{"delta": {"role": "assistant"}}]}\n\n',
        openai_chunk("<think>long reasoning"),
    ],
)
async def test_stall_before_any_output_has_its_own_reason(make_ingestor, first):
    handle = FakeProcessHandle([first], hang=True)
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()
    session = ingestor.create_session(doc, mark)

    result = await ingestor.run(
        session,
        ARGV,
        adapter=OpenAIChatAdapter(),
        timeout=5.0,
        opts=ExtractOptions(trim_thinking=True),
        idle_timeout=0.03,
    )

    assert result.reason == "timeout_no_output"
    assert result.state is SessionState.TIMED_OUT
    assert result.has_tokens is False
    assert "before any output" in result.error.message
    assert doc.line(1) == ""


@pytest.mark.asyncio
async def test_stderr_is_logged_and_stop_event_emitted(make_ingestor, log_capture):
    handle = FakeProcessHandle(
        [openai_chunk("hi"), DONE],
        stderr=[b"curl: (56) Recv failure\n"],
        hang=True,
    )
    ingestor, _ = make_ingestor(handle)
    doc, mark = _doc_and_mark()

    await ingestor.stream(ARGV, adapter=OpenAIChatAdapter(), sink=doc, mark=mark, timeout=5.0, provider="groq")

    stderr_events = log_capture.events("stream.stderr")
    assert stderr_events and stderr_events[0]["stderr"] == "curl: (56) Recv failure"
    stops = log_capture.events("stream.stop")
    assert len(stops) == 1
    stop = stops[0]
    assert stop["reason"] == "done"
    assert stop["emitted"] is True
    assert stop["provider"] == "groq"
    for key in ("phase", "attempt", "emitted", "session"):
        assert key in stop
