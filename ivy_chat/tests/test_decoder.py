from __future__ import annotations

import pytest

from ivy_chat.enums import Action
from ivy_chat.models import ActionEvent, ContentEvent, EndEvent, ErrorEvent
from ivy_chat.streaming.decoder import MalformedRecord, StreamDecoder, parse_record

HELLO_STREAM = (
    'data: {"type":"content","content":"Hi"}\n'
    'data: {"type":"content","content":" there"}\n'
).encode("utf-8")


def _decode(chunks):
    return list(StreamDecoder().decode(chunks))


def test_two_content_records_then_end():
    events = _decode([HELLO_STREAM])
    assert events == [ContentEvent("Hi"), ContentEvent(" there"), EndEvent()]


def test_booking_and_error_records():
    body = (
        'data: {"type":"content","content":"Sure, let"}\n'
        'data: {"type":"special","action":"BOOK_MEETING"}\n'
        'data: {"type":"error","content":"rate limited"}\n'
    )
    assert _decode([body]) == [
        ContentEvent("Sure, let"),
        ActionEvent(Action.BOOKING),
        ErrorEvent("rate limited"),
        EndEvent(),
    ]


@pytest.mark.parametrize("cut", range(1, len(HELLO_STREAM)))
def test_split_at_any_byte_matches_unsplit(cut: int):
    chunks = [HELLO_STREAM[:cut], HELLO_STREAM[cut:]]
    assert _decode(chunks) == _decode([HELLO_STREAM])


def test_byte_by_byte_delivery():
    chunks = [HELLO_STREAM[i:i + 1] for i in range(len(HELLO_STREAM))]
    assert _decode(chunks) == [ContentEvent("Hi"), ContentEvent(" there"), EndEvent()]


@pytest.mark.parametrize("cuts", [(3, 9), (6, 7), (20, 21), (41, 42)])
def test_three_way_splits(cuts):
    a, b = cuts
    chunks = [HELLO_STREAM[:a], HELLO_STREAM[a:b], HELLO_STREAM[b:]]
    assert _decode(chunks) == _decode([HELLO_STREAM])


def test_multibyte_character_split_across_chunks():
    body = 'data: {"type":"content","content":"café ✓"}\n'.encode("utf-8")
    idx = body.index("✓".encode("utf-8")) + 1  # inside the 3-byte sequence
    events = _decode([body[:idx], body[idx:]])
    assert events[0] == ContentEvent("café ✓")


def test_record_emitted_only_once_delimiter_arrives():
    decoder = StreamDecoder()
    assert decoder.feed('data: {"type":"content","content":"Hi"}') == []
    assert decoder.pending.startswith("data: ")
    assert decoder.feed("\n") == [ContentEvent("Hi")]
    assert decoder.pending == ""


def test_trailing_partial_record_is_discarded():
    body = 'data: {"type":"content","content":"Hi"}\ndata: {"type":"content","content":"lost"}'
    assert _decode([body]) == [ContentEvent("Hi"), EndEvent()]


def test_non_framed_and_blank_lines_are_ignored():
    body = (
        "\n"
        ": keep-alive\n"
        "event: content\n"
        'data:{"type":"content","content":"no space"}\n'
        'data: {"type":"content","content":"ok"}\n'
        "\n"
    )
    assert _decode([body]) == [ContentEvent("ok"), EndEvent()]


def test_unknown_types_are_dropped_silently():
    decoder = StreamDecoder()
    body = (
        'data: {"type":"usage","tokens":12}\n'
        'data: {"type":"special","action":"OPEN_MAP"}\n'
        'data: {"type":"content","content":"ok"}\n'
    )
    assert decoder.feed(body) == [ContentEvent("ok")]
    assert decoder.records_dropped == 0


def test_malformed_record_is_isolated():
    seen = []
    decoder = StreamDecoder(on_malformed=lambda line, exc: seen.append((line, exc)))
    body = (
        'data: {"type":"content","content":"one"}\n'
        'data: {"type":"content","content":\n'
        'data: {"type":"content","content":"two"}\n'
    )
    events = list(decoder.decode([body]))

    assert events == [ContentEvent("one"), ContentEvent("two"), EndEvent()]
    assert decoder.records_dropped == 1
    assert decoder.records_seen == 2
    assert len(seen) == 1
    assert isinstance(seen[0][1], MalformedRecord)


def test_failing_malformed_sink_does_not_abort_stream():
    def sink(line, exc):
        raise RuntimeError("sink down")

    decoder = StreamDecoder(on_malformed=sink)
    chunks = [
        'data: {"type":"content","content":"a"}\n',
        "data: {bad\n",
        'data: {"type":"content","content":"b"}\n',
    ]

    assert list(decoder.decode(chunks)) == [ContentEvent("a"), ContentEvent("b"), EndEvent()]
    assert decoder.records_dropped == 1


def test_crlf_line_endings():
    body = 'data: {"type":"content","content":"Hi"}\r\n\r\n'
    assert _decode([body]) == [ContentEvent("Hi"), EndEvent()]


def test_close_is_idempotent_and_feed_after_close_fails():
    decoder = StreamDecoder()
    assert decoder.close() == [EndEvent()]
    assert decoder.close() == []
    with pytest.raises(RuntimeError):
        decoder.feed("data: {}\n")


@pytest.mark.parametrize(
    "line",
    [
        "data: [1, 2]",
        'data: "text"',
        'data: {"type":"content"}',
        'data: {"type":"content","content":5}',
        "data: not json",
    ],
)
def test_parse_record_rejects_bad_payloads(line: str):
    with pytest.raises(MalformedRecord):
        parse_record(line)


def test_error_record_without_content_has_empty_text():
    assert parse_record('data: {"type":"error"}') == ErrorEvent("")


def test_decode_is_lazy():
    def chunks():
        yield 'data: {"type":"content","content":"a"}\n'
        raise ConnectionError("dropped")

    gen = StreamDecoder().decode(chunks())
    assert next(gen) == ContentEvent("a")
    with pytest.raises(ConnectionError):
        next(gen)
