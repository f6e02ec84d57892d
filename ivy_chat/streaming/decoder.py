"""
Incremental decoder for the chat stream wire format.

The server answers with newline-delimited records. Meaningful records look like

    data: {"type": "content", "content": "Hi"}

and everything else (blank keep-alive lines, comments, unknown record types) is
skipped. Chunks from the transport can cut a record anywhere, including inside
a multi-byte UTF-8 character, so the decoder keeps a carry-over buffer and only
parses records once their terminating newline has arrived.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, Callable, Iterable, Iterator, List, Optional, Union

from ..enums import WIRE_ACTIONS, RecordType
from ..models import ActionEvent, ContentEvent, EndEvent, ErrorEvent, StreamEvent

log = logging.getLogger(__name__)

FRAME_MARKER = "data: "
RECORD_DELIMITER = "\n"

Chunk = Union[bytes, bytearray, str]


class MalformedRecord(ValueError):
    """Payload behind a frame marker could not be parsed."""


def parse_record(line: str) -> Optional[StreamEvent]:
    """
    Parse one complete line.

    Returns the event, or None when the line is not a record or carries a type
    this client does not know. Raises MalformedRecord for a framed line whose
    payload is not a JSON object with the expected fields.
    """
    if line.endswith("\r"):
        line = line[:-1]
    if not line.startswith(FRAME_MARKER):
        return None

    raw = line[len(FRAME_MARKER):]
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedRecord(f"invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedRecord(f"payload is {type(payload).__name__}, expected object")

    rtype = payload.get("type")
    if rtype == RecordType.CONTENT.value:
        text = payload.get("content")
        if not isinstance(text, str):
            raise MalformedRecord("content record without string 'content'")
        return ContentEvent(text=text)

    if rtype == RecordType.SPECIAL.value:
        wire_action = payload.get("action")
        action = WIRE_ACTIONS.get(wire_action) if isinstance(wire_action, str) else None
        if action is None:
            log.debug(f"STREAM_RECORD_UNKNOWN | type=special | action={wire_action!r}")
            return None
        return ActionEvent(name=action)

    if rtype == RecordType.ERROR.value:
        text = payload.get("content")
        return ErrorEvent(text=text if isinstance(text, str) else "")

    log.debug(f"STREAM_RECORD_UNKNOWN | type={rtype!r}")
    return None


class StreamDecoder:
    """
    Turns transport chunks into StreamEvents, in arrival order.

    Usage:
        decoder = StreamDecoder()
        for chunk in chunks:
            for event in decoder.feed(chunk):
                ...
        for event in decoder.close():
            ...  # trailing End

    or simply ``for event in StreamDecoder().decode(chunks)``.
    """

    def __init__(self, on_malformed: Optional[Callable[[str, Exception], Any]] = None) -> None:
        self._buffer: str = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._closed: bool = False
        self._on_malformed = on_malformed
        self.records_seen: int = 0
        self.records_dropped: int = 0

    @property
    def pending(self) -> str:
        """Text received after the last delimiter (an incomplete record)."""
        return self._buffer

    def feed(self, chunk: Chunk) -> List[StreamEvent]:
        if self._closed:
            raise RuntimeError("StreamDecoder.feed() called after close()")
        if isinstance(chunk, (bytes, bytearray)):
            text = self._utf8.decode(bytes(chunk))
        else:
            text = chunk
        if not text:
            return []

        self._buffer += text
        *complete, self._buffer = self._buffer.split(RECORD_DELIMITER)
        return self._parse_lines(complete)

    def close(self) -> List[StreamEvent]:
        """
        Signal end of transport. Flushes the byte decoder, drops any trailing
        partial record and returns the final End event.
        """
        if self._closed:
            return []
        self._closed = True

        tail = self._buffer + self._utf8.decode(b"", final=True)
        *complete, tail = tail.split(RECORD_DELIMITER)
        events = self._parse_lines(complete)
        if tail:
            log.debug(f"STREAM_TAIL_DISCARDED | size={len(tail)}")
        self._buffer = ""
        events.append(EndEvent())
        return events

    def decode(self, chunks: Iterable[Chunk]) -> Iterator[StreamEvent]:
        """Lazily decode a whole chunk sequence, ending with End."""
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.close()

    def _parse_lines(self, lines: List[str]) -> List[StreamEvent]:
        events: List[StreamEvent] = []
        for line in lines:
            try:
                event = parse_record(line)
            except MalformedRecord as e:
                self.records_dropped += 1
                log.warning(f"STREAM_RECORD_MALFORMED | error={e} | preview={line[:160]!r}")
                if self._on_malformed is not None:
                    try:
                        self._on_malformed(line, e)
                    except Exception as sink_exc:
                        log.warning(f"MALFORMED_SINK_FAILED | error={sink_exc}", exc_info=True)
                continue
            if event is not None:
                self.records_seen += 1
                events.append(event)
        return events
