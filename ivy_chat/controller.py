"""
Transcript state machine driven by the decoded chat stream.

TranscriptController owns the ordered messages and the streaming / booking
flags. Each user turn opens one stream, and every decoded event goes through
``fold_event``, a pure function from (transcript, turn state, event) to the next
transcript and turn state. After each step a fresh TranscriptSnapshot is handed
to subscribers so the presentation layer can re-render.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Iterable, List, NamedTuple, Optional, Protocol

from .enums import Action
from .models import (
    ActionEvent,
    BookingWidget,
    ContentEvent,
    EndEvent,
    ErrorEvent,
    Message,
    StreamEvent,
    StreamingState,
    Transcript,
    TranscriptSnapshot,
)
from .streaming.decoder import StreamDecoder

log = logging.getLogger(__name__)

DEFAULT_FAILURE_NOTICE = "Sorry, there was an error processing your request."
DEFAULT_BOOKING_URL = "https://calendly.com/muizznaveed-internetworks/30min"

Listener = Callable[[TranscriptSnapshot], None]


class ChatTransport(Protocol):
    def stream(self, message: str) -> Iterable[bytes]:
        ...


class FoldResult(NamedTuple):
    transcript: Transcript
    state: StreamingState
    reveal_booking: bool = False


def _replace_at(transcript: Transcript, index: int, message: Message) -> Transcript:
    return transcript[:index] + (message,) + transcript[index + 1:]


def fold_event(
    transcript: Transcript,
    state: StreamingState,
    event: StreamEvent,
    *,
    failure_notice: str = DEFAULT_FAILURE_NOTICE,
) -> FoldResult:
    """
    Apply one event. Inputs are never mutated; unchanged values are returned
    as-is so callers can detect a no-op by identity.
    """
    if isinstance(event, EndEvent):
        return FoldResult(transcript, state)

    # A server-declared error settles the turn; later records are drained only.
    if state.settled:
        return FoldResult(transcript, state)

    if isinstance(event, ContentEvent):
        if state.booking_triggered:
            return FoldResult(transcript, state)
        text = state.accumulated_text + event.text
        bubble = Message.bot(text)
        if state.bot_index is None:
            return FoldResult(
                transcript + (bubble,),
                replace(state, accumulated_text=text, bot_index=len(transcript)),
            )
        return FoldResult(
            _replace_at(transcript, state.bot_index, bubble),
            replace(state, accumulated_text=text),
        )

    if isinstance(event, ActionEvent):
        if event.name != Action.BOOKING or state.booking_triggered:
            return FoldResult(transcript, state)
        # The widget replaces the partial answer, it does not accompany it
        if state.bot_index is not None:
            i = state.bot_index
            transcript = transcript[:i] + transcript[i + 1:]
        return FoldResult(
            transcript,
            replace(state, booking_triggered=True, bot_index=None),
            reveal_booking=True,
        )

    if isinstance(event, ErrorEvent):
        return FoldResult(
            transcript + (Message.bot(event.text or failure_notice),),
            replace(state, bot_index=None, error_surfaced=True),
        )

    raise TypeError(f"unsupported stream event: {event!r}")


class TranscriptController:
    """
    Owns the transcript and drives one streamed reply per ``submit`` call.

    Only one turn may be in flight; ``submit`` while streaming is a no-op.
    Transport failures never escape ``submit``: they are surfaced as a single
    fallback bot message instead.
    """

    def __init__(
        self,
        transport: ChatTransport,
        *,
        booking_url: str = DEFAULT_BOOKING_URL,
        failure_notice: str = DEFAULT_FAILURE_NOTICE,
        decoder_factory: Callable[[], StreamDecoder] = StreamDecoder,
    ) -> None:
        self._transport = transport
        self._booking_url = booking_url
        self._failure_notice = failure_notice
        self._decoder_factory = decoder_factory

        self._transcript: Transcript = ()
        self._streaming: bool = False
        self._show_booking: bool = False
        self._state = StreamingState()
        self._listeners: List[Listener] = []

    @classmethod
    def from_config(cls, cfg, transport: Optional[ChatTransport] = None) -> "TranscriptController":
        if transport is None:
            from .streaming.transport import HttpStreamTransport
            transport = HttpStreamTransport.from_config(cfg)
        return cls(
            transport,
            booking_url=cfg.CALENDLY_URL,
            failure_notice=cfg.FAILURE_NOTICE,
        )

    # ────────────────────────────────────────────────────────
    # Read-only views
    # ────────────────────────────────────────────────────────
    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def streaming(self) -> bool:
        return self._streaming

    @property
    def show_booking(self) -> bool:
        return self._show_booking

    @property
    def booking_widget(self) -> BookingWidget:
        return BookingWidget(url=self._booking_url, revealed=self._show_booking)

    def snapshot(self) -> TranscriptSnapshot:
        return TranscriptSnapshot(
            transcript=self._transcript,
            streaming=self._streaming,
            show_booking=self._show_booking,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a snapshot listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ────────────────────────────────────────────────────────
    # Turn lifecycle
    # ────────────────────────────────────────────────────────
    def submit(self, user_text: str) -> bool:
        """
        Send one user message and consume the streamed reply to completion.

        Returns False (and changes nothing) when the trimmed text is empty or a
        turn is already streaming.
        """
        message = (user_text or "").strip()
        if not message:
            log.debug("SUBMIT_IGNORED | reason=empty")
            return False
        if self._streaming:
            log.info("SUBMIT_IGNORED | reason=turn_in_flight")
            return False

        self._transcript = self._transcript + (Message.user(message),)
        self._streaming = True
        self._state = StreamingState()
        self._publish()

        start_ts = time.time()
        events = 0
        chunks: Optional[Iterable[bytes]] = None
        log.info(f"TURN_START | chars={len(message)} | history={len(self._transcript)}")
        try:
            chunks = self._transport.stream(message)
            for event in self._decoder_factory().decode(chunks):
                events += 1
                self._apply(event)
        except Exception as e:
            log.error(f"TRANSPORT_FAILED | error={e} | events={events}", exc_info=True)
            if not self._state.error_surfaced:
                self._transcript = self._transcript + (Message.bot(self._failure_notice),)
                self._state = replace(self._state, bot_index=None, error_surfaced=True)
        finally:
            self._streaming = False
            close = getattr(chunks, "close", None)
            if callable(close):
                try:
                    close()
                except Exception as e:
                    log.warning(f"STREAM_CLOSE_FAILED | error={e}")
            self._publish()

        elapsed_ms = int((time.time() - start_ts) * 1000)
        log.info(
            f"TURN_COMPLETE | events={events} | booking={self._state.booking_triggered} "
            f"| error={self._state.error_surfaced} | elapsed_ms={elapsed_ms}"
        )
        return True

    def _apply(self, event: StreamEvent) -> None:
        result = fold_event(
            self._transcript, self._state, event, failure_notice=self._failure_notice
        )
        self._transcript = result.transcript
        self._state = result.state
        if result.reveal_booking:
            log.info("BOOKING_REVEALED | action=booking")
            self._show_booking = True
        self._publish()

    def _publish(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception as e:
                # A broken renderer must not abort the turn
                log.warning(f"LISTENER_FAILED | listener={listener!r} | error={e}", exc_info=True)
