"""
Dataclass models for the chat transcript and the decoded stream events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .enums import Action, Sender


@dataclass(frozen=True)
class Message:
    content: str
    sender: Sender

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(content=content, sender=Sender.USER)

    @classmethod
    def bot(cls, content: str) -> "Message":
        return cls(content=content, sender=Sender.BOT)

    @property
    def is_bot(self) -> bool:
        return self.sender == Sender.BOT

    def to_dict(self) -> Dict[str, str]:
        return {"content": self.content, "sender": self.sender.value}


# ────────────────────────────────────────────────────────
# Stream events (one per decoded record, plus End on close)
# ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ContentEvent:
    """A fragment to append to the accumulating bot response."""
    text: str


@dataclass(frozen=True)
class ActionEvent:
    """Side-channel directive delivered inline with the prose."""
    name: Action


@dataclass(frozen=True)
class ErrorEvent:
    """Server-declared error, shown to the user verbatim."""
    text: str


@dataclass(frozen=True)
class EndEvent:
    """Inferred when the transport closes; never sent on the wire."""


StreamEvent = Union[ContentEvent, ActionEvent, ErrorEvent, EndEvent]

Transcript = Tuple[Message, ...]


@dataclass
class StreamingState:
    """Per-turn scratch state, reset on every submit."""
    accumulated_text: str = ""
    booking_triggered: bool = False
    # Index of the in-progress bot message in the transcript, if any
    bot_index: Optional[int] = None
    error_surfaced: bool = False

    @property
    def settled(self) -> bool:
        return self.error_surfaced


@dataclass(frozen=True)
class BookingWidget:
    """Configuration handed to the external scheduling widget."""
    url: str
    revealed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "revealed": self.revealed}


@dataclass(frozen=True)
class TranscriptSnapshot:
    """Read-only view published to the presentation layer after every fold step."""
    transcript: Transcript = field(default_factory=tuple)
    streaming: bool = False
    show_booking: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.transcript

    @property
    def awaiting_reply(self) -> bool:
        """True while a reply is pending and no bot text has arrived yet."""
        if not self.streaming:
            return False
        return not self.transcript or not self.transcript[-1].is_bot

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcript": [m.to_dict() for m in self.transcript],
            "streaming": self.streaming,
            "show_booking": self.show_booking,
        }
