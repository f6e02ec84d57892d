"""
Local development endpoint speaking the chat-stream wire format.

It answers with a scripted reply so the client, the terminal UI and the tests
can exercise the whole turn without the production assistant:

* a message mentioning a booking keyword gets a short lead-in followed by the
  BOOK_MEETING action;
* anything else is echoed back word by word.
"""

from __future__ import annotations

import json
import logging
import re
import time
import uuid
from typing import Iterator, List

from flask import Blueprint, Response, request, stream_with_context

from ..config import get_config
from ..utils.sse import booking_record, content_record, error_record, keep_alive

log = logging.getLogger(__name__)

bp = Blueprint("chat_stream", __name__)

_WORD_RGX = re.compile(r"\S+\s*")

BOOKING_LEAD_IN = "Sure, let me pull up the calendar for you."


def _fragments(text: str) -> List[str]:
    """Split into word-sized fragments that concatenate back to ``text``."""
    return _WORD_RGX.findall(text) or [text]


def wants_booking(message: str, keywords: List[str]) -> bool:
    lowered = message.lower()
    return any(re.search(rf"\b{re.escape(k)}\b", lowered) for k in keywords)


def scripted_reply(message: str, keywords: List[str]) -> Iterator[str]:
    """Records for one turn, in wire order."""
    if wants_booking(message, keywords):
        for frag in _fragments(BOOKING_LEAD_IN)[:3]:
            yield content_record(frag)
        yield booking_record()
        return

    for frag in _fragments(f"You said: {message}"):
        yield content_record(frag)


@bp.post("/chat-stream")
def chat_stream() -> Response:
    cfg = get_config()
    if not getattr(cfg, "ENABLE_STREAMING", False):
        return Response(
            json.dumps({"error": "Streaming disabled", "hint": "Set ENABLE_STREAMING=true"}),
            status=400,
            mimetype="application/json",
        )

    data = request.get_json(silent=True) or {}
    message = str(data.get("message") or "").strip()
    delay = cfg.DEV_STREAM_DELAY_SECONDS
    keywords = cfg.BOOKING_KEYWORDS

    def generate():
        request_id = str(uuid.uuid4())
        start_ts = time.time()
        sent = 0
        log.info(f"SSE_START | request={request_id} | chars={len(message)}")

        if not message:
            log.info(f"SSE_EMIT | event=error | request={request_id} | reason=empty_message")
            yield error_record("Message cannot be empty")
            return

        yield keep_alive()
        for record in scripted_reply(message, keywords):
            if delay:
                time.sleep(delay)
            sent += 1
            yield record

        elapsed_ms = int((time.time() - start_ts) * 1000)
        log.info(f"SSE_END | request={request_id} | records={sent} | elapsed_ms={elapsed_ms}")

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
