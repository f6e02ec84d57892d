from __future__ import annotations

import json
from typing import Any, Dict

from ..enums import RecordType
from ..streaming.decoder import FRAME_MARKER


def make_record(data: Dict[str, Any]) -> str:
    """Serialize one newline-terminated record with JSON payload."""
    payload = json.dumps(data, ensure_ascii=False)
    return f"{FRAME_MARKER}{payload}\n"


def content_record(text: str) -> str:
    return make_record({"type": RecordType.CONTENT.value, "content": text})


def booking_record() -> str:
    return make_record({"type": RecordType.SPECIAL.value, "action": "BOOK_MEETING"})


def error_record(text: str) -> str:
    return make_record({"type": RecordType.ERROR.value, "content": text})


def keep_alive() -> str:
    return "\n"
