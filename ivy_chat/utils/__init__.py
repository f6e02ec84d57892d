# ivy_chat/utils/__init__.py
"""
Expose wire encoders at package-level for convenience:

    from ivy_chat.utils import content_record
"""

from .sse import (  # noqa: F401
    booking_record,
    content_record,
    error_record,
    keep_alive,
    make_record,
)

__all__ = [
    "make_record",
    "content_record",
    "booking_record",
    "error_record",
    "keep_alive",
]
