"""Wire decoding and HTTP transport for the chat stream."""

from .decoder import FRAME_MARKER, MalformedRecord, StreamDecoder, parse_record
from .transport import HttpStreamTransport, TransportError

__all__ = [
    "FRAME_MARKER",
    "MalformedRecord",
    "StreamDecoder",
    "parse_record",
    "HttpStreamTransport",
    "TransportError",
]
