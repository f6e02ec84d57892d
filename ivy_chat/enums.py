# ivy_chat/enums.py
from enum import Enum


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


class RecordType(str, Enum):
    """Values of the ``type`` discriminator carried by every wire record."""
    CONTENT = "content"
    SPECIAL = "special"
    ERROR = "error"


class Action(str, Enum):
    BOOKING = "booking"


# Wire spelling of side-channel actions -> internal action
WIRE_ACTIONS = {
    "BOOK_MEETING": Action.BOOKING,
}
