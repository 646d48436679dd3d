from dataclasses import dataclass
from enum import Enum
from typing import Any

from apiproxy.core.constants import USECS_PER_SEC


class MessageKind(Enum):
    AIRSPEED = "VFR_HUD"
    STATUS_TEXT = "STATUSTEXT"
    TIMESTAMPED = "TIMESTAMPED"
    OTHER = "OTHER"


@dataclass(frozen=True)
class TimestampedMessage:
    """A decoded message tagged with its arrival time.

    `time_usec` comes from a monotonic clock for live data or from the log for
    playback, so the model never looks at wall-clock time.
    """
    time_usec: int
    msg: Any


def usecs_to_seconds(usecs: int) -> float:
    return usecs / USECS_PER_SEC


def message_kind(message) -> MessageKind:
    """Tag a message with the variant the telemetry model dispatches on."""
    if isinstance(message, TimestampedMessage):
        return MessageKind.TIMESTAMPED
    get_type = getattr(message, "get_type", None)
    if get_type is None:
        return MessageKind.OTHER
    msg_type = get_type()
    if msg_type == MessageKind.AIRSPEED.value:
        return MessageKind.AIRSPEED
    if msg_type == MessageKind.STATUS_TEXT.value:
        return MessageKind.STATUS_TEXT
    return MessageKind.OTHER


def status_text(msg) -> str:
    """Return STATUSTEXT text as str, tolerating NUL-padded bytes."""
    text = getattr(msg, "text", "")
    if isinstance(text, (bytes, bytearray)):
        text = text.decode("utf-8", errors="ignore")
    return str(text).rstrip("\x00").strip()
