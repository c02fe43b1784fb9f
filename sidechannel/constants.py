"""Side-channel protocol constants and enums."""

from enum import IntEnum, IntFlag

# ----------------------------------------------------------------------------
# Wire constants
# ----------------------------------------------------------------------------

HEADER_SIZE = 4  # command, status, 2-byte length
MAX_DATA = 65535  # largest payload the length field can carry
MAX_BUFFER = HEADER_SIZE + MAX_DATA + 1  # 65540, read size for one frame

# ----------------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------------


class Command(IntEnum):
    """Side-channel request/response commands."""

    NONE = 0  # never valid on the wire
    SOFT_RESET = 1  # Do a soft reset
    DRAIN_OUTPUT = 2  # Drain all pending output
    GET_BIDI = 3  # Return bidirectional capabilities
    GET_DEVICE_ID = 4  # Return the IEEE-1284 device ID
    GET_STATE = 5  # Return the device state
    SNMP_GET = 6  # Query an SNMP OID
    SNMP_GET_NEXT = 7  # Query the next SNMP OID
    GET_CONNECTED = 8  # Return whether the backend is connected


COMMAND_MIN = Command.SOFT_RESET
COMMAND_MAX = 9  # sentinel, one past the last valid command


def is_valid_command(value: int) -> bool:
    """Return True if *value* is a command allowed on the wire."""
    return COMMAND_MIN <= value < COMMAND_MAX


# ----------------------------------------------------------------------------
# Status codes
# ----------------------------------------------------------------------------


class Status(IntEnum):
    """Outcome of a side-channel command."""

    NONE = 0  # placeholder sent with requests
    OK = 1
    IO_ERROR = 2
    TIMEOUT = 3
    NO_RESPONSE = 4  # device did not respond
    BAD_MESSAGE = 5
    TOO_BIG = 6  # response too big for the buffer
    NOT_IMPLEMENTED = 7


def as_status(value: int) -> "Status | int":
    """Map a status byte to :class:`Status`, passing unknown peer codes through."""
    try:
        return Status(value)
    except ValueError:
        return value


# ----------------------------------------------------------------------------
# Command payload values
# ----------------------------------------------------------------------------


class DeviceState(IntFlag):
    """Bits returned by GET_STATE."""

    OFFLINE = 0x00
    ONLINE = 0x01
    BUSY = 0x02
    ERROR = 0x04
    MEDIA_LOW = 0x10
    MEDIA_EMPTY = 0x20
    MARKER_LOW = 0x40
    MARKER_EMPTY = 0x80


class Bidi(IntEnum):
    """Values returned by GET_BIDI."""

    NOT_SUPPORTED = 0
    SUPPORTED = 1


class Connected(IntEnum):
    """Values returned by GET_CONNECTED."""

    NOT_CONNECTED = 0
    CONNECTED = 1


# ----------------------------------------------------------------------------
# Multiplexing
# ----------------------------------------------------------------------------


class Direction(IntEnum):
    """Readiness a caller can wait for."""

    READABLE = 1
    WRITABLE = 2


class Readiness(IntEnum):
    """Result of waiting on a channel."""

    READY = 1
    TIMED_OUT = 2
