"""Side-channel message framing.

Each message has a fixed 4-byte header followed by the payload::

    Byte(s)  Description
    -------  ------------------------------------
    0        Command code
    1        Status code
    2-3      Payload length (network byte order)
    4-N      Payload
"""

import struct
from dataclasses import dataclass
from typing import Any

from .channel import read_some, write_all
from .constants import HEADER_SIZE, MAX_BUFFER, MAX_DATA, Command, Status, as_status, is_valid_command
from .errors import BadMessage, InvalidCommand, TooBig

_HEADER = struct.Struct(">BBH")

# ----------------------------------------------------------------------------
# Message structure
# ----------------------------------------------------------------------------


@dataclass
class Message:
    """One side-channel request or response."""

    command: Command
    status: Status | int = Status.NONE
    payload: bytes = b""

    def __post_init__(self) -> None:
        if isinstance(self.payload, str):  # type: ignore[unreachable]
            self.payload = self.payload.encode()  # type: ignore[unreachable]


# ----------------------------------------------------------------------------
# Message serialization/deserialization
# ----------------------------------------------------------------------------


def pack_message(command: int, status: int = Status.NONE, payload: bytes = b"") -> bytes:
    """Pack a message into its wire format.

    Args:
        command: Command code, must be in the valid range
        status: Status code; requests send ``Status.NONE``
        payload: Message payload

    Returns:
        Header and payload as one bytes object

    Raises:
        InvalidCommand: If the command is outside the valid range
        TooBig: If the payload exceeds 65535 bytes
    """
    if not is_valid_command(command):
        raise InvalidCommand(f"invalid command code {command}")
    if len(payload) > MAX_DATA:
        raise TooBig(f"payload of {len(payload)} bytes exceeds {MAX_DATA}", command)

    return _HEADER.pack(command, status, len(payload)) + bytes(payload)


def parse_message(raw: bytes, capacity: int | None = MAX_DATA) -> Message:
    """Parse one received message.

    Args:
        raw: Bytes received from the channel
        capacity: Largest payload the caller accepts; None accepts only
            empty payloads

    Returns:
        Parsed message

    Raises:
        BadMessage: If the message is too short or the command is invalid
        TooBig: If the declared length exceeds the capacity or the bytes
            actually received
    """
    if len(raw) < HEADER_SIZE:
        raise BadMessage(f"message of {len(raw)} bytes is shorter than the header")

    command, status, length = _HEADER.unpack_from(raw)
    if not is_valid_command(command):
        raise BadMessage(f"invalid command code {command}")

    if length > 0 and capacity is None:
        raise TooBig(f"{length} byte payload but no buffer supplied", command)
    if capacity is not None and length > capacity:
        raise TooBig(f"{length} byte payload exceeds capacity of {capacity}", command)
    if length > len(raw) - HEADER_SIZE:
        raise TooBig(f"{length} byte payload but only {len(raw) - HEADER_SIZE} received", command)

    return Message(
        command=Command(command),
        status=as_status(status),
        payload=bytes(raw[HEADER_SIZE : HEADER_SIZE + length]),
    )


# ----------------------------------------------------------------------------
# Framed channel I/O
# ----------------------------------------------------------------------------


def write_message(
    channel: Any, command: int, status: int = Status.NONE, payload: bytes = b"", timeout: float = 1.0
) -> None:
    """Pack a message and write all of it to *channel*."""
    write_all(channel, pack_message(command, status, payload), timeout)


def read_message(channel: Any, capacity: int | None = MAX_DATA, timeout: float = 1.0) -> Message:
    """Read one message from *channel* with a single bounded read.

    Raises:
        ChannelTimeout: If nothing arrived in time
        ChannelIOError: If the descriptor failed
        BadMessage: If the data is not a valid message (including EOF)
        TooBig: If the payload does not fit
    """
    return parse_message(read_some(channel, MAX_BUFFER, timeout), capacity)
