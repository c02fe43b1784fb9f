# Copyright 2025 Maida.AI
# SPDX-License-Identifier: Apache-2.0
r"""sidechannel - Out-of-band control messages between a device backend and its filters.

A backend and its auxiliary processes (filters, drivers, port monitors)
share two descriptors besides the print data stream:

- a framed, bidirectional side channel carrying request/response
  messages (soft reset, drain output, device state, SNMP get and walk)
- an unframed back channel carrying status bytes from driver to filter

The package provides:
- Timeout-bounded readiness waits and byte I/O with transparent EINTR retry
- Bounds-checked message framing
- Client requests: single SNMP query and SNMP walk (callback or iterator)
- A Server for the backend side that dispatches requests to handlers
- Settings loaded from the environment
"""

# Import public API from modules
from . import backchannel
from .channel import Channel, read_some, write_all
from .client import (
    Client,
    QueryResult,
    Response,
    Walk,
    do_request,
    iter_walk,
    query_one,
    walk,
)
from .config import Settings
from .constants import (
    COMMAND_MAX,
    COMMAND_MIN,
    HEADER_SIZE,
    MAX_BUFFER,
    MAX_DATA,
    Bidi,
    Command,
    Connected,
    DeviceState,
    Direction,
    Readiness,
    Status,
)
from .errors import (
    BadMessage,
    ChannelIOError,
    ChannelTimeout,
    InvalidCommand,
    SideChannelError,
    TooBig,
)
from .frames import (
    Message,
    pack_message,
    parse_message,
    read_message,
    write_message,
)
from .multiplex import retry_transient, wait_ready
from .server import Server, snmp_handler

# Public API exports
__all__ = [
    # Core classes
    "Channel",
    "Client",
    "Server",
    "Message",
    "Response",
    "QueryResult",
    "Walk",
    "Settings",
    # Constants and enums
    "HEADER_SIZE",
    "MAX_DATA",
    "MAX_BUFFER",
    "COMMAND_MIN",
    "COMMAND_MAX",
    "Command",
    "Status",
    "DeviceState",
    "Bidi",
    "Connected",
    "Direction",
    "Readiness",
    # Errors
    "SideChannelError",
    "ChannelTimeout",
    "ChannelIOError",
    "BadMessage",
    "InvalidCommand",
    "TooBig",
    # Channel I/O
    "wait_ready",
    "retry_transient",
    "read_some",
    "write_all",
    "backchannel",
    # Framing
    "pack_message",
    "parse_message",
    "read_message",
    "write_message",
    # Requests
    "do_request",
    "query_one",
    "walk",
    "iter_walk",
    "snmp_handler",
]
