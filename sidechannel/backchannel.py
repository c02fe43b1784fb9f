"""Unframed status bytes between a driver and its filter."""

import logging
from typing import Any

from .channel import read_some, write_all
from .errors import ChannelTimeout


def read(channel: Any, max_bytes: int, timeout: float = 0.0) -> bytes:
    """Read up to *max_bytes* from the back channel.

    Use a timeout of 0.0 to return immediately when nothing is pending and
    a negative timeout to wait indefinitely.

    Raises:
        ChannelTimeout: If no data arrived in time
        ChannelIOError: If the descriptor failed
    """
    data = read_some(channel, max_bytes, timeout)
    logging.debug("back channel: read %d bytes", len(data))
    return data


def write(channel: Any, data: bytes, timeout: float = 1.0) -> int:
    """Write all of *data* to the back channel and return its length."""
    try:
        return write_all(channel, data, timeout)
    except ChannelTimeout:
        logging.debug("back channel: %d bytes not written within %ss", len(data), timeout)
        raise
