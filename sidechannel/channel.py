"""Timeout-bounded byte I/O on a channel descriptor."""

import logging
import os
from typing import Any

from .constants import Direction, Readiness
from .errors import ChannelIOError, ChannelTimeout
from .multiplex import retry_transient, wait_ready


class Channel:
    """Handle for one end of a side channel or back channel.

    Wraps a descriptor number or any object with ``fileno()`` (sockets,
    pipes, files). The descriptor is owned by the surrounding process;
    :meth:`close` only closes it when the channel was created with
    ``owned=True``.
    """

    def __init__(self, fd: Any, owned: bool = False):
        """Initialize channel.

        Args:
            fd: Descriptor number or object with ``fileno()``
            owned: Whether :meth:`close` should close the descriptor
        """
        self._source = fd
        self._fd = fd if isinstance(fd, int) else fd.fileno()
        self.owned = owned

    def fileno(self) -> int:
        """Return the underlying descriptor number."""
        return self._fd

    def wait(self, direction: Direction, timeout: float) -> Readiness:
        """Wait for readiness, see :func:`sidechannel.multiplex.wait_ready`."""
        return wait_ready(self._fd, direction, timeout)

    def read_some(self, max_bytes: int, timeout: float) -> bytes:
        """Read up to *max_bytes* once the channel is readable."""
        return read_some(self, max_bytes, timeout)

    def write_all(self, data: bytes, timeout: float) -> int:
        """Write every byte of *data*, see :func:`write_all`."""
        return write_all(self, data, timeout)

    def close(self):
        """Close the descriptor if this channel owns it."""
        if not self.owned:
            return
        if hasattr(self._source, "close"):
            self._source.close()
        else:
            os.close(self._fd)

    def __enter__(self) -> "Channel":
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self) -> str:
        return f"Channel(fd={self._fd})"


def _fd_of(channel: Any) -> int:
    return channel if isinstance(channel, int) else channel.fileno()


def read_some(channel: Any, max_bytes: int, timeout: float) -> bytes:
    """Wait until *channel* is readable and perform a single read.

    Args:
        channel: Channel, descriptor number or object with ``fileno()``
        max_bytes: Upper bound on the bytes returned
        timeout: Seconds to wait; negative blocks forever, 0 polls

    Returns:
        The bytes read; empty at end of file

    Raises:
        ChannelTimeout: If the channel did not become readable in time
        ChannelIOError: If the wait or the read fails
    """
    fd = _fd_of(channel)

    if wait_ready(fd, Direction.READABLE, timeout) is Readiness.TIMED_OUT:
        raise ChannelTimeout(f"fd {fd} not readable within {timeout}s")

    try:
        return retry_transient(os.read, fd, max_bytes)
    except OSError as e:
        raise ChannelIOError(f"read from fd {fd} failed: {e}") from e


def write_all(channel: Any, data: bytes, timeout: float) -> int:
    """Write all of *data*, waiting for writability before each write.

    Partial writes are continued from where they stopped; interrupted and
    would-block writes go back to waiting.

    Returns:
        Number of bytes written, always ``len(data)``

    Raises:
        ChannelTimeout: If the channel stopped being writable in time
        ChannelIOError: If a write fails for any other reason
    """
    fd = _fd_of(channel)
    view = memoryview(data)
    total = 0

    while total < len(view):
        try:
            total += retry_transient(_write_once, fd, view[total:], timeout)
        except ChannelTimeout:
            logging.debug("fd %d: write timed out after %d of %d bytes", fd, total, len(view))
            raise

    return total


def _write_once(fd: int, chunk: memoryview, timeout: float) -> int:
    # Transient write failures propagate to retry_transient, which waits again.
    if wait_ready(fd, Direction.WRITABLE, timeout) is Readiness.TIMED_OUT:
        raise ChannelTimeout(f"fd {fd} not writable within {timeout}s")

    try:
        return os.write(fd, chunk)
    except (InterruptedError, BlockingIOError):
        raise
    except OSError as e:
        raise ChannelIOError(f"write to fd {fd} failed: {e}") from e
