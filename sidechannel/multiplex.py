"""Timeout-bounded readiness waits on a descriptor."""

import os
import selectors
from collections.abc import Callable
from typing import Any, TypeVar

from .constants import Direction, Readiness
from .errors import ChannelIOError

T = TypeVar("T")

# poll() and select() accept regular files and character devices, epoll does not.
_Selector = getattr(selectors, "PollSelector", selectors.SelectSelector)

_EVENTS = {
    Direction.READABLE: selectors.EVENT_READ,
    Direction.WRITABLE: selectors.EVENT_WRITE,
}


def retry_transient(func: Callable[..., T], *args: Any) -> T:
    """Call *func* until it stops failing with EINTR or EAGAIN.

    The arguments are passed unchanged on every attempt, so a wait is
    retried with its original timeout.
    """
    while True:
        try:
            return func(*args)
        except (InterruptedError, BlockingIOError):
            continue


def _select(fd: int, events: int, timeout: float | None) -> bool:
    with _Selector() as selector:
        selector.register(fd, events)
        return bool(selector.select(timeout))


def wait_ready(channel: Any, direction: Direction, timeout: float) -> Readiness:
    """Wait for *channel* to become readable or writable.

    Interruptions that reach this function are retried with the full
    *timeout*. Python itself retries an interrupted poll() or select()
    internally with the time remaining (PEP 475), so most signals never
    get here and the overall wait stays bounded by *timeout*.

    Args:
        channel: Descriptor number or object with ``fileno()``
        direction: Readiness to wait for
        timeout: Seconds to wait; negative blocks forever, 0 polls

    Returns:
        ``Readiness.READY`` or ``Readiness.TIMED_OUT``

    Raises:
        ChannelIOError: If the wait primitive itself fails
    """
    fd = channel if isinstance(channel, int) else channel.fileno()
    limit = None if timeout < 0 else timeout

    try:
        os.fstat(fd)
        ready = retry_transient(_select, fd, _EVENTS[Direction(direction)], limit)
    except (OSError, ValueError) as e:
        raise ChannelIOError(f"wait on fd {fd} failed: {e}") from e

    return Readiness.READY if ready else Readiness.TIMED_OUT
