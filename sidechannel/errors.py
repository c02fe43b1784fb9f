"""Exceptions raised by the side-channel transport and framer."""

from .constants import Status


class SideChannelError(Exception):
    """Base class for side-channel failures.

    Every subclass carries the :class:`Status` a request reports when the
    failure is mapped back into a protocol outcome.
    """

    status = Status.IO_ERROR


class ChannelTimeout(SideChannelError, TimeoutError):
    """The channel did not become ready before the timeout elapsed."""

    status = Status.TIMEOUT


class ChannelIOError(SideChannelError, OSError):
    """A non-transient failure of the underlying descriptor."""

    status = Status.IO_ERROR


class BadMessage(SideChannelError, ValueError):
    """A frame is structurally invalid."""

    status = Status.BAD_MESSAGE


class InvalidCommand(BadMessage):
    """A command code is outside the valid range."""


class TooBig(SideChannelError, ValueError):
    """A payload does not fit the destination or the received bytes."""

    status = Status.TOO_BIG

    def __init__(self, message: str, command: int | None = None):
        super().__init__(message)
        self.command = command
