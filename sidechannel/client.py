"""Side-channel requests issued by filters, drivers and port monitors."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .constants import MAX_DATA, Bidi, Command, Connected, DeviceState, Status
from .errors import SideChannelError
from .frames import read_message, write_message

WalkCallback = Callable[[str, bytes], Any]


@dataclass
class Response:
    """Status and payload of one request."""

    status: Status | int
    payload: bytes = b""


@dataclass
class QueryResult:
    """Value returned for a single key."""

    status: Status | int
    value: bytes = b""

    @property
    def length(self) -> int:
        """Length of the value, excluding any terminator."""
        return len(self.value)


# ----------------------------------------------------------------------------
# Request/response
# ----------------------------------------------------------------------------


def do_request(channel: Any, command: int, payload: bytes = b"", timeout: float = 1.0) -> Response:
    """Send one request and wait for its response.

    Programs must be prepared for ``Status.TIMEOUT`` and
    ``Status.NOT_IMPLEMENTED``, which indicate that the backend or device
    does not support the command.

    Args:
        channel: Side channel to use
        command: Command to send
        payload: Request payload
        timeout: Seconds to wait for each of the write and the read

    Returns:
        Response whose status is the peer's, ``Status.TIMEOUT`` if the
        exchange failed locally, or ``Status.BAD_MESSAGE`` if the response
        answers a different command or carries no status
    """
    try:
        write_message(channel, command, Status.NONE, payload, timeout)
    except SideChannelError as e:
        logging.debug("Request %s not sent: %s", command, e)
        return Response(Status.TIMEOUT)

    try:
        message = read_message(channel, MAX_DATA, timeout)
    except SideChannelError as e:
        logging.debug("No response to %s: %s", command, e)
        return Response(Status.TIMEOUT)

    if message.command != command:
        logging.debug("Response command %s does not match request %s", message.command, command)
        return Response(Status.BAD_MESSAGE)

    if message.status == Status.NONE:
        logging.debug("Response to %s carries no status", command)
        return Response(Status.BAD_MESSAGE)

    return Response(message.status, message.payload)


def _split_value(payload: bytes) -> tuple[bytes, bytes]:
    """Split a ``key\\0value`` payload."""
    key, _, value = payload.partition(b"\0")
    return key, value


# ----------------------------------------------------------------------------
# Single query
# ----------------------------------------------------------------------------


def query_one(channel: Any, key: str, capacity: int = MAX_DATA, timeout: float = 1.0) -> QueryResult:
    """Query the value of one OID.

    *key* is a numeric OID such as ``".1.3.6.1.2.1.43"``; symbolic MIB
    names must be converted first. *capacity* is the size of the caller's
    value buffer including room for a terminator, so the longest value
    accepted is ``capacity - 1`` bytes.

    ``Status.NOT_IMPLEMENTED`` is returned by backends without SNMP
    support and ``Status.NO_RESPONSE`` when the device does not answer.
    """
    if not key or capacity < 2:
        return QueryResult(Status.BAD_MESSAGE)

    response = do_request(channel, Command.SNMP_GET, key.encode() + b"\0", timeout)
    if response.status != Status.OK:
        return QueryResult(response.status)

    _, value = _split_value(response.payload)
    if len(value) + 1 > capacity:
        return QueryResult(Status.TOO_BIG)

    return QueryResult(Status.OK, value)


# ----------------------------------------------------------------------------
# Walk
# ----------------------------------------------------------------------------


class Walk:
    """Iterator over every OID value under a scope.

    Each step sends a get-next request for the previous OID. Iteration
    ends when the backend returns an OID outside ``scope + "."``, repeats
    the last OID, or reports a status other than OK. The final status is
    available as :attr:`status` once iteration has stopped.
    """

    def __init__(self, channel: Any, scope: str, timeout: float = 1.0):
        self.channel = channel
        self.scope = scope
        self.timeout = timeout
        self.status: Status | int | None = None
        self._prefix = scope.encode() + b"."
        self._current = scope.encode()
        self._last = b""

        if not scope:
            self.status = Status.BAD_MESSAGE

    def __iter__(self) -> "Walk":
        return self

    def __next__(self) -> tuple[str, bytes]:
        if self.status is not None:
            raise StopIteration

        response = do_request(self.channel, Command.SNMP_GET_NEXT, self._current + b"\0", self.timeout)
        if response.status != Status.OK:
            logging.debug("Walk of %s stopped with %s", self.scope, response.status)
            self.status = response.status
            raise StopIteration

        key, value = _split_value(response.payload)
        if not key.startswith(self._prefix) or key == self._last:
            logging.debug("Walk of %s done at %r", self.scope, key)
            self.status = Status.OK
            raise StopIteration

        self._current = self._last = key
        return key.decode(errors="replace"), value


def iter_walk(channel: Any, scope: str, timeout: float = 1.0) -> Walk:
    """Return a :class:`Walk` over the OIDs under *scope*."""
    return Walk(channel, scope, timeout)


def walk(channel: Any, scope: str, timeout: float, on_result: WalkCallback) -> Status | int:
    """Query every OID under *scope* and pass each value to *on_result*.

    *timeout* applies to each query; the total time depends on the number
    of values found. *on_result* is called as ``on_result(oid, value)`` in
    the order the backend returns them.

    Returns:
        ``Status.OK`` when the subtree was walked, otherwise the first
        failing status (``Status.NO_RESPONSE`` when the device did not
        answer the first query)
    """
    if on_result is None:
        return Status.BAD_MESSAGE

    results = Walk(channel, scope, timeout)
    for oid, value in results:
        on_result(oid, value)
    return results.status


# ----------------------------------------------------------------------------
# Client
# ----------------------------------------------------------------------------


class Client:
    """Side-channel client bound to one channel and a default timeout."""

    def __init__(self, channel: Any, timeout: float = 1.0, walk_timeout: float | None = None):
        """Initialize client.

        Args:
            channel: Side channel handle owned by the caller
            timeout: Default timeout in seconds for every request
            walk_timeout: Timeout for each query of a walk, defaults to *timeout*
        """
        self.channel = channel
        self.timeout = timeout
        self.walk_timeout = timeout if walk_timeout is None else walk_timeout
        self.last_status: Status | int | None = None

    def _timeout(self, timeout: float | None) -> float:
        return self.timeout if timeout is None else timeout

    def do_request(self, command: int, payload: bytes = b"", timeout: float | None = None) -> Response:
        """Send a request and return the response."""
        response = do_request(self.channel, command, payload, self._timeout(timeout))
        self.last_status = response.status
        return response

    def snmp_get(self, oid: str, capacity: int = MAX_DATA, timeout: float | None = None) -> QueryResult:
        """Query one OID, see :func:`query_one`."""
        result = query_one(self.channel, oid, capacity, self._timeout(timeout))
        self.last_status = result.status
        return result

    def snmp_walk(self, oid: str, on_result: WalkCallback, timeout: float | None = None) -> Status | int:
        """Walk the OIDs under *oid*, see :func:`walk`."""
        self.last_status = walk(self.channel, oid, self.walk_timeout if timeout is None else timeout, on_result)
        return self.last_status

    def iter_walk(self, oid: str, timeout: float | None = None) -> Walk:
        """Return a :class:`Walk` iterator over the OIDs under *oid*."""
        return Walk(self.channel, oid, self.walk_timeout if timeout is None else timeout)

    def soft_reset(self, timeout: float | None = None) -> Status | int:
        """Ask the backend to do a soft reset."""
        return self.do_request(Command.SOFT_RESET, timeout=timeout).status

    def drain_output(self, timeout: float | None = None) -> Status | int:
        """Ask the backend to drain all pending output."""
        return self.do_request(Command.DRAIN_OUTPUT, timeout=timeout).status

    def _byte_value(self, command: Command, timeout: float | None) -> int | None:
        response = self.do_request(command, timeout=timeout)
        if response.status != Status.OK or not response.payload:
            return None
        return response.payload[0]

    def get_bidi(self, timeout: float | None = None) -> Bidi | None:
        """Return whether the device supports bidirectional I/O."""
        value = self._byte_value(Command.GET_BIDI, timeout)
        return None if value is None else Bidi(value & 1)

    def get_state(self, timeout: float | None = None) -> DeviceState | None:
        """Return the device state bits."""
        value = self._byte_value(Command.GET_STATE, timeout)
        return None if value is None else DeviceState(value)

    def get_connected(self, timeout: float | None = None) -> Connected | None:
        """Return whether the backend is connected to the device."""
        value = self._byte_value(Command.GET_CONNECTED, timeout)
        return None if value is None else Connected(value & 1)

    def get_device_id(self, timeout: float | None = None) -> str | None:
        """Return the IEEE-1284 device ID string."""
        response = self.do_request(Command.GET_DEVICE_ID, timeout=timeout)
        if response.status != Status.OK:
            return None
        return response.payload.rstrip(b"\0").decode(errors="replace")
