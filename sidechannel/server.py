# mypy: ignore-errors
"""Backend side of the side channel: read requests, write responses."""
import logging
import threading
from collections.abc import Callable

from .channel import read_some
from .constants import MAX_BUFFER, MAX_DATA, Command, Status
from .errors import BadMessage, ChannelTimeout, TooBig
from .frames import Message, parse_message, write_message

Handler = Callable[[Message], tuple[int, bytes]]
Lookup = Callable[[str], "tuple[str, bytes | str] | None"]


def snmp_handler(lookup: Lookup) -> Handler:
    """Wrap an OID lookup as an SNMP_GET or SNMP_GET_NEXT handler.

    *lookup* receives the requested OID and returns the ``(oid, value)``
    pair to report, or None when the device gave no answer.
    """

    def handler(message: Message) -> tuple[int, bytes]:
        oid = message.payload.partition(b"\0")[0].decode(errors="replace")
        found = lookup(oid)
        if found is None:
            return Status.NO_RESPONSE, b""

        key, value = found
        if isinstance(value, str):
            value = value.encode()
        return Status.OK, key.encode() + b"\0" + value

    return handler


class Server:
    """Answer side-channel requests on behalf of a backend."""

    def __init__(self, channel, handlers: dict[int, Handler] = None, timeout: float = 1.0):
        """Initialize server.

        Args:
            channel: Side channel handle owned by the backend
            handlers: Optional mapping of command to handler callback
            timeout: Seconds to wait for each read and write
        """
        self.channel = channel
        self.handlers: dict[int, Handler] = dict(handlers or {})
        self.timeout = timeout
        self._running = threading.Event()

    def register(self, command: int, handler: Handler) -> None:
        """Register *handler* for *command*.

        The handler receives the request :class:`Message` and returns a
        ``(status, payload)`` tuple.
        """
        self.handlers[Command(command)] = handler

    def snmp(self, get: Lookup = None, get_next: Lookup = None) -> None:
        """Register SNMP_GET and SNMP_GET_NEXT lookups."""
        if get is not None:
            self.register(Command.SNMP_GET, snmp_handler(get))
        if get_next is not None:
            self.register(Command.SNMP_GET_NEXT, snmp_handler(get_next))

    def serve_once(self, timeout: float = None) -> bool:
        """Read and answer one request.

        Returns:
            False when the peer closed the channel, True otherwise

        Raises:
            ChannelTimeout: If no request arrived in time
        """
        timeout = self.timeout if timeout is None else timeout

        raw = read_some(self.channel, MAX_BUFFER, timeout)
        if not raw:
            return False

        try:
            message = parse_message(raw, MAX_DATA)
        except TooBig as e:
            logging.debug("Request too big: %s", e)
            write_message(self.channel, e.command, e.status, b"", timeout)
            return True
        except BadMessage as e:
            logging.debug("Dropping bad request: %s", e)
            return True

        status, payload = self._handle_message(message)
        try:
            write_message(self.channel, message.command, status, payload, timeout)
        except TooBig as e:
            logging.error("Response to %s too big: %s", message.command.name, e)
            write_message(self.channel, message.command, e.status, b"", timeout)
        return True

    def _handle_message(self, message: Message) -> tuple[int, bytes]:
        """Dispatch a request to its handler."""
        handler = self.handlers.get(message.command)
        if handler is None:
            return Status.NOT_IMPLEMENTED, b""

        try:
            status, payload = handler(message)
        except Exception as e:
            logging.error("Error handling %s: %s", message.command.name, e)
            return Status.IO_ERROR, b""

        if isinstance(payload, str):
            payload = payload.encode()
        return status, payload

    def serve_forever(self):
        """Answer requests until :meth:`stop` is called or the peer closes."""
        self._running.set()
        logging.info("Side-channel server listening on %r", self.channel)

        try:
            while self._running.is_set():
                try:
                    if not self.serve_once():
                        break
                except ChannelTimeout:
                    continue
        finally:
            self._running.clear()

    def stop(self):
        """Stop the server after the current wait."""
        self._running.clear()
