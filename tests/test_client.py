"""Tests for side-channel requests, single queries and walks."""

import threading

import pytest
from peers import scripted

from sidechannel import (
    Bidi,
    Client,
    Command,
    Connected,
    DeviceState,
    Status,
    do_request,
    iter_walk,
    pack_message,
    query_one,
    read_message,
    walk,
)


def answer_once(channel, raw: bytes) -> threading.Thread:
    """Reply to the next request on *channel* with the raw bytes *raw*."""

    def run():
        read_message(channel, timeout=2.0)
        channel.write_all(raw, 2.0)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


def test_do_request_returns_peer_status(backend) -> None:
    """Test the peer's status and payload reach the caller."""
    requester, _ = backend({Command.GET_STATE: lambda message: (Status.OK, b"\x03")})

    response = do_request(requester, Command.GET_STATE, timeout=1.0)

    assert response.status == Status.OK
    assert response.payload == b"\x03"


def test_do_request_not_implemented(backend) -> None:
    """Test commands without a handler report NOT_IMPLEMENTED."""
    requester, _ = backend()

    assert do_request(requester, Command.DRAIN_OUTPUT, timeout=1.0).status == Status.NOT_IMPLEMENTED


def test_do_request_timeout(channel_pair) -> None:
    """Test a silent peer yields TIMEOUT."""
    requester, _ = channel_pair

    assert do_request(requester, Command.GET_BIDI, timeout=0.05).status == Status.TIMEOUT


def test_do_request_invalid_command_is_not_sent(channel_pair) -> None:
    """Test a request that cannot be encoded reports TIMEOUT."""
    requester, _ = channel_pair

    assert do_request(requester, Command.NONE, timeout=0.05).status == Status.TIMEOUT


def test_do_request_command_mismatch(channel_pair) -> None:
    """Test a response to another command is a bad message."""
    requester, peer = channel_pair
    thread = answer_once(peer, pack_message(Command.GET_STATE, Status.OK, b"\x01"))

    response = do_request(requester, Command.GET_BIDI, timeout=1.0)
    thread.join()

    assert response.status == Status.BAD_MESSAGE


def test_do_request_truncated_response(channel_pair) -> None:
    """Test an undecodable response is reported as TIMEOUT."""
    requester, peer = channel_pair
    thread = answer_once(peer, bytes([Command.GET_BIDI, Status.OK, 0x00, 0x10]) + b"\x01")

    response = do_request(requester, Command.GET_BIDI, timeout=1.0)
    thread.join()

    assert response.status == Status.TIMEOUT


def test_query_one_empty_key_touches_nothing() -> None:
    """Test an empty key fails before any I/O."""
    assert query_one(None, "", 16, 1.0).status == Status.BAD_MESSAGE


def test_query_one_small_capacity() -> None:
    """Test a capacity without room for value and terminator is rejected."""
    assert query_one(None, "1.3.6.1", 1, 1.0).status == Status.BAD_MESSAGE


def test_query_one_value(backend) -> None:
    """Test the value after the echoed key is returned."""
    lookup = scripted(("1.3.6.1", b"ABC"))
    requester, _ = backend(get=lookup)

    result = query_one(requester, "1.3.6.1", 16, 1.0)

    assert result.status == Status.OK
    assert result.value == b"ABC"
    assert result.length == 3
    assert lookup.requests == ["1.3.6.1"]


def test_query_one_value_too_big(backend) -> None:
    """Test a value without room for its terminator is too big."""
    requester, _ = backend(get=scripted(("1.3.6.1", b"ABC")))

    assert query_one(requester, "1.3.6.1", 3, 1.0).status == Status.TOO_BIG


def test_query_one_exact_fit(backend) -> None:
    """Test a value that leaves room for the terminator fits."""
    requester, _ = backend(get=scripted(("1.3.6.1", b"ABC")))

    assert query_one(requester, "1.3.6.1", 4, 1.0).value == b"ABC"


def test_query_one_passes_through_peer_status(backend) -> None:
    """Test non-OK statuses are returned unchanged."""
    requester, _ = backend(get=scripted())

    result = query_one(requester, "1.3.6.1", 16, 1.0)

    assert result.status == Status.NO_RESPONSE
    assert result.value == b""


def test_walk_stops_at_scope_end(backend) -> None:
    """Test the walk delivers in-scope values in order and stops outside the scope."""
    lookup = scripted(("1.3.6.1.1", b"one"), ("1.3.6.1.2", b"two"), ("1.3.6.2", b"out"))
    requester, _ = backend(get_next=lookup)
    results = []

    status = walk(requester, "1.3.6.1", 1.0, lambda oid, value: results.append((oid, value)))

    assert status == Status.OK
    assert results == [("1.3.6.1.1", b"one"), ("1.3.6.1.2", b"two")]
    assert lookup.requests == ["1.3.6.1", "1.3.6.1.1", "1.3.6.1.2"]


def test_walk_loop_guard(backend) -> None:
    """Test a repeated OID ends the walk."""
    lookup = scripted(("1.3.6.1.1", b"one"), ("1.3.6.1.1", b"one"), ("1.3.6.1.2", b"never"))
    requester, _ = backend(get_next=lookup)
    results = []

    status = walk(requester, "1.3.6.1", 1.0, lambda oid, value: results.append(oid))

    assert status == Status.OK
    assert results == ["1.3.6.1.1"]
    assert len(lookup.requests) == 2


def test_walk_prefix_requires_separator(backend) -> None:
    """Test a sibling sharing the textual prefix is outside the scope."""
    requester, _ = backend(get_next=scripted(("1.3.6.10", b"sibling")))
    results = []

    assert walk(requester, "1.3.6.1", 1.0, lambda oid, value: results.append(oid)) == Status.OK
    assert results == []


def test_walk_first_query_fails(backend) -> None:
    """Test the first failing status becomes the walk result."""
    requester, _ = backend(get_next=scripted())
    results = []

    assert walk(requester, "1.3.6.1", 1.0, lambda oid, value: results.append(oid)) == Status.NO_RESPONSE
    assert results == []


def test_walk_not_implemented(backend) -> None:
    """Test backends without SNMP support end the walk."""
    requester, _ = backend()

    assert walk(requester, "1.3.6.1", 1.0, lambda oid, value: None) == Status.NOT_IMPLEMENTED


def test_walk_failure_after_results(backend) -> None:
    """Test a failure mid-walk is returned after delivering earlier values."""
    requester, _ = backend(get_next=scripted(("1.3.6.1.1", b"one")))
    results = []

    assert walk(requester, "1.3.6.1", 1.0, lambda oid, value: results.append(oid)) == Status.NO_RESPONSE
    assert results == ["1.3.6.1.1"]


def test_walk_rejects_missing_arguments() -> None:
    """Test an empty scope or missing callback fails before any I/O."""
    assert walk(None, "", 1.0, lambda oid, value: None) == Status.BAD_MESSAGE
    assert walk(None, "1.3.6.1", 1.0, None) == Status.BAD_MESSAGE


def test_iter_walk(backend) -> None:
    """Test the iterator form follows the same termination rules."""
    requester, _ = backend(get_next=scripted(("1.3.6.1.1", "a"), ("1.3.6.1.2", "b"), ("1.3.6.2", "c")))

    results = iter_walk(requester, "1.3.6.1", 1.0)
    assert results.status is None
    assert list(results) == [("1.3.6.1.1", b"a"), ("1.3.6.1.2", b"b")]
    assert results.status == Status.OK
    assert list(results) == []


def test_client_helpers(backend) -> None:
    """Test the typed client helpers."""
    handlers = {
        Command.GET_BIDI: lambda message: (Status.OK, bytes([Bidi.SUPPORTED])),
        Command.GET_STATE: lambda message: (Status.OK, bytes([DeviceState.ONLINE | DeviceState.MEDIA_LOW])),
        Command.GET_CONNECTED: lambda message: (Status.OK, bytes([Connected.CONNECTED])),
        Command.GET_DEVICE_ID: lambda message: (Status.OK, b"MFG:Acme;MDL:Laser 9;"),
        Command.SOFT_RESET: lambda message: (Status.OK, b""),
    }
    requester, _ = backend(handlers)
    client = Client(requester, timeout=1.0)

    assert client.get_bidi() is Bidi.SUPPORTED
    assert client.get_state() == DeviceState.ONLINE | DeviceState.MEDIA_LOW
    assert client.get_connected() is Connected.CONNECTED
    assert client.get_device_id() == "MFG:Acme;MDL:Laser 9;"
    assert client.soft_reset() == Status.OK
    assert client.drain_output() == Status.NOT_IMPLEMENTED
    assert client.last_status == Status.NOT_IMPLEMENTED


def test_client_helper_failure_returns_none(backend) -> None:
    """Test helpers return None when the backend does not answer OK."""
    requester, _ = backend()
    client = Client(requester, timeout=1.0)

    assert client.get_state() is None
    assert client.last_status == Status.NOT_IMPLEMENTED


def test_client_snmp(backend) -> None:
    """Test SNMP get and walk through the client."""
    requester, _ = backend(
        get=scripted(("1.3.6.1.2.1.1.5.0", b"printer")),
        get_next=scripted(("1.3.6.1.2.1.1.1", b"x"), ("1.3.6.1.2.1.2", b"y")),
    )
    client = Client(requester, timeout=1.0)
    seen = []

    assert client.snmp_get("1.3.6.1.2.1.1.5.0").value == b"printer"
    assert client.snmp_walk("1.3.6.1.2.1.1", lambda oid, value: seen.append(oid)) == Status.OK
    assert seen == ["1.3.6.1.2.1.1.1"]


@pytest.mark.parametrize("timeout,walk_timeout,expected", [(2.0, None, 2.0), (2.0, 0.5, 0.5)])
def test_client_walk_timeout(timeout, walk_timeout, expected) -> None:
    """Test walks use their own timeout when one is given."""
    client = Client(None, timeout=timeout, walk_timeout=walk_timeout)

    assert client.iter_walk("1.3.6.1").timeout == expected


def test_response_without_status_is_bad_message(backend) -> None:
    """Test a response carrying the request placeholder status is rejected at every layer."""

    def no_status(message):
        return Status.NONE, b""

    requester, _ = backend(
        {Command.GET_STATE: no_status, Command.SNMP_GET: no_status, Command.SNMP_GET_NEXT: no_status}
    )
    results = []

    assert do_request(requester, Command.GET_STATE, timeout=1.0).status == Status.BAD_MESSAGE
    assert query_one(requester, "1.3.6.1", 16, 1.0).status == Status.BAD_MESSAGE
    assert walk(requester, "1.3.6.1", 1.0, lambda oid, value: results.append(oid)) == Status.BAD_MESSAGE
    assert results == []
