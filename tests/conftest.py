"""Shared fixtures for side-channel tests."""

import socket
import threading

import pytest

from sidechannel import Channel, Server


@pytest.fixture
def channel_pair():
    """Connected (requester, backend) channels over a Unix socket pair."""
    left, right = socket.socketpair()
    try:
        yield Channel(left), Channel(right)
    finally:
        left.close()
        right.close()


@pytest.fixture
def backend(channel_pair):
    """Start a Server on the backend end of the pair in a background thread.

    Returns a function taking the handlers mapping and returning the
    requester channel and the running server.
    """
    requester, backend_channel = channel_pair
    servers = []

    def start(handlers=None, **snmp):
        server = Server(backend_channel, handlers, timeout=0.05)
        if snmp:
            server.snmp(**snmp)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append((server, thread))
        return requester, server

    yield start

    for server, thread in servers:
        server.stop()
        thread.join(timeout=1.0)

