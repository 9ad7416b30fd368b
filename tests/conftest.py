import pytest

from gateway.domain.command import AbstractCommand
from gateway.domain.connection import Channel, Connection
from gateway.domain.errors import TransportError
from gateway.registry import ConnectionRegistry


class FakeChannel(Channel):
    def __init__(self, owner):
        self.owner = owner
        self.closed = False

    def basic_publish(self, message, exchange_name, queue_name):
        self.owner.calls.append("publish")
        if self.owner.publish_error is not None:
            raise self.owner.publish_error
        self.owner.published.append((message, exchange_name, queue_name))

    def close(self):
        self.owner.calls.append("close_channel")
        self.closed = True
        if self.owner.close_error is not None:
            raise self.owner.close_error


class FakeConnection(Connection):
    """In-memory connection recording every transport call."""

    def __init__(
        self,
        exchange="commands",
        queue="orders",
        connect_error=None,
        publish_error=None,
        close_error=None,
        disconnect_error=None,
    ):
        self._exchange = exchange
        self._queue = queue
        self.connect_error = connect_error
        self.publish_error = publish_error
        self.close_error = close_error
        self.disconnect_error = disconnect_error
        self.connected = False
        self.calls = []
        self.published = []
        self.channels = []
        self.connect_timeouts = []

    def connect(self, timeout=None):
        self.calls.append("connect")
        self.connect_timeouts.append(timeout)
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def disconnect(self):
        self.calls.append("disconnect")
        if self.disconnect_error is not None:
            raise self.disconnect_error
        self.connected = False

    def get_channel(self):
        if not self.connected:
            raise TransportError("not connected")
        channel = FakeChannel(self)
        self.channels.append(channel)
        return channel

    @property
    def exchange_name(self):
        return self._exchange

    @property
    def queue_name(self):
        return self._queue

    @property
    def is_connected(self):
        return self.connected


class FakeCommand(AbstractCommand):
    def __init__(self, payload='{"__type":"CreateOrder"}', test_mode=False):
        self.payload = payload
        self.test_mode = test_mode

    def is_test_mode(self):
        return self.test_mode

    def to_json(self):
        return self.payload


@pytest.fixture
def registry():
    reg = ConnectionRegistry()
    yield reg
    reg.close()


@pytest.fixture
def connection():
    return FakeConnection()
