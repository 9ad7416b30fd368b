import pytest

from gateway.domain.errors import ConnectionLookupError, DuplicateIdentifierError, GatewayError, TransportError
from gateway.registry import ConnectionMode, ConnectionRegistry

from conftest import FakeConnection


def test_register_stores_connection_without_connecting(registry, connection):
    result = registry.register(connection, "orders")

    assert result is registry
    assert "orders" in registry
    assert len(registry) == 1
    assert registry.get("orders").connection is connection
    assert connection.calls == []


def test_register_defaults_to_persistent_mode(registry, connection):
    registry.register(connection, "orders")
    assert registry.get("orders").mode is ConnectionMode.PERSISTENT


def test_register_accepts_mode_value(registry, connection):
    registry.register(connection, "orders", "transient")
    assert registry.get("orders").mode is ConnectionMode.TRANSIENT
    assert registry.get("orders").is_transient


def test_register_rejects_unknown_mode(registry, connection):
    with pytest.raises(ValueError):
        registry.register(connection, "orders", "sometimes")
    assert "orders" not in registry


def test_duplicate_identifier_keeps_first_registration(registry):
    first = FakeConnection()
    second = FakeConnection()
    registry.register(first, "orders")

    with pytest.raises(DuplicateIdentifierError) as exc_info:
        registry.register(second, "orders", ConnectionMode.TRANSIENT)

    assert exc_info.value.identifier == "orders"
    assert "orders" in str(exc_info.value)
    assert registry.get("orders").connection is first
    assert registry.get("orders").mode is ConnectionMode.PERSISTENT
    assert len(registry) == 1


@pytest.mark.parametrize("identifier", ["", None, 42])
def test_register_rejects_invalid_identifier(registry, connection, identifier):
    with pytest.raises(ValueError):
        registry.register(connection, identifier)
    assert len(registry) == 0


def test_register_is_chainable(registry):
    registry.register(FakeConnection(), "orders").register(FakeConnection(), "test_orders", "transient")
    assert registry.identifiers() == ["orders", "test_orders"]


def test_get_unknown_identifier(registry):
    with pytest.raises(ConnectionLookupError) as exc_info:
        registry.get("missing")
    assert isinstance(exc_info.value, LookupError)
    assert exc_info.value.identifier == "missing"


def test_close_disconnects_every_connection():
    persistent = FakeConnection()
    other = FakeConnection()
    persistent.connected = True
    reg = ConnectionRegistry()
    reg.register(persistent, "orders").register(other, "billing")

    reg.close()
    reg.close()

    assert not persistent.connected
    assert persistent.calls == ["disconnect"]
    assert other.calls == ["disconnect"]


def test_closed_registry_refuses_work(connection):
    reg = ConnectionRegistry()
    reg.close()

    with pytest.raises(GatewayError):
        reg.register(connection, "orders")


def test_context_manager_closes_registry(connection):
    connection.connected = True
    with ConnectionRegistry() as reg:
        reg.register(connection, "orders")
    assert not connection.connected


def test_close_keeps_going_after_a_failing_disconnect():
    broken = FakeConnection(disconnect_error=RuntimeError("socket already gone"))
    refused = FakeConnection(disconnect_error=TransportError("connection reset"))
    healthy = FakeConnection()
    healthy.connected = True
    reg = ConnectionRegistry()
    reg.register(broken, "orders").register(refused, "billing").register(healthy, "shipping")

    with pytest.raises(RuntimeError, match="socket already gone"):
        reg.close()

    assert refused.calls == ["disconnect"]
    assert healthy.calls == ["disconnect"]
    assert not healthy.connected


def test_close_logs_transport_failures_without_raising():
    refused = FakeConnection(disconnect_error=TransportError("connection reset"))
    healthy = FakeConnection()
    healthy.connected = True
    reg = ConnectionRegistry()
    reg.register(refused, "billing").register(healthy, "shipping")

    reg.close()

    assert not healthy.connected
