import logging

from protocol.rabbit_wrapper import RabbitConnection

from .registry.connection_registry import ConnectionRegistry


def rabbit_connection_factory(connection_config):
    return RabbitConnection(
        connection_config["host"],
        connection_config["exchange"],
        connection_config["queue"],
        port=connection_config["port"],
        username=connection_config["username"],
        password=connection_config["password"],
        virtual_host=connection_config["virtual_host"],
        heartbeat=connection_config.get("heartbeat"),
    )


def build_registry(connection_configs, connection_factory=rabbit_connection_factory, message_factory=None):
    """Create the process-wide registry with every configured connection.

    Must run before any dispatch starts; connections are registered but
    not opened.
    """
    registry = ConnectionRegistry(message_factory)
    for connection_config in connection_configs:
        registry.register(
            connection_factory(connection_config),
            connection_config["identifier"],
            connection_config.get("mode", "persistent"),
        )
    logging.info(f"action: build_registry | result: success | connections: {registry.identifiers()}")
    return registry
