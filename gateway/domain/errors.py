"""Exceptions raised by the connection registry and the dispatch path."""


class GatewayError(Exception):
    """Base class for every error raised by the gateway."""


class DuplicateIdentifierError(GatewayError, ValueError):
    """A connection was registered under an identifier that is already taken."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Duplicate connection identifier: '{identifier}'")
        self.identifier = identifier


class ConnectionLookupError(GatewayError, LookupError):
    """No connection is registered under the (resolved) identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Provided connection identifier does not exist: '{identifier}'")
        self.identifier = identifier


class TransportError(GatewayError):
    """The broker connection could not be established or the publish failed."""


class DispatchTimeoutError(TransportError):
    """The deadline given to a dispatch expired before it completed."""


class InvalidHeaderError(GatewayError, ValueError):
    """A command header key or value is not allowed in an AMQP table."""
