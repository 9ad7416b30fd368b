from __future__ import annotations

"""Registry of named broker connections and the command dispatch path.

A single ``ConnectionRegistry`` is built at startup (see
*gateway.bootstrap.build_registry*), handed to whoever needs to publish
commands, and closed at shutdown.

Dispatching a command goes through a fixed sequence: resolve the
identifier (test commands use the ``test_`` twin of the identifier), look
the connection up, connect it, build the message, publish it on a fresh
channel, close the channel, and finally disconnect the connection when it
was registered as transient.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from protocol.message_factory import MessageFactory, PikaMessageFactory, validate_headers

from ..domain.command import AbstractCommand
from ..domain.connection import Connection
from ..domain.errors import (
    ConnectionLookupError,
    DispatchTimeoutError,
    DuplicateIdentifierError,
    GatewayError,
)

TEST_PREFIX = "test_"


class ConnectionMode(Enum):
    PERSISTENT = "persistent"
    TRANSIENT = "transient"


def resolve_identifier(command: AbstractCommand, identifier: str) -> str:
    """Return the registry key *command* must be published on."""
    if command.is_test_mode():
        return TEST_PREFIX + identifier
    return identifier


class ConnectionRecord:
    """A registered connection together with its teardown mode.

    ``lock`` serializes dispatches that share the connection.
    """

    def __init__(self, identifier: str, connection: Connection, mode: ConnectionMode) -> None:
        self.identifier = identifier
        self.connection = connection
        self.mode = mode
        self.lock = threading.Lock()

    @property
    def is_transient(self) -> bool:
        return self.mode is ConnectionMode.TRANSIENT

    def __repr__(self) -> str:
        return f"ConnectionRecord({self.identifier!r}, mode={self.mode.value})"


class _Deadline:
    def __init__(self, timeout: Optional[float]) -> None:
        self._expires_at = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        left = self._expires_at - time.monotonic()
        if left <= 0:
            raise DispatchTimeoutError("Dispatch deadline expired")
        return left


class ConnectionRegistry:
    """Owns every broker connection of the process, keyed by identifier."""

    def __init__(self, message_factory: Optional[MessageFactory] = None) -> None:
        self._message_factory = message_factory or PikaMessageFactory()
        self._connections: Dict[str, ConnectionRecord] = {}
        self._lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(
        self,
        connection: Connection,
        identifier: str,
        mode: Union[ConnectionMode, str] = ConnectionMode.PERSISTENT,
    ) -> "ConnectionRegistry":
        """Add *connection* to the pool under *identifier*.

        The connection is not opened here. Raises ``DuplicateIdentifierError``
        if *identifier* is already taken, in which case the registry is left
        untouched.
        """
        if not isinstance(identifier, str) or not identifier:
            raise ValueError(f"Connection identifier must be a non-empty string, got {identifier!r}")
        mode = ConnectionMode(mode)

        with self._lock:
            self._ensure_open()
            if identifier in self._connections:
                raise DuplicateIdentifierError(identifier)
            self._connections[identifier] = ConnectionRecord(identifier, connection, mode)

        logging.info(f"action: register_connection | result: success | identifier: {identifier} | mode: {mode.value}")
        return self

    def get(self, identifier: str) -> ConnectionRecord:
        with self._lock:
            record = self._connections.get(identifier)
        if record is None:
            raise ConnectionLookupError(identifier)
        return record

    def identifiers(self) -> List[str]:
        with self._lock:
            return list(self._connections)

    def __contains__(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._connections

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(
        self,
        command: AbstractCommand,
        identifier: str,
        headers: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> "ConnectionRegistry":
        """Publish *command* on the connection registered under *identifier*.

        Test-mode commands go to ``test_<identifier>``. *headers* become the
        message application headers. *timeout* (seconds) bounds the whole
        call, including the wait for a concurrent dispatch on the same
        connection. Errors are raised as they come; nothing is retried and
        a failed publish leaves the connection as it is.
        """
        deadline = _Deadline(timeout)
        self._ensure_open()

        real_identifier = resolve_identifier(command, identifier)
        record = self.get(real_identifier)
        header_values = validate_headers(headers)

        remaining = deadline.remaining()
        if not record.lock.acquire(timeout=-1 if remaining is None else remaining):
            raise DispatchTimeoutError(
                f"Timed out waiting for connection '{real_identifier}'"
            )
        try:
            self._ensure_open()
            self._publish(record, command, header_values, deadline)
        finally:
            record.lock.release()

        logging.debug(f"action: dispatch | result: success | identifier: {real_identifier} | command: {command!r}")
        return self

    def _publish(
        self,
        record: ConnectionRecord,
        command: AbstractCommand,
        headers: Dict[str, Any],
        deadline: _Deadline,
    ) -> None:
        connection = record.connection
        connection.connect(timeout=deadline.remaining())

        table = self._message_factory.build_headers(headers)
        message = self._message_factory.build_message(command.to_json(), table)

        deadline.remaining()
        channel = connection.get_channel()
        published = False
        try:
            channel.basic_publish(message, connection.exchange_name, connection.queue_name)
            published = True
        finally:
            try:
                channel.close()
            finally:
                # a transient connection never outlives a successful publish
                if published and record.is_transient:
                    connection.disconnect()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _ensure_open(self) -> None:
        if self._closed:
            raise GatewayError("Connection registry is closed")

    def close(self) -> None:
        """Disconnect every registered connection. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            records = list(self._connections.values())

        unexpected = []
        for record in records:
            with record.lock:
                try:
                    record.connection.disconnect()
                except Exception as e:
                    logging.error(f"action: close_connection | result: fail | identifier: {record.identifier} | error: {e}")
                    if not isinstance(e, GatewayError):
                        unexpected.append(e)
        logging.info(f"action: close_registry | result: success | connections: {len(records)}")
        if unexpected:
            raise unexpected[0]

    def __enter__(self) -> "ConnectionRegistry":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
