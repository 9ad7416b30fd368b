import logging
from typing import Optional

import pika
import pika.exceptions

from gateway.domain.connection import Channel, Connection
from gateway.domain.errors import TransportError

rabbit_logger = logging.getLogger("RabbitMQ")


class RabbitChannel(Channel):
    """Wraps a pika ``BlockingChannel`` so broker errors surface as ``TransportError``."""

    def __init__(self, channel):
        self._channel = channel

    def basic_publish(self, message, exchange_name, queue_name):
        try:
            self._channel.basic_publish(
                exchange=exchange_name,
                routing_key=queue_name,
                body=message.body,
                properties=message.properties,
            )
            rabbit_logger.debug(f"Published message to exchange '{exchange_name}' with key '{queue_name}'")
        except pika.exceptions.AMQPError as e:
            rabbit_logger.error(f"Failed to publish message to exchange {exchange_name}: {e}")
            raise TransportError(f"Failed to publish to exchange '{exchange_name}': {e}") from e

    def close(self):
        """Closes the channel if it is still open."""
        if not self._channel.is_open:
            return
        try:
            self._channel.close()
            rabbit_logger.debug("Channel closed")
        except pika.exceptions.AMQPError as e:
            rabbit_logger.error(f"Failed to close channel: {e}")
            raise TransportError(f"Failed to close channel: {e}") from e


class RabbitConnection(Connection):
    """Blocking pika connection bound to one exchange and one routing key.

    Nothing is opened on construction; ``connect`` opens the link lazily and
    does nothing while it is still open.
    """

    def __init__(
        self,
        host: str,
        exchange_name: str,
        queue_name: str,
        *,
        port: int = 5672,
        username: str = "guest",
        password: str = "guest",
        virtual_host: str = "/",
        heartbeat: Optional[int] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.virtual_host = virtual_host
        self.heartbeat = heartbeat
        self._exchange_name = exchange_name
        self._queue_name = queue_name
        self._connection = None

    def _parameters(self, timeout: Optional[float]) -> pika.ConnectionParameters:
        kwargs = {}
        if timeout is not None:
            kwargs["socket_timeout"] = timeout
            kwargs["stack_timeout"] = timeout
            kwargs["blocked_connection_timeout"] = timeout
        if self.heartbeat is not None:
            kwargs["heartbeat"] = self.heartbeat
        return pika.ConnectionParameters(
            host=self.host,
            port=self.port,
            virtual_host=self.virtual_host,
            credentials=pika.PlainCredentials(self.username, self.password),
            **kwargs,
        )

    def connect(self, timeout: Optional[float] = None) -> None:
        if self.is_connected:
            return
        try:
            self._connection = pika.BlockingConnection(self._parameters(timeout))
            rabbit_logger.info(f"Successfully connected to RabbitMQ at {self.host}:{self.port}")
        except pika.exceptions.AMQPError as e:
            self._connection = None
            rabbit_logger.error(f"Could not connect to RabbitMQ at {self.host}:{self.port}: {e}")
            raise TransportError(f"Could not connect to RabbitMQ at {self.host}:{self.port}: {e}") from e

    def disconnect(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None or not connection.is_open:
            return
        try:
            connection.close()
            rabbit_logger.info("RabbitMQ connection closed.")
        except pika.exceptions.AMQPError as e:
            rabbit_logger.error(f"Error closing RabbitMQ connection: {e}")
            raise TransportError(f"Error closing RabbitMQ connection: {e}") from e

    def get_channel(self) -> RabbitChannel:
        if not self.is_connected:
            raise TransportError(f"Connection to {self.host}:{self.port} is not open")
        try:
            return RabbitChannel(self._connection.channel())
        except pika.exceptions.AMQPError as e:
            rabbit_logger.error(f"Failed to create channel: {e}")
            raise TransportError(f"Failed to create channel: {e}") from e

    @property
    def exchange_name(self) -> str:
        return self._exchange_name

    @property
    def queue_name(self) -> str:
        return self._queue_name

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_open

    def __repr__(self):
        return (
            f"RabbitConnection(host={self.host!r}, port={self.port}, "
            f"exchange={self._exchange_name!r}, queue={self._queue_name!r})"
        )
