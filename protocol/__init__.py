"""RabbitMQ transport: pika-backed connections and message construction."""

from protocol.message_factory import AmqpMessage, MessageFactory, PikaMessageFactory, validate_headers
from protocol.rabbit_wrapper import RabbitChannel, RabbitConnection

__all__ = [
    "AmqpMessage",
    "MessageFactory",
    "PikaMessageFactory",
    "validate_headers",
    "RabbitChannel",
    "RabbitConnection",
]
