from __future__ import annotations

"""Domain-level abstraction for a broker connection.

The registry only depends on this interface, never on the concrete pika
client, so connections can be faked in tests or swapped for another
transport. A pika-backed implementation lives in
*protocol.rabbit_wrapper.RabbitConnection*.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class Channel(ABC):
    """Short-lived handle used for a single publish."""

    @abstractmethod
    def basic_publish(self, message: Any, exchange_name: str, queue_name: str) -> None:
        """Send *message* to *exchange_name* using *queue_name* as routing key."""

    @abstractmethod
    def close(self) -> None:
        pass


class Connection(ABC):
    """Connection to a broker, bound to one exchange and one queue."""

    @abstractmethod
    def connect(self, timeout: Optional[float] = None) -> None:
        """Open the link to the broker.

        Must be a no-op when already connected. *timeout* bounds the attempt
        in seconds; failures are raised as ``TransportError``.
        """

    @abstractmethod
    def disconnect(self) -> None:
        """Close the link. Calling it on a closed connection is harmless."""

    @abstractmethod
    def get_channel(self) -> Channel:
        """Return a fresh channel on the open connection."""

    @property
    @abstractmethod
    def exchange_name(self) -> str:
        pass

    @property
    @abstractmethod
    def queue_name(self) -> str:
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass
