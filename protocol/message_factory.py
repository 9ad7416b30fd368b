from __future__ import annotations

"""Construction of AMQP messages and header tables.

The registry never builds pika objects by itself; it asks an injected
``MessageFactory`` for them so the transport details stay in this package.
"""

import datetime
import decimal
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Union

import pika

from gateway.domain.errors import InvalidHeaderError

PERSISTENT_DELIVERY_MODE = 2
CONTENT_TYPE = "application/json"

_SCALAR_TYPES = (str, bytes, bool, int, float, decimal.Decimal, datetime.datetime)


class AmqpMessage:
    """Body plus properties, ready to be handed to ``basic_publish``."""

    def __init__(self, body: bytes, properties: pika.BasicProperties) -> None:
        self.body = body
        self.properties = properties

    @property
    def headers(self) -> Dict[str, Any]:
        return self.properties.headers or {}

    @property
    def delivery_mode(self) -> Optional[int]:
        return self.properties.delivery_mode

    def __repr__(self) -> str:
        return f"AmqpMessage(bytes={len(self.body)}, headers={self.headers!r})"


def _check_value(key: str, value: Any) -> Any:
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        return [_check_value(key, item) for item in value]
    raise InvalidHeaderError(
        f"Header '{key}' has unsupported value type {type(value).__name__}"
    )


def validate_headers(headers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a plain dict copy of *headers* or raise ``InvalidHeaderError``.

    Keys must be non-empty strings. Values are limited to scalars an AMQP
    table can carry and (possibly nested) arrays of them.
    """
    if headers is None:
        return {}
    if not isinstance(headers, Mapping):
        raise InvalidHeaderError(f"Headers must be a mapping, got {type(headers).__name__}")

    table = {}
    for key, value in headers.items():
        if not isinstance(key, str) or not key:
            raise InvalidHeaderError(f"Header keys must be non-empty strings, got {key!r}")
        table[key] = _check_value(key, value)
    return table


class MessageFactory(ABC):
    @abstractmethod
    def build_headers(self, headers: Mapping[str, Any]) -> Any:
        """Turn the caller's header mapping into a transport header table."""

    @abstractmethod
    def build_message(self, payload: Union[str, bytes], headers: Any) -> Any:
        """Wrap *payload* in a persistent message carrying *headers*."""


class PikaMessageFactory(MessageFactory):
    """Builds ``pika.BasicProperties`` based messages."""

    def __init__(self, content_type: Optional[str] = CONTENT_TYPE) -> None:
        self.content_type = content_type

    def build_headers(self, headers: Mapping[str, Any]) -> Dict[str, Any]:
        return validate_headers(headers)

    def build_message(self, payload: Union[str, bytes], headers: Dict[str, Any]) -> AmqpMessage:
        body = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
        properties = pika.BasicProperties(
            content_type=self.content_type,
            delivery_mode=PERSISTENT_DELIVERY_MODE,
            headers=headers,
        )
        return AmqpMessage(body, properties)
