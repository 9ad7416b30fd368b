import datetime
import decimal

import pika
import pytest

from gateway.domain.errors import InvalidHeaderError
from protocol.message_factory import AmqpMessage, PikaMessageFactory, validate_headers


def test_validate_headers_accepts_scalars_and_arrays():
    stamp = datetime.datetime(2024, 1, 2, 3, 4, 5)
    headers = {
        "text": "abc",
        "raw": b"\x00\x01",
        "count": 3,
        "ratio": 1.5,
        "price": decimal.Decimal("9.99"),
        "flag": False,
        "when": stamp,
        "nothing": None,
        "nested": [1, ["a", "b"]],
    }
    assert validate_headers(headers) == headers


def test_validate_headers_normalises_tuples_to_lists():
    assert validate_headers({"ids": (1, 2)}) == {"ids": [1, 2]}


def test_validate_headers_none_is_empty():
    assert validate_headers(None) == {}


@pytest.mark.parametrize(
    "headers",
    [
        {"": "value"},
        {1: "value"},
        {"table": {"nested": "mapping"}},
        {"items": [object()]},
        {"items": {1, 2}},
    ],
)
def test_validate_headers_rejects_unsupported_entries(headers):
    with pytest.raises(InvalidHeaderError):
        validate_headers(headers)


def test_validate_headers_rejects_non_mapping():
    with pytest.raises(InvalidHeaderError):
        validate_headers([("trace", "abc")])


def test_build_message_is_persistent_json():
    factory = PikaMessageFactory()
    table = factory.build_headers({"trace": "abc"})

    message = factory.build_message('{"__type":"Ping"}', table)

    assert isinstance(message, AmqpMessage)
    assert isinstance(message.properties, pika.BasicProperties)
    assert message.body == b'{"__type":"Ping"}'
    assert message.delivery_mode == 2
    assert message.properties.content_type == "application/json"
    assert message.headers == {"trace": "abc"}


def test_build_message_keeps_bytes_payload():
    message = PikaMessageFactory(content_type=None).build_message(b"\x01\x02", {})
    assert message.body == b"\x01\x02"
    assert message.properties.content_type is None
