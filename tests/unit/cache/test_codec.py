"""Tests for the JSON record codec."""

import orjson
import pytest

from cacheside.cache.codec import JsonCodec
from cacheside.core.errors import DecodeError
from cacheside.core.model import Customer


@pytest.fixture
def codec() -> JsonCodec[Customer]:
    return JsonCodec(Customer)


class TestEncode:
    """Test encoding to JSON bytes."""

    def test_uses_camel_case_aliases(self, codec: JsonCodec[Customer]) -> None:
        """Encoded records carry the JSON field names."""
        data = codec.encode(Customer(id=1, customer_name="Alice", customer_no=100))
        assert orjson.loads(data) == {"id": 1, "customerName": "Alice", "customerNo": 100}

    def test_empty_sequence(self, codec: JsonCodec[Customer]) -> None:
        """Empty sequence encodes to an empty JSON array."""
        assert codec.encode_many([]) == b"[]"
        assert codec.decode_many(b"[]") == []

    def test_encode_many_keeps_order(self, codec: JsonCodec[Customer]) -> None:
        customers = [
            Customer(id=2, customer_name="Bob", customer_no=2),
            Customer(id=1, customer_name="Alice", customer_no=1),
        ]
        decoded = codec.decode_many(codec.encode_many(customers))
        assert [c.id for c in decoded] == [2, 1]
        assert decoded == customers


class TestDecode:
    """Test decoding and its failures."""

    def test_decode_record(self, codec: JsonCodec[Customer]) -> None:
        customer = codec.decode(b'{"id": 3, "customerName": "Carol", "customerNo": 30}')
        assert customer.id == 3
        assert customer.customer_name == "Carol"
        assert customer.customer_no == 30

    def test_malformed_json_raises_decode_error(self, codec: JsonCodec[Customer]) -> None:
        with pytest.raises(DecodeError):
            codec.decode(b"{not json")

    def test_wrong_shape_raises_decode_error(self, codec: JsonCodec[Customer]) -> None:
        """A single record is not a valid collection payload."""
        with pytest.raises(DecodeError):
            codec.decode_many(b'{"id": 1, "customerName": "Alice", "customerNo": 1}')

    def test_invalid_record_raises_decode_error(self, codec: JsonCodec[Customer]) -> None:
        """Model validation failures are reported as DecodeError."""
        with pytest.raises(DecodeError):
            codec.decode(b'{"id": 1, "customerName": "Al", "customerNo": 1}')
