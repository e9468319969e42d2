"""
Unit Tests for Value and Argument Serialization
"""

import pytest
from pydantic import BaseModel

from rediscache.core.exceptions import CacheSerializationError
from rediscache.infrastructure.cache.serialization import (
    decode_value,
    encode_value,
    escape_glob,
    serialize_arguments,
)


class User(BaseModel):
    id: int
    name: str


@pytest.mark.unit
class TestValueCodec:
    """Test JSON encoding of stored values."""

    def test_encode_structured_value(self):
        assert encode_value({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_encode_sorted_keys(self):
        assert encode_value({"b": 1, "a": 2}, sort_keys=True) == '{"a":2,"b":1}'

    def test_encode_pydantic_model(self):
        assert encode_value(User(id=1, name="Ada")) == '{"id":1,"name":"Ada"}'

    def test_encode_unserializable_raises(self):
        """Test that values with no JSON form raise CacheSerializationError."""
        with pytest.raises(CacheSerializationError) as exc_info:
            encode_value(object())

        assert exc_info.value.details["value_type"] == "object"
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_decode_json_text(self):
        assert decode_value('{"a":1}') == {"a": 1}
        assert decode_value("42") == 42

    def test_decode_falls_back_to_raw_text(self):
        """Test that text which is not JSON comes back unchanged."""
        assert decode_value("hello world") == "hello world"

    def test_decode_bytes_fallback(self):
        assert decode_value(b"not json") == "not json"

    def test_decode_missing(self):
        assert decode_value(None) is None


@pytest.mark.unit
class TestSerializeArguments:
    """Test the default memoization key serializer."""

    def test_positional_arguments_keyed_by_index(self):
        assert serialize_arguments((1, "x")) == "0=1&1=x"

    def test_equal_arguments_produce_equal_keys(self):
        assert serialize_arguments((1, {"a": 1})) == serialize_arguments((1, {"a": 1}))

    def test_different_arguments_produce_different_keys(self):
        assert serialize_arguments((1, {"a": 1})) != serialize_arguments((1, {"a": 2}))

    def test_object_key_order_does_not_matter(self):
        assert serialize_arguments(({"a": 1, "b": 2},)) == serialize_arguments(({"b": 2, "a": 1},))

    def test_none_serializes_as_empty(self):
        assert serialize_arguments((None,)) == "0="

    def test_keyword_arguments_sorted_by_name(self):
        assert serialize_arguments((), {"b": 2, "a": 1}) == "a=1&b=2"

    def test_positional_then_keyword(self):
        assert serialize_arguments((7,), {"page": 2}) == "0=7&page=2"

    def test_no_arguments(self):
        assert serialize_arguments(()) == ""


@pytest.mark.unit
class TestEscapeGlob:
    def test_escapes_special_characters(self):
        assert escape_glob("a*b?c[d]") == "a\\*b\\?c\\[d\\]"

    def test_plain_text_unchanged(self):
        assert escape_glob("ServiceCache:UserService_get") == "ServiceCache:UserService_get"
