"""
Value and Argument Serialization

Values are stored in Redis as JSON text and decoded opportunistically on
read: text that parses as JSON comes back as structured data, anything else
comes back as the raw string. Call arguments of memoized functions are
serialized into a query-string shaped key suffix.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any
from urllib.parse import urlencode

import orjson

from rediscache.core.config.constants import KEY_GLOB_SPECIAL_CHARS
from rediscache.core.exceptions import CacheSerializationError

_PRIMITIVES = (str, int, float, bool)

ArgsSerializer = Callable[[Sequence[Any], Mapping[str, Any]], str]


def _json_default(value: Any) -> Any:
    # pydantic models and similar expose model_dump()
    model_dump = getattr(value, "model_dump", None)
    if callable(model_dump):
        return model_dump(mode="json")
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


def encode_value(value: Any, sort_keys: bool = False) -> str:
    """
    Serialize a value to JSON text.

    Raises:
        CacheSerializationError: If the value has no JSON representation
    """
    option = orjson.OPT_SORT_KEYS if sort_keys else None
    try:
        return orjson.dumps(value, default=_json_default, option=option).decode("utf-8")
    except TypeError as e:
        raise CacheSerializationError.from_exception(
            e, value_type=type(value).__name__
        ) from e


def decode_value(raw: str | bytes | None) -> Any:
    """
    Decode stored text, falling back to the raw string when it is not JSON.

    ``None`` (missing key) is returned unchanged.
    """
    if raw is None:
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw


def _serialize_argument(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, _PRIMITIVES):
        return value
    return encode_value(value, sort_keys=True)


def serialize_arguments(args: Sequence[Any], kwargs: Mapping[str, Any] | None = None) -> str:
    """
    Default argument serializer for memoized calls.

    Positional arguments are keyed by index, keyword arguments by name
    (sorted). Objects become sorted-key JSON, primitives pass through as-is.

    >>> serialize_arguments((1, {"a": 1}))
    '0=1&1=%7B%22a%22%3A1%7D'
    """
    params: list[tuple[str, Any]] = [
        (str(index), _serialize_argument(arg)) for index, arg in enumerate(args)
    ]
    for name in sorted(kwargs or {}):
        params.append((name, _serialize_argument(kwargs[name])))
    return urlencode(params)


def escape_glob(text: str) -> str:
    """Escape characters that Redis KEYS would treat as glob syntax."""
    return "".join(f"\\{ch}" if ch in KEY_GLOB_SPECIAL_CHARS else ch for ch in text)
