"""
Canonical cache key derivation.

A canonical key is ``{namespace}:{key}``, optionally followed by
``:{base64(query)}`` where ``query`` is every parameter rendered as
``name=JSON(value)``, sorted by name and joined with ``&``. Sorting makes the
key independent of the parameter mapping's insertion order.

    >>> canonical_key("products", "list", {"userId": "123", "page": 1})
    'products:list:cGFnZT0xJnVzZXJJZD0iMTIzIg=='
"""

import base64
from collections.abc import Mapping
from typing import Any

import orjson

from indexed_cache.core.exceptions import CacheSerializationError

# Non-string dict keys are stringified rather than rejected
_JSON_OPTIONS = orjson.OPT_NON_STR_KEYS


def to_json(value: Any) -> str:
    """
    Compact JSON text for ``value``; unsupported types serialize via ``str()``.

    Raises:
        CacheSerializationError: If orjson rejects the value (e.g. a circular
            reference or an out-of-range integer)
    """
    try:
        return orjson.dumps(value, default=str, option=_JSON_OPTIONS).decode("utf-8")
    except orjson.JSONEncodeError as e:
        raise CacheSerializationError(
            f"Value is not JSON-serializable: {e}", details={"type": type(value).__name__}
        )


def from_json(raw: str | bytes) -> Any:
    """
    Decode a stored JSON payload.

    Raises:
        CacheSerializationError: If the payload is not valid JSON
    """
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise CacheSerializationError(f"Stored payload is not valid JSON: {e}")


def encode_params(params: Mapping[str, Any]) -> str:
    """Base64 of the name-sorted ``name=JSON(value)`` query string."""
    query = "&".join(f"{name}={to_json(params[name])}" for name in sorted(params))
    return base64.b64encode(query.encode("utf-8")).decode("ascii")


def canonical_key(namespace: str, key: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Derive the storage key for a cache entry.

    Args:
        namespace: Entry namespace (e.g. ``products``)
        key: Entry key within the namespace
        params: Optional parameter map; an empty map is treated as absent

    Returns:
        Deterministic canonical key
    """
    base = f"{namespace}:{key}"
    if not params:
        return base
    return f"{base}:{encode_params(params)}"


def namespace_pattern(namespace: str) -> str:
    """Glob matching every canonical key in ``namespace``."""
    return f"{namespace}:*"
