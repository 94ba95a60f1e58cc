"""
JSON serialization utilities using orjson.

Request bodies are encoded with orjson before they reach httpx, and
webhook bodies are decoded from the exact bytes that were signed.
"""

from typing import Any, Union

import orjson


def dumps_bytes(obj: Any) -> bytes:
    """Serialize obj to JSON bytes, the form sent over the wire."""
    return orjson.dumps(obj, option=orjson.OPT_NAIVE_UTC)


def loads(s: Union[str, bytes]) -> Any:
    """
    Deserialize JSON string/bytes to a Python object.

    Args:
        s: JSON string or bytes

    Returns:
        Deserialized Python object
    """
    if isinstance(s, str):
        s = s.encode("utf-8")
    return orjson.loads(s)
