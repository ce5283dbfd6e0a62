"""
MessagePack framing for the Okey wire protocol.

Every frame is a single map. Outgoing payloads are plain dicts built from
pydantic models; incoming frames are size-checked before and while unpacking.
"""

from typing import Any

import msgpack

# limits keep a hostile client from making the server allocate large objects
MAX_BUFFER_LEN = 64 * 1024
MAX_STR_LEN = 4 * 1024
MAX_BIN_LEN = 4 * 1024
MAX_ARRAY_LEN = 256  # a rack is at most 29 slots; commits list a handful of windows
MAX_MAP_LEN = 64
MAX_EXT_LEN = 256


class DecodeError(Exception):
    """Raised when an incoming frame is not a valid MessagePack map."""


def _stringify_keys(obj: object) -> object:
    """
    Recursively turn integer dict keys into strings.

    Clients decode maps into JS objects, which only have string keys.
    """
    if isinstance(obj, dict):
        return {str(k) if isinstance(k, int) else k: _stringify_keys(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_stringify_keys(item) for item in obj]
    return obj


def encode(data: dict[str, Any]) -> bytes:
    """Pack a message dict into MessagePack bytes."""
    return msgpack.packb(_stringify_keys(data))


def decode(data: bytes) -> dict[str, Any]:
    """
    Unpack a client frame.

    Raises DecodeError if the frame is too large, malformed, or not a map.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected map, got {type(result).__name__}")
    return result
