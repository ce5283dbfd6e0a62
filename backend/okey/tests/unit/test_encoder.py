"""
Tests for MessagePack encoder module.
"""

import msgpack
import pytest

from okey.messaging.encoder import MAX_ARRAY_LEN, MAX_BUFFER_LEN, DecodeError, decode, encode


class TestEncode:
    def test_round_trip_action(self):
        data = {"type": "game_action", "action": "arrange", "slots": [1, None, 104]}

        assert decode(encode(data)) == data

    def test_integer_keys_become_strings(self):
        data = {"penalties": {0: 0, 1: 12}, "nested": [{2: "x"}]}

        assert decode(encode(data)) == {"penalties": {"0": 0, "1": 12}, "nested": [{"2": "x"}]}

    def test_tuples_become_lists(self):
        assert decode(encode({"hand": (1, 2, 3)})) == {"hand": [1, 2, 3]}


class TestDecodeErrors:
    def test_invalid_msgpack_data_raises_decode_error(self):
        with pytest.raises(DecodeError, match="failed to decode"):
            decode(b"\xff\xff\xff")

    def test_non_map_rejected(self):
        with pytest.raises(DecodeError, match="expected map, got list"):
            decode(msgpack.packb([1, 2, 3]))

    def test_oversized_payload_rejected(self):
        with pytest.raises(DecodeError, match="payload too large"):
            decode(b"\x00" * (MAX_BUFFER_LEN + 1))

    def test_long_array_rejected(self):
        with pytest.raises(DecodeError):
            decode(msgpack.packb({"slots": list(range(MAX_ARRAY_LEN + 1))}))
