import pytest

from cachesim.cache_base import CacheBase, merge_bytes, split_word
from cachesim.memory import MainMemory
from cachesim.structs import CacheConfig


def test_merge_bytes_is_little_endian():
    assert merge_bytes([0x78, 0x56, 0x34, 0x12]) == 0x12345678


def test_split_word_is_little_endian():
    assert split_word(0x12345678) == bytes([0x78, 0x56, 0x34, 0x12])


@pytest.mark.parametrize("value", [0, 1, 255, 256, 0xDEADBEEF, 0xFFFFFFFF, 1403])
def test_split_then_merge_round_trip(value):
    assert merge_bytes(split_word(value)) == value


@pytest.mark.parametrize("data", [b"\x00\x01\x02\x03", b"\xff\x00\xff\x00", bytes(4)])
def test_merge_then_split_round_trip(data):
    assert split_word(merge_bytes(data)) == data


def test_split_word_masks_to_32_bits():
    assert split_word((1 << 32) | 7) == split_word(7)


@pytest.mark.parametrize("data", [b"", b"\x01\x02\x03", b"\x01\x02\x03\x04\x05"])
def test_merge_bytes_rejects_wrong_length(data):
    with pytest.raises(ValueError):
        merge_bytes(data)


def test_cache_base_cannot_be_instantiated():
    config = CacheConfig(index_bits=0, tag_bits=14, offset_bits=2)
    with pytest.raises(TypeError):
        CacheBase(config, MainMemory(8))