import dataclasses

import pytest

from cachesim.structs import CacheAddress, CacheConfig, Request, Result, split_address


@pytest.fixture
def config():
    return CacheConfig(index_bits=2, tag_bits=11, offset_bits=3)


@pytest.mark.parametrize(
    "tag,index,offset",
    [(0, 0, 0), (5, 2, 6), (1, 3, 7), (2047, 1, 4)],
)
def test_split_address_recovers_fields(config, tag, index, offset):
    address = (tag << 5) | (index << 3) | offset
    assert split_address(address, config) == CacheAddress(index=index, tag=tag, offset=offset)


def test_split_address_masks_to_32_bits(config):
    assert split_address((1 << 32) | 0x1234, config) == split_address(0x1234, config)


def test_zero_index_bits_keeps_index_zero():
    config = CacheConfig(index_bits=0, tag_bits=13, offset_bits=3)
    for address in range(0, 256, 3):
        parts = split_address(address, config)
        assert parts.index == 0
        assert (parts.tag << 3) | parts.offset == address


@pytest.mark.parametrize("offset_bits", [2, 3, 4, 6])
def test_line_size_matches_offset_bits(offset_bits):
    config = CacheConfig(index_bits=1, tag_bits=16 - 1 - offset_bits, offset_bits=offset_bits)
    assert config.line_size == 2 ** offset_bits
    parts = split_address(config.line_size - 1, config)
    assert parts.offset == config.line_size - 1
    assert parts.index == 0


def test_num_sets_matches_index_bits():
    config = CacheConfig(index_bits=3, tag_bits=10, offset_bits=3)
    indices = {split_address(a, config).index for a in range(0, 1 << 8)}
    assert len(indices) == config.num_sets


def test_cache_address_is_immutable(config):
    parts = split_address((2 << 5) | (1 << 3) | 3, config)
    with pytest.raises(dataclasses.FrozenInstanceError):
        parts.tag = 4
    assert parts.tag == 2
    assert parts == CacheAddress(index=1, tag=2, offset=3)


def test_result_counters_are_independent():
    first = Result()
    second = Result()
    first.hits += 2
    first.misses += 1
    assert (second.hits, second.misses) == (0, 0)
    assert first == Result(hits=2, misses=1)


def test_request_carries_write_flag():
    write = Request(addr=0x10, data=7, we=True)
    read = Request(addr=0x10)
    assert write.we and not read.we
    assert read.addr == write.addr