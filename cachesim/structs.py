"""Plain data records shared by the caches and the simulator."""

from __future__ import annotations

from dataclasses import dataclass

WORD_MASK = 0xFFFFFFFF


@dataclass(frozen=True)
class CacheConfig:
    """How an address is divided into tag, index and offset bits."""

    index_bits: int
    tag_bits: int
    offset_bits: int

    @property
    def line_size(self) -> int:
        """Number of bytes held by one cache line."""
        return 1 << self.offset_bits

    @property
    def num_sets(self) -> int:
        """Number of distinct index values."""
        return 1 << self.index_bits


@dataclass(frozen=True)
class CacheAddress:
    """An address split into its cache fields."""

    index: int
    tag: int
    offset: int


def split_address(address: int, config: CacheConfig) -> CacheAddress:
    """Split a 32-bit address into index, tag and offset for ``config``."""
    address &= WORD_MASK
    offset = address & ((1 << config.offset_bits) - 1)
    index = (address >> config.offset_bits) & ((1 << config.index_bits) - 1)
    tag = address >> config.offset_bits >> config.index_bits
    return CacheAddress(index=index, tag=tag, offset=offset)


@dataclass
class Request:
    """A single memory access: a write when ``we`` is set, otherwise a read."""

    addr: int
    data: int = 0
    we: bool = False


@dataclass
class Result:
    """Counters collected while a simulation runs."""

    cycles: int = 0
    misses: int = 0
    hits: int = 0
    primitive_gate_count: int = 0