"""Set-associative write-through cache with least-recently-used replacement."""

from __future__ import annotations

from dataclasses import dataclass

from .cache_base import CacheBase, _fetch_block, _load_word, _store_word
from .memory import MainMemory
from .structs import CacheAddress, CacheConfig, Result, split_address


@dataclass(eq=False)
class _Way:
    tag: int
    data: bytearray
    placeholder: bool = True


class LRUSet:
    """One cache set, its ways ordered from least to most recently used.

    The set starts with one placeholder way per tag bit, keyed by the
    numbers ``0 .. tag_bits - 1``.
    """

    def __init__(self, config: CacheConfig, memory: MainMemory) -> None:
        self.config = config
        self.memory = memory
        self._ways: list[_Way] = []
        self._by_tag: dict[int, _Way] = {}
        for tag in range(config.tag_bits):
            way = _Way(tag, bytearray(config.line_size))
            self._ways.append(way)
            self._by_tag[tag] = way

    def __len__(self) -> int:
        return len(self._ways)

    def __contains__(self, tag: object) -> bool:
        way = self._by_tag.get(tag)  # type: ignore[arg-type]
        return way is not None and not way.placeholder

    def _touch(self, way: _Way) -> None:
        self._ways.remove(way)
        self._ways.append(way)

    def _lookup(self, address: int, tag: int, result: Result) -> _Way:
        way = self._by_tag.get(tag)
        if way is None or way.placeholder:
            self.replace_lru(address, tag)
            result.misses += 1
        else:
            result.hits += 1
        return self._by_tag[tag]

    def replace_lru(self, address: int, tag: int) -> None:
        """Put the block holding ``address`` in place of the least recently used way."""
        _, block = _fetch_block(self.memory, address, self.config.line_size)
        new_way = _Way(tag, block, placeholder=False)
        if self._ways:
            evicted = self._ways[0]
            self._by_tag.pop(evicted.tag, None)
            self._ways[0] = new_way
        else:
            self._ways.append(new_way)
        self._by_tag[tag] = new_way

    def read(self, address: int, cache_address: CacheAddress, result: Result) -> int:
        way = self._lookup(address, cache_address.tag, result)
        value = _load_word(way.data, cache_address.offset)
        self._touch(way)
        return value

    def write(self, address: int, cache_address: CacheAddress, value: int, result: Result) -> None:
        way = self._lookup(address, cache_address.tag, result)
        _store_word(way.data, cache_address.offset, self.memory, address, value)
        self._touch(way)


class FourWayLRUCache(CacheBase):
    """A cache of LRU sets selected by the index bits of the address."""

    def __init__(self, config: CacheConfig, memory: MainMemory) -> None:
        super().__init__(config, memory)
        self.sets = [LRUSet(config, memory) for _ in range(config.num_sets)]

    def read(self, address: int, result: Result) -> int:
        parts = split_address(address, self.config)
        return self.sets[parts.index].read(address, parts, result)

    def write(self, address: int, value: int, result: Result) -> None:
        parts = split_address(address, self.config)
        self.sets[parts.index].write(address, parts, value, result)