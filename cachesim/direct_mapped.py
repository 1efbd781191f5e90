"""Direct-mapped write-through cache."""

from __future__ import annotations

from dataclasses import dataclass

from .cache_base import CacheBase, _fetch_block, _load_word, _store_word
from .memory import MainMemory
from .structs import CacheAddress, CacheConfig, Result, split_address


@dataclass(eq=False)
class CacheLine:
    """One line of the cache: a tag and a block of bytes."""

    data: bytearray
    tag: int = 0
    valid: bool = False


class DirectMappedCache(CacheBase):
    """A cache where each address maps to exactly one line."""

    def __init__(self, cache_lines: int, config: CacheConfig, memory: MainMemory) -> None:
        super().__init__(config, memory)
        self.lines = [CacheLine(bytearray(config.line_size)) for _ in range(cache_lines)]

    def _replace(self, address: int, line: CacheLine) -> None:
        start, block = _fetch_block(self.memory, address, self.config.line_size)
        line.data[:] = block
        line.tag = split_address(start, self.config).tag

    def _lookup(self, address: int, result: Result) -> tuple[CacheLine, CacheAddress]:
        parts = split_address(address, self.config)
        line = self.lines[parts.index]
        if not line.valid or line.tag != parts.tag:
            self._replace(address, line)
            line.valid = True
            result.misses += 1
        else:
            result.hits += 1
        return line, parts

    def read(self, address: int, result: Result) -> int:
        line, parts = self._lookup(address, result)
        return _load_word(line.data, parts.offset)

    def write(self, address: int, value: int, result: Result) -> None:
        line, parts = self._lookup(address, result)
        _store_word(line.data, parts.offset, self.memory, address, value)