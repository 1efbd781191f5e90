"""Common interface and word helpers for the cache models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from .memory import MainMemory
from .structs import WORD_MASK, CacheConfig, Result

WORD_SIZE = 4


def merge_bytes(data: Iterable[int]) -> int:
    """Combine four bytes, lowest address first, into a little-endian word."""
    raw = bytes(data)
    if len(raw) != WORD_SIZE:
        raise ValueError(f"expected {WORD_SIZE} bytes, got {len(raw)}")
    return int.from_bytes(raw, "little")


def split_word(value: int) -> bytes:
    """Split a 32-bit word into four bytes in little-endian order."""
    return (value & WORD_MASK).to_bytes(WORD_SIZE, "little")


def _fetch_block(memory: MainMemory, address: int, line_size: int) -> tuple[int, bytearray]:
    """Read the aligned block containing ``address``; return its start and bytes."""
    start = (address // line_size) * line_size
    return start, bytearray(memory.read(a) for a in range(start, start + line_size))


def _load_word(line: bytearray, offset: int) -> int:
    if offset + WORD_SIZE > len(line):
        raise IndexError(f"word at offset {offset} crosses the end of a {len(line)}-byte line")
    return merge_bytes(line[offset:offset + WORD_SIZE])


def _store_word(line: bytearray, offset: int, memory: MainMemory, address: int, value: int) -> None:
    """Write a word into the line and through to memory, byte by byte."""
    for position, byte in enumerate(split_word(value)):
        line[offset + position] = byte
        memory.write(address + position, byte)


class CacheBase(ABC):
    """A write-through cache in front of a main memory."""

    def __init__(self, config: CacheConfig, memory: MainMemory) -> None:
        self.config = config
        self.memory = memory

    @abstractmethod
    def read(self, address: int, result: Result) -> int:
        """Read the word at ``address``, counting the hit or miss in ``result``."""

    @abstractmethod
    def write(self, address: int, value: int, result: Result) -> None:
        """Write ``value`` at ``address``, counting the hit or miss in ``result``."""