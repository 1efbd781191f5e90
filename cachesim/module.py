"""Clocked cache model: latencies, hit and miss counting and a gate estimate."""

from __future__ import annotations

from .cache_base import CacheBase
from .direct_mapped import DirectMappedCache
from .four_way import FourWayLRUCache
from .memory import MainMemory
from .structs import WORD_MASK, CacheConfig, Request, Result

ADDRESS_LENGTH = 16
SIZE_MAX = (1 << 64) - 1
WAYS = 4

_ONE_BIT_STORAGE_GATES = 4


def _ceil_log2(value: int) -> int:
    if value < 1:
        raise ValueError(f"expected a positive value, got {value}")
    return (value - 1).bit_length()


def make_config(direct_mapped: bool, cache_lines: int, cache_line_size: int) -> CacheConfig:
    """Work out the index, tag and offset widths for a cache geometry."""
    sets = cache_lines if direct_mapped else cache_lines // WAYS
    if sets < 1:
        raise ValueError(f"{cache_lines} cache lines give no cache sets")
    if cache_line_size < 1:
        raise ValueError(f"cache line size must be positive, got {cache_line_size}")
    index_bits = _ceil_log2(sets)
    offset_bits = _ceil_log2(cache_line_size)
    return CacheConfig(
        index_bits=index_bits,
        tag_bits=ADDRESS_LENGTH - index_bits - offset_bits,
        offset_bits=offset_bits,
    )


def primitive_gate_count(
    direct_mapped: bool, cache_lines: int, cache_line_size: int, config: CacheConfig
) -> int:
    """Estimate the number of primitive gates needed to build the cache."""
    storage = 8 * _ONE_BIT_STORAGE_GATES * cache_lines * cache_line_size
    control = 5 * cache_lines
    tag_comparison = 2 * config.tag_bits * cache_lines
    total = storage + tag_comparison + control
    if not direct_mapped:
        counters = 2 * _ONE_BIT_STORAGE_GATES * cache_lines
        comparators = counters * 2
        update_logic = counters * 7
        total += counters + comparators + update_logic
    return total & WORD_MASK


class CacheModule:
    """A cache driven one clock cycle at a time.

    Each request first waits ``cache_latency`` cycles, is then looked up,
    and on a miss waits a further ``memory_latency`` cycles before it is
    finished.  Counters are kept in :attr:`result`.
    """

    def __init__(
        self,
        cycles: int,
        direct_mapped: bool,
        cache_lines: int,
        cache_line_size: int,
        cache_latency: int,
        memory_latency: int,
        memory: MainMemory | None = None,
    ) -> None:
        self.cycles = cycles
        self.direct_mapped = direct_mapped
        self.memory = memory if memory is not None else MainMemory(ADDRESS_LENGTH)
        self.config = make_config(direct_mapped, cache_lines, cache_line_size)
        self.cache: CacheBase
        if direct_mapped:
            self.cache = DirectMappedCache(cache_lines, self.config, self.memory)
        else:
            self.cache = FourWayLRUCache(self.config, self.memory)
        self.total_gates = primitive_gate_count(
            direct_mapped, cache_lines, cache_line_size, self.config
        )
        self.result = Result(primitive_gate_count=self.total_gates)

        self.cycle_count = 0
        self.hits = 0
        self.misses = 0
        self.data = 0
        self.waiting_for_cache = False
        self.waiting_for_memory = False
        self.requests_exceed_cycles = False

        self._cache_latency = cache_latency
        self._cache_countdown = cache_latency
        self._memory_latency = memory_latency
        self._memory_countdown = memory_latency
        self._pending_read = 0
        self._iterations = 0

    @property
    def busy(self) -> bool:
        """True while the current request still waits for a latency."""
        return self.waiting_for_cache or self.waiting_for_memory

    @property
    def finished(self) -> bool:
        """True once all configured cycles have been used."""
        return self._iterations >= self.cycles

    def step(self, request: Request) -> bool:
        """Run one clock cycle with ``request`` applied; return True when it completed."""
        if self.finished:
            return False
        self._iterations += 1
        self._tick(request)
        return not self.busy

    def _count_cycle(self) -> None:
        self.cycle_count = (self.cycle_count + 1) & SIZE_MAX

    def _tick(self, request: Request) -> None:
        exceeded = self.requests_exceed_cycles
        if exceeded:
            self.result.cycles = SIZE_MAX - 1

        if self._cache_countdown > 0 and not self.waiting_for_memory:
            self._cache_countdown -= 1
            self._count_cycle()
            self.waiting_for_cache = True
            return
        if self._cache_countdown == 0:
            self._cache_countdown = self._cache_latency
            self.waiting_for_cache = False
        if exceeded:
            self.cycle_count = SIZE_MAX - 1

        misses_before = self.misses
        if not self.waiting_for_memory:
            address = request.addr & WORD_MASK
            if request.we:
                self.cache.write(address, request.data & WORD_MASK, self.result)
            else:
                self._pending_read = self.cache.read(address, self.result)
            self.hits = self.result.hits
            self.misses = self.result.misses

        if self.result.misses > misses_before:
            self.waiting_for_memory = True

        if self._memory_countdown > 0 and self.waiting_for_memory:
            self._memory_countdown -= 1
            self._count_cycle()
            return
        if self._memory_countdown == 0:
            self._memory_countdown = self._memory_latency
            self.waiting_for_memory = False

        if not request.we and not self.waiting_for_memory:
            self.data = self._pending_read

        self._count_cycle()
        self.result.cycles = self.cycle_count