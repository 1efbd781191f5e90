"""Drive a cache module with a list of requests and optionally trace it."""

from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Mapping, Sequence

from .module import SIZE_MAX, CacheModule
from .structs import WORD_MASK, Request, Result

MATRIX_SIZE = 4

MATRIX_A = (
    (3, 7, 4, 12),
    (6, 18, 8, 1),
    (5, 23, 3, 41),
    (29, 17, 5, 1),
)

MATRIX_B = (
    (19, 13, 49, 22),
    (4, 21, 37, 34),
    (50, 0, 8, 14),
    (26, 7, 13, 0),
)

MATRIX_C = (
    (597, 270, 594, 360),
    (612, 463, 1037, 856),
    (1403, 835, 1653, 934),
    (895, 741, 2103, 1286),
)

ADDRESS_A = (
    (0x0, 0x4, 0x8, 0xC),
    (0x10, 0x14, 0x18, 0x1C),
    (0x20, 0x24, 0x28, 0x2C),
    (0x30, 0x34, 0x38, 0x3C),
)

ADDRESS_B = (
    (0x74, 0x78, 0x7C, 0x80),
    (0x84, 0x88, 0x8C, 0x90),
    (0x94, 0x98, 0x9C, 0xA0),
    (0xA4, 0xA8, 0xAC, 0xB0),
)

ADDRESS_C = (
    (0xC0, 0xC4, 0xC8, 0xCC),
    (0xD0, 0xD4, 0xD8, 0xDC),
    (0xE0, 0xE4, 0xE8, 0xEC),
    (0xF0, 0xF4, 0xF8, 0xFC),
)

TRACE_DIRECTORY = Path("../out")

TRACE_SIGNALS = {
    "Clock": 1,
    "Request Address": 32,
    "Request Data": 32,
    "Request WE": 32,
    "Result Cycles": 64,
    "Result Misses": 64,
    "Result Hits": 64,
    "Result Primitive Gate Count": 64,
}


def _identifier(number: int) -> str:
    """Short printable VCD identifier for the ``number``-th signal."""
    chars = []
    while True:
        number, digit = divmod(number, 94)
        chars.append(chr(33 + digit))
        if number == 0:
            return "".join(chars)
        number -= 1


class VcdTrace:
    """A value change dump written as signals are recorded."""

    def __init__(self, path: str | Path, signals: Mapping[str, int], timescale: str = "500 ms") -> None:
        self.path = Path(path)
        self._widths = dict(signals)
        self._codes = {name: _identifier(i) for i, name in enumerate(self._widths)}
        self._last: dict[str, int] = {}
        self._last_time: int | None = None
        self._file = self.path.open("w", encoding="ascii")
        self._write_header(timescale)

    def _write_header(self, timescale: str) -> None:
        lines = [
            "$date",
            f"     {datetime.now():%b %d, %Y  %H:%M:%S}",
            "$end",
            "",
            "$version",
            " cachesim",
            "$end",
            "",
            "$timescale",
            f"     {timescale}",
            "$end",
            "",
            "$scope module SystemC $end",
        ]
        for name, width in self._widths.items():
            vcd_name = name.replace(" ", "_")
            suffix = f" [{width - 1}:0]" if width > 1 else ""
            lines.append(f"$var wire {width} {self._codes[name]} {vcd_name}{suffix} $end")
        lines += ["$upscope $end", "", "$enddefinitions  $end", ""]
        self._file.write("\n".join(lines) + "\n")

    @property
    def closed(self) -> bool:
        return self._file.closed

    def record(self, time: int, values: Mapping[str, int]) -> None:
        """Write the signals in ``values`` that changed, stamped with ``time``."""
        if self.closed:
            raise ValueError("trace is closed")
        if self._last_time is not None and time < self._last_time:
            raise ValueError(f"time {time} is before {self._last_time}")
        changes = []
        for name, value in values.items():
            if name not in self._widths:
                raise KeyError(name)
            width = self._widths[name]
            value &= (1 << width) - 1
            if self._last.get(name) != value:
                self._last[name] = value
                code = self._codes[name]
                changes.append(f"{value}{code}" if width == 1 else f"b{value:b} {code}")
        if not changes:
            return
        if time != self._last_time:
            self._file.write(f"#{time}\n")
            self._last_time = time
        self._file.write("\n".join(changes) + "\n")

    def close(self) -> None:
        """Finish the dump and close the file."""
        if not self.closed:
            self._file.close()

    def __enter__(self) -> VcdTrace:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class _Operand(Enum):
    A = "A"
    B = "B"
    C = "C"


def _entry(table: Sequence[Sequence[int]], row: int, column: int) -> int | None:
    if 0 <= row < len(table) and 0 <= column < len(table[row]):
        return table[row][column]
    return None


def _report(matrix: str, problem: str, expected: int, got: int) -> str:
    return f"Error in Matrix {matrix}: {problem}\nExpected: {expected} but got: {got}"


class MatrixChecker:
    """Checks a stream of completed requests against a 4x4 matrix product.

    Reads cycle through an entry of A, an entry of B and the partial sum in C;
    every fourth write after the first read must store the final C entry.
    """

    def __init__(self) -> None:
        self.errors: list[str] = []
        self._entry_a = 0
        self._entry_b = 0
        self._entry_c = 0
        self._product = 0
        self._next = _Operand.A
        self._initialized = False
        self._a_j = 0
        self._b_i = 0
        self._c_i = 0
        self._c_j = 0
        self._c = 0

    def observe(self, request: Request, data: int) -> list[str]:
        """Check one completed request; return the errors it caused."""
        if request.we:
            found = self._observe_write(request)
        else:
            found = self._observe_read(request, data)
        self.errors.extend(found)
        return found

    def _observe_write(self, request: Request) -> list[str]:
        if not self._initialized:
            return []
        errors = []
        address = request.addr & WORD_MASK
        total = (self._entry_c + self._product) & WORD_MASK
        if self._c == MATRIX_SIZE - 1:
            expected_address = _entry(ADDRESS_C, self._c_i, self._c_j)
            if expected_address is not None and address != expected_address:
                errors.append(_report("C", "Wrote to the wrong address", address, expected_address))
            expected = _entry(MATRIX_C, self._c_i, self._c_j)
            if expected is not None and total != expected:
                errors.append(_report("C", "Something went wrong while storing data", total, expected))
        self._c += 1
        if self._c == MATRIX_SIZE:
            self._c_j += 1
            self._c = 0
        if self._c_j == MATRIX_SIZE:
            self._c_j = 0
            self._c_i += 1
        return errors

    def _check(self, matrix: str, address: int, value: int, row: int, column: int) -> list[str]:
        addresses = ADDRESS_A if matrix == "A" else ADDRESS_B
        values = MATRIX_A if matrix == "A" else MATRIX_B
        errors = []
        expected_address = _entry(addresses, row, column)
        if expected_address is not None and address != expected_address:
            errors.append(_report(matrix, "Wrote to the wrong address", address, expected_address))
        expected = _entry(values, row, column)
        if expected is not None and value != expected:
            errors.append(_report(matrix, "Something went wrong while storing data", value, expected))
        return errors

    def _observe_read(self, request: Request, data: int) -> list[str]:
        self._initialized = True
        address = request.addr & WORD_MASK
        errors: list[str] = []
        if self._next is _Operand.A:
            self._entry_a = data
            errors = self._check("A", address, data, self._c_i, self._a_j)
            self._a_j = (self._a_j + 1) % MATRIX_SIZE
            self._next = _Operand.B
        elif self._next is _Operand.B:
            self._entry_b = data
            errors = self._check("B", address, data, self._b_i, self._c_j)
            self._b_i = (self._b_i + 1) % MATRIX_SIZE
            self._next = _Operand.C
        else:
            self._entry_c = data
            self._product = (self._entry_a * self._entry_b) & WORD_MASK
            self._next = _Operand.A
        return errors


def run_simulation(
    cycles: int,
    direct_mapped: bool,
    cache_lines: int,
    cache_line_size: int,
    cache_latency: int,
    memory_latency: int,
    requests: Sequence[Request],
    tracefile: str = "",
) -> Result:
    """Feed ``requests`` to a cache for at most ``cycles`` cycles and return the counters.

    A non-empty ``tracefile`` names a VCD dump written to the trace directory.
    Requests that finish are also checked against the reference matrix product;
    mismatches are reported on standard error.
    """
    module = CacheModule(
        cycles, direct_mapped, cache_lines, cache_line_size, cache_latency, memory_latency
    )
    checker = MatrixChecker()
    trace = VcdTrace(TRACE_DIRECTORY / f"{tracefile}.vcd", TRACE_SIGNALS) if tracefile else None
    try:
        pending = iter(requests)
        request = next(pending, None)
        for cycle in range(cycles):
            if request is None:
                break
            if cycle == cycles - 1:
                module.requests_exceed_cycles = True
            completed = module.step(request)
            if trace is not None:
                trace.record(2 * cycle, {
                    "Clock": 1,
                    "Request Address": request.addr,
                    "Request Data": request.data,
                    "Request WE": int(request.we),
                    "Result Cycles": module.cycle_count & SIZE_MAX,
                    "Result Misses": module.misses,
                    "Result Hits": module.hits,
                    "Result Primitive Gate Count": module.total_gates,
                })
                trace.record(2 * cycle + 1, {"Clock": 0})
            if not completed:
                continue
            for message in checker.observe(request, module.data):
                print(message, file=sys.stderr)
            request = next(pending, None)
    finally:
        if trace is not None:
            trace.close()
    return replace(module.result)