"""Command-line front end: options, request files and the result report."""

from __future__ import annotations

import os
import re
import stat
import sys
from dataclasses import dataclass
from itertools import islice
from pathlib import Path
from typing import Iterator, Sequence

from .memory import InvalidAddressError
from .simulation import run_simulation
from .structs import WORD_MASK, Request

USAGE = (
    "Usage: {prog} [options] <csv-path>\n"
    "\nOptions:\n"
    "-c, --cycles <value>        Number of simulated cycles.\n"
    "--directmapped              Simulates a direct-mapped cache.\n"
    "--fourway                   Simulates a four-way-associative cache.\n"
    "--cacheline-size <value>    Size for each cachelines in Byte.\n"
    "--cachelines <value>        Number of cachelines.\n"
    "--cache-latency <value>     Latency for cache in cycles.\n"
    "--memory-latency <value>    Latency for main memory in cycles.\n"
    "--tf=<tracefile_name>       A tracefile containing all signals from the simulation. "
    "(leave this empty for no Tracefile)\n"
    "<csv-path>                  Path to .csv file that contains the simulation's inputs.\n"
    "-h, --help                  Prints a short description of the program's options "
    "and a usage example.\n\n"
)

HELP = (
    "Here are 2 examples how to run the simulation:\n"
    "\nout/simulation --cycles 40 --fourway --cacheline-size 8 --cachelines 8 "
    "--cache-latency 2 --memory-latency 3 --tf=tracefile out/inputs.csv\n"
    "This initializes a 4-way-associative cache simulation with 40 cycles, cacheline size "
    "of 8 Bytes, 8 cachelines, with a cache latency of 2 cycles and a memory latency of 3 cycles.\n"
    "A tracefile with the name 'tracefile' will be generated and the .csv path containing "
    "the inputs is located at out/inputs.csv\n"
    "\nout/simulation --cycles 50 --directmapped --cacheline-size 4 --cachelines 16 "
    "--cache-latency 1 --memory-latency 4 out/inputs.csv\n"
    "This initializes a direct-mapped cache simulation with 50 cycles, cacheline size "
    "of 4 Bytes, 16 cachelines, with a cache latency of 1 cycle and a memory latency of 4 cycles.\n"
    "A tracefile won't be generated and the .csv path containing the inputs is located "
    "at out/inputs.csv\n"
)

# Long option name -> whether it takes an argument.
_LONG_OPTIONS = {
    "cycles": True,
    "directmapped": False,
    "fourway": False,
    "cacheline-size": True,
    "cachelines": True,
    "cache-latency": True,
    "memory-latency": True,
    "tf": True,
    "help": False,
}

_INTEGER = re.compile(r"\s*[+-]?[0-9]+")
_WE_FIELD = re.compile(r"\s*(\S)")
_HEX_FIELD = re.compile(r",\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")
_DEC_FIELD = re.compile(r",\s*([+-]?[0-9]+)")


class UsageError(Exception):
    """Raised for invalid or incomplete command-line options."""

    def __init__(self, message: str, show_usage: bool = False) -> None:
        super().__init__(message)
        self.show_usage = show_usage


@dataclass
class Options:
    """Settings gathered from the command line."""

    cycles: int = 0
    direct_mapped: bool = False
    fourway: bool = False
    cache_line_size: int = 0
    cache_lines: int = 0
    cache_latency: int = 0
    memory_latency: int = 0
    tracefile: str = ""
    csv_path: str | None = None
    show_help: bool = False


def _resolve_long(name: str) -> str:
    if name in _LONG_OPTIONS:
        return name
    candidates = [option for option in _LONG_OPTIONS if option.startswith(name)]
    if not candidates:
        raise UsageError(f"unrecognized option '--{name}'", show_usage=True)
    if len(candidates) > 1:
        raise UsageError(f"option '--{name}' is ambiguous", show_usage=True)
    return candidates[0]


def _scan(argv: Sequence[str]) -> Iterator[tuple[str | None, str | None]]:
    """Yield ``(option, value)`` pairs in order; positionals come as ``(None, arg)``."""
    args = iter(argv)
    for arg in args:
        if arg == "--":
            for rest in args:
                yield None, rest
            return
        if arg.startswith("--"):
            body, has_value, value = arg[2:].partition("=")
            name = _resolve_long(body)
            if _LONG_OPTIONS[name]:
                if not has_value:
                    value = next(args, None)
                    if value is None:
                        raise UsageError(f"option '--{name}' requires an argument", show_usage=True)
                yield name, value
            else:
                if has_value:
                    raise UsageError(f"option '--{name}' doesn't allow an argument", show_usage=True)
                yield name, None
        elif arg.startswith("-") and len(arg) > 1:
            cluster = arg[1:]
            for position, char in enumerate(cluster):
                if char == "h":
                    yield "help", None
                elif char == "c":
                    value = cluster[position + 1:] or next(args, None)
                    if value is None:
                        raise UsageError("option requires an argument -- 'c'", show_usage=True)
                    yield "cycles", value
                    break
                else:
                    raise UsageError(f"invalid option -- '{char}'", show_usage=True)
        else:
            yield None, arg


def _number(text: str, name: str) -> int:
    if text == "":
        return 0
    if not _INTEGER.fullmatch(text):
        raise UsageError(f"Invalid value for {name}!")
    return int(text)


def _positive(text: str, name: str, message: str) -> int:
    value = _number(text, name)
    if value <= 0:
        raise UsageError(message)
    return value


def parse_args(argv: Sequence[str]) -> Options:
    """Parse command-line arguments (without the program name) into :class:`Options`."""
    options = Options()
    for name, value in _scan(argv):
        match name:
            case None:
                if options.csv_path is None:
                    options.csv_path = value
            case "help":
                options.show_help = True
                return options
            case "cycles":
                options.cycles = _positive(
                    value, "cycles", "Error! Cycles should be a positive value."
                )
            case "directmapped" | "fourway":
                if name == "directmapped":
                    options.direct_mapped = True
                else:
                    options.fourway = True
                if options.direct_mapped and options.fourway:
                    raise UsageError(
                        "Error! Cache can't be direct mapped and 4-way associative at the same time."
                    )
            case "cacheline-size":
                size = _positive(
                    value, "cacheline-size", "Error! Cacheline size should be larger than 0."
                )
                if size % 4 != 0:
                    raise UsageError("Error! Cacheline size should be multiple of 4.")
                options.cache_line_size = size
            case "cachelines":
                lines = _positive(
                    value, "cachelines", "Error! Number of cachelines should be larger than 0."
                )
                if options.fourway and (lines < 4 or lines % 4 != 0):
                    raise UsageError(
                        "Error! For 4-way associative cache, cachelines value should be multiple of 4."
                    )
                if options.direct_mapped and lines & (lines - 1):
                    raise UsageError(
                        "Error! For direct-mapped cache, cachelines value should be power of two."
                    )
                options.cache_lines = lines
            case "cache-latency":
                options.cache_latency = _positive(
                    value, "cache-latency", "Error! Cache latency value should be greater than 0."
                )
            case "memory-latency":
                options.memory_latency = _positive(
                    value, "memory-latency", "Error! Memory latency value should be greater than 0."
                )
            case "tf":
                options.tracefile = value

    if (
        options.cycles == 0
        or options.direct_mapped == options.fourway
        or options.cache_line_size == 0
        or options.cache_lines == 0
        or options.cache_latency == 0
        or options.memory_latency == 0
        or options.csv_path is None
    ):
        raise UsageError(
            "Error! Not all options have been correctly initialized!\n"
            "Type <program name> -h or --help for options."
        )
    return options


def read_csv(path: str | os.PathLike[str]) -> str:
    """Return the text of a non-empty regular file.

    Raises OSError when the file cannot be opened or read and ValueError
    when it is not a regular file or is empty.
    """
    file_path = Path(path)
    try:
        info = file_path.stat()
    except OSError as error:
        raise OSError("Error, can't open .csv file!") from error
    if not stat.S_ISREG(info.st_mode) or info.st_size <= 0:
        raise ValueError("Error processing .csv file")
    try:
        raw = file_path.read_bytes()
    except OSError as error:
        raise OSError("Error reading .csv file!") from error
    return raw.decode("utf-8", errors="replace")


def count_requests(content: str | None) -> int:
    """Count the lines of ``content``, including an unterminated last line."""
    if not content:
        return 0
    count = content.count("\n")
    if not content.endswith("\n"):
        count += 1
    return count


def _parse_line(line: str) -> Request:
    we_match = _WE_FIELD.match(line)
    write = bool(we_match) and we_match.group(1) == "W"
    addr = 0
    data = 0
    if we_match:
        hex_match = _HEX_FIELD.match(line, we_match.end())
        if hex_match:
            sign, digits = hex_match.groups()
            addr = int(digits, 16) * (-1 if sign == "-" else 1)
            dec_match = _DEC_FIELD.match(line, hex_match.end())
            if dec_match:
                data = int(dec_match.group(1))
    return Request(
        addr=addr & WORD_MASK,
        data=(data & WORD_MASK) if write else 0,
        we=write,
    )


def parse_requests(content: str) -> list[Request]:
    """Parse lines of the form ``W,<hex address>,<decimal data>`` or ``R,<hex address>,...``.

    Empty lines are skipped; data of read requests is set to zero.
    """
    lines = (line for line in content.split("\n") if line)
    return [_parse_line(line) for line in islice(lines, count_requests(content))]


def _program_name() -> str:
    if sys.argv and sys.argv[0]:
        return os.path.basename(sys.argv[0])
    return "cachesim"


def main(argv: Sequence[str] | None = None) -> int:
    """Run the simulator from the command line and return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    prog = _program_name()
    usage = USAGE.format(prog=prog)

    if not args:
        sys.stderr.write("Error! Options are missing.\n")
        sys.stderr.write(usage)
        return 1

    try:
        options = parse_args(args)
    except UsageError as error:
        print(error, file=sys.stderr)
        if error.show_usage:
            sys.stderr.write(usage)
        return 1

    if options.show_help:
        sys.stderr.write(usage)
        sys.stderr.write(f"\n{HELP}")
        return 0

    try:
        content = read_csv(options.csv_path)
    except (OSError, ValueError) as error:
        print(error, file=sys.stderr)
        print("Error reading .csv file.", file=sys.stderr)
        return 1

    print("User Input:")
    print(f"Cycles: {options.cycles}")
    print(f"Direct mapped: {int(options.direct_mapped)}")
    print(f"Fourway: {int(options.fourway)}")
    print(f"Cacheline Size: {options.cache_line_size}")
    print(f"Cachelines: {options.cache_lines}")
    print(f"Cache Latency: {options.cache_latency}")
    print(f"Memory Latency: {options.memory_latency}")
    print(f"Tracefile Name: {options.tracefile}")
    print(f"Path to .csv file: {options.csv_path}")

    requests = parse_requests(content)
    print(f".csv line counter: {len(requests)}")

    try:
        result = run_simulation(
            options.cycles,
            options.direct_mapped,
            options.cache_lines,
            options.cache_line_size,
            options.cache_latency,
            options.memory_latency,
            requests,
            options.tracefile,
        )
    except (InvalidAddressError, IndexError, ValueError, OSError) as error:
        print(f"Error! {error}", file=sys.stderr)
        return 1

    print("\nSimulation Results: ")
    print(f"Cycles: {result.cycles}")
    print(f"Misses: {result.misses}")
    print(f"Hits: {result.hits}")
    print(f"Primitive Gate Count: {result.primitive_gate_count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())