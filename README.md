# cachesim

A cycle-level simulator for a small memory hierarchy. It models one cache in
front of a 64 KiB byte-addressed main memory, which uses 16-bit addresses.
The cache is either direct-mapped or four-way set-associative with
least-recently-used replacement. Both caches are write-through.

The simulator takes a list of read and write requests and runs them through
the cache one clock cycle at a time. Each request first waits out the cache
latency. On a miss it then waits out the memory latency as well. The
simulator reports:

- the number of cycles used
- cache hits and misses
- an estimated primitive gate count for the cache hardware

If requests are still pending when the last allowed cycle is reached, the
reported cycle count is set to a saturated value close to `2**64 - 1`.

## Installation

```
pip install .
```

## Command line

```
cachesim [options] <csv-path>
```

| Option | Meaning |
| --- | --- |
| `-c`, `--cycles <n>` | Number of simulated cycles (positive). |
| `--directmapped` | Simulate a direct-mapped cache. |
| `--fourway` | Simulate a four-way set-associative LRU cache. |
| `--cacheline-size <n>` | Bytes per cache line: a positive multiple of 4. |
| `--cachelines <n>` | Number of cache lines. It must be a power of two for `--directmapped` and a multiple of 4 for `--fourway`. These checks apply only when the cache-type option comes before this one. |
| `--cache-latency <n>` | Cache latency in cycles (positive). |
| `--memory-latency <n>` | Main-memory latency in cycles (positive). |
| `--tf=<name>` | Write a VCD trace to `../out/<name>.vcd`, relative to the working directory. |
| `-h`, `--help` | Print usage and examples to standard error. |

Rules for the options:

- Give exactly one of `--directmapped` and `--fourway`.
- Give every numeric option.
- A long option may be shortened to any unambiguous prefix.
- `-c` accepts its value either attached (`-c40`) or as the next argument.

The command first prints the settings it read and the number of requests.
It then prints the simulation results. It exits with status 0 on success and
with status 1 in these cases:

- an option is invalid or missing
- the CSV file is missing, empty or not a regular file
- a request addresses memory outside the 64 KiB range

Example:

```
cachesim --cycles 40 --fourway --cacheline-size 8 --cachelines 8 \
         --cache-latency 2 --memory-latency 3 --tf=tracefile inputs.csv
```

### Input format

The input is a text file with one request per line. Each line has three
comma-separated fields:

1. An operation. `W` means a write; any other character means a read.
2. A hexadecimal address. The `0x` prefix is optional.
3. A decimal value.

```
W,0x0,3
W,0x4,7
R,0x0,0
```

Empty lines are skipped, and the value of a read is ignored.

### Reference check

As requests complete, they are checked against a built-in 4x4 matrix
product:

- The reads are taken, in turn, as an entry of A, an entry of B and a
  partial sum of C.
- Every fourth write is taken as a finished entry of C.

Each mismatch is printed to standard error. The check only reports; it
does not change the results. Request lists that do not follow this pattern
will produce such messages.

## Library use

```python
from cachesim.structs import Request
from cachesim.simulation import run_simulation

requests = [
    Request(addr=0x10, data=42, we=True),
    Request(addr=0x10),
]
result = run_simulation(
    cycles=100,
    direct_mapped=True,
    cache_lines=16,
    cache_line_size=4,
    cache_latency=1,
    memory_latency=4,
    requests=requests,
    tracefile="",
)
print(result.cycles, result.hits, result.misses, result.primitive_gate_count)
```

The package is made of these modules:

- `cachesim.structs`: `CacheConfig`, `CacheAddress`, `split_address`, `Request` and `Result`.
- `cachesim.memory`: `MainMemory`. An out-of-range access raises `InvalidAddressError`.
- `cachesim.cache_base`: the abstract `CacheBase`, plus `merge_bytes` and `split_word` for little-endian words.
- `cachesim.direct_mapped`: `DirectMappedCache` and `CacheLine`.
- `cachesim.four_way`: `FourWayLRUCache` and its `LRUSet` sets.
- `cachesim.module`: `CacheModule`, a cache advanced one cycle at a time with `step(request)`, plus `make_config` and `primitive_gate_count`.
- `cachesim.simulation`: `run_simulation`, `VcdTrace` (a minimal VCD writer) and `MatrixChecker`.
- `cachesim.cli`: `main`, `parse_args`, `read_csv`, `count_requests`, `parse_requests`, `Options` and `UsageError`.

## Tests

```
pip install .[test]
pytest
```