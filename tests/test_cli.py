import pytest

from cachesim.cli import (
    Options,
    UsageError,
    count_requests,
    main,
    parse_args,
    parse_requests,
    read_csv,
)
from cachesim.structs import Request

FULL = [
    "--cycles", "40", "--fourway", "--cacheline-size", "8", "--cachelines", "8",
    "--cache-latency", "2", "--memory-latency", "3", "--tf=tracefile", "inputs.csv",
]


def test_parse_full_example():
    options = parse_args(FULL)
    assert options == Options(
        cycles=40,
        fourway=True,
        cache_line_size=8,
        cache_lines=8,
        cache_latency=2,
        memory_latency=3,
        tracefile="tracefile",
        csv_path="inputs.csv",
    )


def test_parse_short_and_equals_forms():
    options = parse_args([
        "inputs.csv", "-c50", "--directmapped", "--cacheline-size=4",
        "--cachelines", "16", "--cache-latency", "1", "--memory-latency=4",
    ])
    assert options.cycles == 50
    assert options.direct_mapped and not options.fourway
    assert options.cache_line_size == 4
    assert options.cache_lines == 16
    assert options.memory_latency == 4
    assert options.csv_path == "inputs.csv"
    assert options.tracefile == ""


def test_parse_unique_prefix():
    options = parse_args([
        "-c", "5", "--direct", "--cacheline-s", "4", "--cachelines", "4",
        "--cache-lat", "1", "--memory", "1", "x.csv",
    ])
    assert options.direct_mapped is True
    assert options.cache_line_size == 4
    assert options.cache_latency == 1


def test_ambiguous_prefix_is_rejected():
    with pytest.raises(UsageError) as info:
        parse_args(["--cache", "4"])
    assert info.value.show_usage is True


def test_help_stops_parsing():
    options = parse_args(["-h", "--unknown"])
    assert options.show_help is True


@pytest.mark.parametrize(
    "argv, message",
    [
        (["--cycles", "0"], "Error! Cycles should be a positive value."),
        (["--cycles", "12abc"], "Invalid value for cycles!"),
        (["--cacheline-size", "6"], "Error! Cacheline size should be multiple of 4."),
        (["--cacheline-size", "-4"], "Error! Cacheline size should be larger than 0."),
        (["--fourway", "--cachelines", "6"],
         "Error! For 4-way associative cache, cachelines value should be multiple of 4."),
        (["--directmapped", "--cachelines", "12"],
         "Error! For direct-mapped cache, cachelines value should be power of two."),
        (["--directmapped", "--fourway"],
         "Error! Cache can't be direct mapped and 4-way associative at the same time."),
        (["--cache-latency", "0"], "Error! Cache latency value should be greater than 0."),
        (["--memory-latency", "0"], "Error! Memory latency value should be greater than 0."),
    ],
)
def test_invalid_values(argv, message):
    with pytest.raises(UsageError) as info:
        parse_args(argv)
    assert str(info.value) == message


def test_missing_options():
    with pytest.raises(UsageError) as info:
        parse_args(FULL[:-1])
    assert "Not all options have been correctly initialized" in str(info.value)


def test_unknown_option_shows_usage():
    with pytest.raises(UsageError) as info:
        parse_args(["--bogus"])
    assert info.value.show_usage is True


def test_missing_argument():
    with pytest.raises(UsageError) as info:
        parse_args(["--cycles"])
    assert info.value.show_usage is True


def test_count_requests():
    assert count_requests("") == 0
    assert count_requests("a\nb\n") == 2
    assert count_requests("a\nb") == 2
    assert count_requests("\n\n") == 2


def test_parse_requests():
    requests = parse_requests("W,0x10,5\n\nR,10,7\nW,ff,-1\n")
    assert requests == [
        Request(addr=0x10, data=5, we=True),
        Request(addr=0x10, data=0, we=False),
        Request(addr=0xFF, data=0xFFFFFFFF, we=True),
    ]


def test_parse_request_count_never_exceeds_lines():
    content = "W,0,1\nW,4,2"
    assert len(parse_requests(content)) <= count_requests(content)


def test_read_csv_round_trip(tmp_path):
    path = tmp_path / "inputs.csv"
    path.write_text("W,0x0,3\n")
    assert read_csv(path) == "W,0x0,3\n"


def test_read_csv_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(ValueError):
        read_csv(path)


def test_read_csv_directory(tmp_path):
    with pytest.raises(ValueError):
        read_csv(tmp_path)


def test_read_csv_missing(tmp_path):
    with pytest.raises(OSError):
        read_csv(tmp_path / "missing.csv")


def test_main_without_arguments(capsys):
    assert main([]) == 1
    assert "Error! Options are missing." in capsys.readouterr().err


def test_main_help(capsys):
    assert main(["--help"]) == 0
    err = capsys.readouterr().err
    assert "Here are 2 examples how to run the simulation:" in err


def test_main_bad_csv(tmp_path, capsys):
    argv = FULL[:-2] + [str(tmp_path / "missing.csv")]
    assert main(argv) == 1
    assert "Error reading .csv file." in capsys.readouterr().err


def test_main_runs_simulation(tmp_path, capsys):
    path = tmp_path / "inputs.csv"
    path.write_text("W,0x10,5\nR,0x10,0\n")
    argv = [
        "--cycles", "100", "--directmapped", "--cacheline-size", "4",
        "--cachelines", "4", "--cache-latency", "1", "--memory-latency", "1", str(path),
    ]
    assert main(argv) == 0
    out = capsys.readouterr().out
    assert ".csv line counter: 2" in out
    assert "Misses: 1" in out
    assert "Hits: 1" in out