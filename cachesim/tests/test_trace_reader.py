import logging

import pytest

from cachesim.data.trace_reader import iter_records, parse_address, parse_line, read_trace


@pytest.mark.parametrize('line,expected', [
    ("0 0x1F", (0, 0x1F)),
    ("2 40c", (2, 0x40C)),
    ("1\t0XABCDEF\n", (1, 0xABCDEF)),
    ("   3 0x2000   ", (3, 0x2000)),
    ("4 0x1000 trailing words", (4, 0x1000)),
    ("9", (9, 0)),
    ("8\n", (8, 0)),
    # missing address degrades to 0
    ("1", (1, 0)),
    # unknown opcodes are still records; the dispatcher ignores them
    ("7 0x10", (7, 0x10)),
])
def test_parse_line_records(line, expected):
    assert parse_line(line) == expected


@pytest.mark.parametrize('line', ["", "\n", "   \t ", "# comment", "   # indented comment"])
def test_parse_line_skips_blank_and_comment_lines(line):
    assert parse_line(line) is None


def test_parse_line_skips_malformed_lines(caplog):
    with caplog.at_level(logging.WARNING):
        assert parse_line("read 0x10") is None
        assert parse_line("-1 0x10") is None
    assert len(caplog.records) == 2


@pytest.mark.parametrize('text,expected', [
    ("0x0", 0),
    ("ff", 0xFF),
    ("0x", 0),
    ("zz", 0),
    ("12zz", 0x12),
    ("0x1g", 0x1),
    ("", 0),
    # wider than 32 bits is masked to the address width
    ("0x1FFFFFFFF", 0xFFFFFFFF),
    # past the 64-bit range strtoul saturates, so all 32 bits are set
    ("10000000000000000", 0xFFFFFFFF),
    ("0x123456789abcdef01", 0xFFFFFFFF),
    ("-10000000000000000", 0xFFFFFFFF),
    ("ffffffffffffffff", 0xFFFFFFFF),
    ("fffffffe00000010", 0x10),
    ("-1", 0xFFFFFFFF),
])
def test_parse_address_follows_strtoul(text, expected):
    assert parse_address(text) == expected


def test_iter_records_preserves_file_order():
    lines = ["# header", "2 0x400", "", "0 0x0", "bogus", "9"]
    assert list(iter_records(lines)) == [(2, 0x400), (0, 0), (9, 0)]


def test_read_trace_from_file(tmp_path):
    trace = tmp_path / "trace.txt"
    trace.write_text("0 10\n1 0x20\n# done\n9\n")
    assert list(read_trace(str(trace))) == [(0, 0x10), (1, 0x20), (9, 0)]


def test_read_trace_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(read_trace(str(tmp_path / "nope.txt")))
