"""End-to-end runs through the command line entry point and Simulation."""
import json

import pytest

import run
from cachesim.core.address import CacheGeometry
from cachesim.core.simulator import CacheSimulator
from cachesim.simulation import Simulation

TRACE = """\
# instruction fetch, then a data line read, dirtied, snooped away
2 0x400
0 0x1000
1 0x1000
4 0x1000
1 0x2000
3 0x2000

0 0x1000
"""

STATS = (
    "=== I$ Statistics ===\n"
    "Cache reads     : 1\n"
    "Cache hits      : 0\n"
    "Cache misses    : 1\n"
    "Cache hit ratio :  0.00 %\n"
    "=== D$ Statistics ===\n"
    "Cache reads     : 2\n"
    "Cache writes    : 2\n"
    "Cache hits      : 1\n"
    "Cache misses    : 3\n"
    "Cache hit ratio : 25.00 %\n"
)


@pytest.fixture
def trace_file(tmp_path):
    path = tmp_path / "trace.txt"
    path.write_text(TRACE)
    return str(path)


def test_mode_0_prints_statistics_only(trace_file, capsys):
    assert run.main(["--trace", trace_file]) == 0
    assert capsys.readouterr().out == STATS


def test_mode_1_prints_l2_messages(trace_file, capsys):
    assert run.main(["--trace", trace_file, "--mode", "1"]) == 0
    assert capsys.readouterr().out == (
        "Read from L2\n"
        "Read from L2\n"
        "Return data to L2\n"
        "Read for Ownership from L2\n"
        "Write to L2\n"
        "Read from L2\n"
    ) + STATS


def test_missing_trace_exits_with_error(tmp_path, capsys):
    assert run.main(["--trace", str(tmp_path / "missing.txt")]) == 1
    captured = capsys.readouterr()
    assert captured.out == ''
    assert "missing.txt" in captured.err


def test_trace_is_required():
    with pytest.raises(SystemExit):
        run.main([])


def test_exports_from_command_line(trace_file, tmp_path):
    out_json = tmp_path / "stats.json"
    out_csv = tmp_path / "stats.csv"
    assert run.main(["--trace", trace_file, "--stats-json", str(out_json),
                     "--stats-csv", str(out_csv)]) == 0
    data = json.loads(out_json.read_text(encoding='utf-8'))
    assert data['stats']['D$']['misses'] == 3
    assert out_csv.read_text().splitlines()[0] == 'cache,reads,writes,hits,misses,hit_ratio'


def test_simulation_with_custom_simulator(tmp_path, capsys):
    g = CacheGeometry(line_size=64, num_sets=4, ways=2)
    sim = Simulation(simulator=CacheSimulator(icache_geometry=g, dcache_geometry=g))
    path = tmp_path / "t.txt"
    # three tags in set 0 of a 2-way cache, then the first again: LRU evicted it
    path.write_text("0 0x000\n0 0x100\n0 0x200\n0 0x000\n9\n")
    sim.run_trace(str(path))
    out = capsys.readouterr().out
    assert sim.records_processed == 5
    assert "Cache misses    : 4" in out
    assert "  way0 TAG=0x002 STATE=E  LRU=1\n" in out
    assert "  way1 TAG=0x000 STATE=E  LRU=0\n" in out


def test_plain_run_keeps_no_hit_rate_history():
    # Input: a long stream of reads cycling over 64 lines, without any export.
    # Expected: counters advance but no per-access history is kept.
    sim = Simulation()
    sim.run_records((0, (i % 64) << 6) for i in range(20000))
    dcache = sim.simulator.dcache
    assert dcache.stats.reads == 20000
    assert dcache.stats.misses == 64
    assert dcache.stats.hit_rate_history == []
    assert sim.simulator.bus.events == []


def test_json_export_records_hit_rate_history(trace_file, tmp_path):
    out_json = tmp_path / "stats.json"
    assert run.main(["--trace", trace_file, "--stats-json", str(out_json)]) == 0
    data = json.loads(out_json.read_text(encoding='utf-8'))
    assert len(data['hit_rate_history']['D$']) == 4
    assert data['hit_rate_history']['I$'] == [0.0]
