"""Entry point for the L1 cache simulator.

Usage:
    python run.py --trace TRACEFILE [--mode 0|1]
        mode 0 prints the statistics summary only (default)
        mode 1 also prints the messages sent to L2
"""
import argparse
import logging
import sys

from cachesim.simulation import Simulation


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Trace-driven L1 I$/D$ MESI cache simulator")
    ap.add_argument("--trace", required=True, help="path to the trace file")
    ap.add_argument("--mode", type=int, choices=(0, 1), default=0,
                    help="0: summary only, 1: also print L2 bus messages")
    ap.add_argument("--log-level", default="WARNING",
                    choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    ap.add_argument("--stats-csv", metavar="PATH", help="write final statistics as CSV")
    ap.add_argument("--stats-json", metavar="PATH",
                    help="write final statistics and hit-rate history as JSON")
    ap.add_argument("--chart", metavar="PATH", help="save the hit-rate history as a PDF chart")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format='%(levelname)s: %(message)s')

    sim = Simulation(verbose=args.mode == 1, track_history=bool(args.stats_json or args.chart))
    try:
        sim.run_trace(args.trace)
    except OSError as e:
        print(f"cannot read trace {args.trace}: {e.strerror or e}", file=sys.stderr)
        return 1
    sim.export(stats_csv=args.stats_csv, stats_json=args.stats_json, chart=args.chart)
    return 0


if __name__ == '__main__':
    sys.exit(main())
