"""Simulation wrapper used by the command line

Reads trace records and forwards them to the cache simulator, then
prints the final statistics and writes any requested exports.
"""
import logging
from typing import Iterable, Optional, Tuple

from cachesim.core.simulator import CacheSimulator
from cachesim.data.stats_export import Exporter
from cachesim.data.trace_reader import read_trace

logger = logging.getLogger(__name__)


class Simulation:
    def __init__(self, verbose: bool = False, simulator: Optional[CacheSimulator] = None,
                 track_history: bool = False):
        # the hit-rate history is only needed by the JSON and chart exports
        self.simulator = simulator or CacheSimulator(verbose=verbose, track_history=track_history)
        self.records_processed = 0

    def run_records(self, records: Iterable[Tuple[int, int]]):
        sim = self.simulator
        for opcode, address in records:
            sim.process(opcode, address)
            self.records_processed += 1

    def run_trace(self, path: str):
        """Run every record of the trace file, then print the statistics."""
        logger.info("running trace %s", path)
        self.run_records(read_trace(path))
        logger.info("processed %d trace records", self.records_processed)
        self.simulator.print_stats()

    def export(self, stats_csv: Optional[str] = None, stats_json: Optional[str] = None,
               chart: Optional[str] = None):
        caches = self.simulator.caches
        if stats_csv:
            Exporter.export_stats_csv(stats_csv, caches)
            logger.info("statistics written to %s", stats_csv)
        if stats_json:
            Exporter.export_stats_json(stats_json, caches)
            logger.info("statistics written to %s", stats_json)
        if chart:
            saved = Exporter.export_hit_rate_chart(chart, caches)
            if saved is None:
                logger.warning("no accesses recorded, chart %s not written", chart)
            else:
                logger.info("hit-rate chart written to %s", chart)
