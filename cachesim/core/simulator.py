"""CacheSimulator owns the L1 instruction and data caches.
Feeds trace records into the coherence handlers and prints the reports.
"""
import logging
from enum import IntEnum
from typing import Callable, Iterable, List, Optional, Tuple

from . import coherence
from .address import DCACHE_GEOMETRY, ICACHE_GEOMETRY, CacheGeometry
from .bus import BusEvent, L2Bus
from .cache import ALL_STATES, INSTRUCTION_STATES, Cache
from ..data.report import format_cache_state, format_statistics

logger = logging.getLogger(__name__)


class Opcode(IntEnum):
    DATA_READ = 0
    DATA_WRITE = 1
    INSTRUCTION_FETCH = 2
    INVALIDATE = 3
    RFO_SNOOP = 4
    CLEAR = 8
    PRINT = 9


class CacheSimulator:
    def __init__(self, verbose: bool = False,
                 icache_geometry: CacheGeometry = ICACHE_GEOMETRY,
                 dcache_geometry: CacheGeometry = DCACHE_GEOMETRY,
                 track_history: bool = False):
        self.bus = L2Bus(verbose=verbose)
        self.icache = Cache("I$", icache_geometry, INSTRUCTION_STATES, track_history)
        self.dcache = Cache("D$", dcache_geometry, ALL_STATES, track_history)
        # bus messages posted by the most recent record
        self.last_events: List[BusEvent] = []
        self.sequence: List[Tuple[int, int]] = []
        self.index = 0

    @property
    def caches(self) -> Tuple[Cache, Cache]:
        # order of the final statistics report
        return self.icache, self.dcache

    def clear(self):
        """Opcode 8: both caches back to their initial state."""
        self.icache.reset()
        self.dcache.reset()

    def print_state(self):
        """Opcode 9: data cache first, then instruction cache."""
        for cache in (self.dcache, self.icache):
            for line in format_cache_state(cache):
                print(line)

    def print_stats(self):
        for cache in self.caches:
            for line in format_statistics(cache):
                print(line)

    def process(self, opcode: int, address: int = 0):
        """Run a single trace record. Unknown opcodes are ignored.

        Returns the handler's result: an AccessResult for reads, writes and
        fetches, a bool for invalidate/snoop, None otherwise. The bus log is
        drained afterwards; the record's messages are kept in `last_events`.
        """
        result = self._dispatch(opcode, address)
        self.last_events = self.bus.drain()
        return result

    def _dispatch(self, opcode: int, address: int):
        if opcode == Opcode.DATA_READ:
            return coherence.data_read(self.dcache, self.bus, address)
        if opcode == Opcode.DATA_WRITE:
            return coherence.data_write(self.dcache, self.bus, address)
        if opcode == Opcode.INSTRUCTION_FETCH:
            return coherence.instruction_fetch(self.icache, self.bus, address)
        if opcode == Opcode.INVALIDATE:
            return coherence.invalidate(self.dcache, address)
        if opcode == Opcode.RFO_SNOOP:
            return coherence.rfo_snoop(self.dcache, self.bus, address)
        if opcode == Opcode.CLEAR:
            self.clear()
        elif opcode == Opcode.PRINT:
            self.print_state()
        else:
            logger.debug("ignoring unknown opcode %d", opcode)
        return None

    def load_sequence(self, records: Iterable[Tuple[int, int]]):
        # sequence is a list of (opcode, address). We step
        # through it with `step()` which advances self.index.
        self.sequence = list(records)
        self.index = 0

    def has_next(self) -> bool:
        return self.index < len(self.sequence)

    def step(self) -> Optional[dict]:
        if not self.has_next():
            return None
        opcode, address = self.sequence[self.index]
        self.index += 1

        result = self.process(opcode, address)
        return {
            'opcode': opcode,
            'address': address,
            'result': result,
            'events': self.last_events,
        }

    def run_all(self, callback: Optional[Callable[[dict], None]] = None):
        while self.has_next():
            info = self.step()
            if callback:
                callback(info)
