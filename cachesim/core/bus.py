"""L2 bus notifications.

The L1 caches never move data; they only announce what they would ask of
(or hand to) the next level. Every message is recorded in `events` so
callers can inspect it, and printed when the bus is verbose (mode 1).
CacheSimulator.process drains the log after every record; code calling the
coherence handlers directly owns the bus and drains it itself.
"""
import logging
from enum import Enum
from typing import List

logger = logging.getLogger(__name__)


class BusEvent(Enum):
    READ = "Read from L2"
    RFO = "Read for Ownership from L2"
    WRITE = "Write to L2"
    RETURN_DATA = "Return data to L2"


class L2Bus:
    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.events: List[BusEvent] = []

    def post(self, event: BusEvent) -> None:
        self.events.append(event)
        logger.debug("bus: %s", event.value)
        if self.verbose:
            print(event.value)

    def drain(self) -> List[BusEvent]:
        """Return the recorded events and start a fresh log."""
        events, self.events = self.events, []
        return events
