"""MESI transition rules for the L1 instruction and data caches.

One handler per trace operation. Each handler decodes the address in its
cache's geometry, looks the tag up, applies the state change, updates the
statistics and the LRU ranks, and posts L2 notifications on the bus.

Transitions:
- fetch/read hit:   E -> S, otherwise unchanged
- fetch/read miss:  -> E (read from L2), a Modified victim is written back first
- write hit:        E/S -> M without any bus traffic
- write miss:       RFO, -> E, first write goes through to L2, -> M
- invalidate:       any -> I, silently
- RFO snoop:        M/E/S -> I, data returned to L2
Snoops and invalidations never touch statistics or recency.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .address import compose
from .bus import BusEvent, L2Bus
from .cache import Cache, CacheLine, MesiState

logger = logging.getLogger(__name__)


@dataclass
class AccessResult:
    """Outcome of a fetch/read/write.

    `evicted` is a copy of the line that was replaced on a miss into a full
    set; `events` lists the bus notifications posted by this access in order.
    """

    hit: bool
    set_index: int
    way: int
    tag: int
    state: MesiState
    evicted: Optional[CacheLine] = None
    events: List[BusEvent] = field(default_factory=list)


def _fill(cache: Cache, bus: L2Bus, set_index: int, tag: int, write_back_victim: bool):
    """Choose the way a missing block goes into and evict its occupant."""
    way, evicted = cache.allocate_way(set_index)
    if evicted is not None:
        logger.debug("%s: evicting block 0x%08x (%s) from set 0x%04x way %d",
                     cache.name, compose(evicted.tag, set_index, 0, cache.geometry),
                     evicted.state.label, set_index, way)
        if write_back_victim and evicted.state is MesiState.MODIFIED:
            bus.post(BusEvent.WRITE)
    line = cache.line(set_index, way)
    line.tag = tag
    return way, line, evicted


def _read_access(cache: Cache, bus: L2Bus, address: int, write_back_victim: bool) -> AccessResult:
    tag, set_index, _ = cache.decode(address)
    first_event = len(bus.events)
    cache.stats.record_read()

    way = cache.find_way(set_index, tag)
    if way is not None:
        cache.stats.record_lookup(True)
        line = cache.line(set_index, way)
        # a second reader of an exclusive line treats it as shared
        if line.state is MesiState.EXCLUSIVE:
            cache.set_state(line, MesiState.SHARED)
        cache.touch(set_index, way)
        logger.debug("%s: read hit 0x%08x set 0x%04x way %d", cache.name, address, set_index, way)
        return AccessResult(True, set_index, way, tag, line.state, events=bus.events[first_event:])

    cache.stats.record_lookup(False)
    way, line, evicted = _fill(cache, bus, set_index, tag, write_back_victim)
    cache.set_state(line, MesiState.EXCLUSIVE)
    bus.post(BusEvent.READ)
    cache.touch(set_index, way)
    logger.debug("%s: read miss 0x%08x set 0x%04x way %d", cache.name, address, set_index, way)
    return AccessResult(False, set_index, way, tag, line.state, evicted, bus.events[first_event:])


def instruction_fetch(cache: Cache, bus: L2Bus, address: int) -> AccessResult:
    """Opcode 2. Instruction lines are never Modified, so no write-back."""
    return _read_access(cache, bus, address, write_back_victim=False)


def data_read(cache: Cache, bus: L2Bus, address: int) -> AccessResult:
    """Opcode 0."""
    return _read_access(cache, bus, address, write_back_victim=True)


def data_write(cache: Cache, bus: L2Bus, address: int) -> AccessResult:
    """Opcode 1. Write-allocate with read-for-ownership on a miss."""
    tag, set_index, _ = cache.decode(address)
    first_event = len(bus.events)
    cache.stats.record_write()

    way = cache.find_way(set_index, tag)
    if way is not None:
        cache.stats.record_lookup(True)
        line = cache.line(set_index, way)
        if line.state in (MesiState.EXCLUSIVE, MesiState.SHARED):
            cache.set_state(line, MesiState.MODIFIED)
        cache.touch(set_index, way)
        logger.debug("%s: write hit 0x%08x set 0x%04x way %d", cache.name, address, set_index, way)
        return AccessResult(True, set_index, way, tag, line.state, events=bus.events[first_event:])

    cache.stats.record_lookup(False)
    way, line, evicted = _fill(cache, bus, set_index, tag, write_back_victim=True)
    bus.post(BusEvent.RFO)
    # the line starts Exclusive; the first write goes through to L2
    cache.set_state(line, MesiState.EXCLUSIVE)
    bus.post(BusEvent.WRITE)
    cache.set_state(line, MesiState.MODIFIED)
    cache.touch(set_index, way)
    logger.debug("%s: write miss 0x%08x set 0x%04x way %d", cache.name, address, set_index, way)
    return AccessResult(False, set_index, way, tag, line.state, evicted, bus.events[first_event:])


def invalidate(cache: Cache, address: int) -> bool:
    """Opcode 3. Returns True when a resident line was invalidated."""
    tag, set_index, _ = cache.decode(address)
    way = cache.find_way(set_index, tag)
    if way is None:
        return False
    cache.set_state(cache.line(set_index, way), MesiState.INVALID)
    logger.debug("%s: invalidated 0x%08x set 0x%04x way %d", cache.name, address, set_index, way)
    return True


def rfo_snoop(cache: Cache, bus: L2Bus, address: int) -> bool:
    """Opcode 4. Returns True when data was handed back to L2."""
    tag, set_index, _ = cache.decode(address)
    way = cache.find_way(set_index, tag)
    if way is None:
        return False
    line = cache.line(set_index, way)
    if line.state not in (MesiState.MODIFIED, MesiState.EXCLUSIVE, MesiState.SHARED):
        return False
    bus.post(BusEvent.RETURN_DATA)
    cache.set_state(line, MesiState.INVALID)
    logger.debug("%s: snooped 0x%08x set 0x%04x way %d", cache.name, address, set_index, way)
    return True
