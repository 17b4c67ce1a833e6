"""Core cache storage

This file provides the set-associative line store used by the coherence
handlers and the simulator.
Behavior:
- Cache is composed of `num_sets` sets; each set has `ways` lines.
  tag, set_index, offset = decode(address, geometry)
- A line whose MESI state is Invalid is empty; its tag/rank are don't-care.
- Victim choice and recency are delegated to the LRU replacement policy.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, Iterator, List, Optional, Tuple

from cachesim.core.address import CacheGeometry, decode
from cachesim.core.replacement_policies import LRUReplacement
from cachesim.data.stats_export import Statistics

logger = logging.getLogger(__name__)


class MesiState(Enum):
    INVALID = "I"
    SHARED = "S"
    EXCLUSIVE = "E"
    MODIFIED = "M"

    @property
    def label(self) -> str:
        return self.value


ALL_STATES: FrozenSet[MesiState] = frozenset(MesiState)
# instruction lines are never written, so they never become Modified
INSTRUCTION_STATES: FrozenSet[MesiState] = frozenset(
    {MesiState.INVALID, MesiState.SHARED, MesiState.EXCLUSIVE}
)


@dataclass
class CacheLine:
    """container for a cache line (way).

    Fields:
    - tag: the tag stored in the line (meaningful only when state is not Invalid)
    - state: MESI state of the line
    - lru: recency rank inside the set, 0 = most recently used
    """

    tag: int = 0
    state: MesiState = MesiState.INVALID
    lru: int = 0

    @property
    def valid(self) -> bool:
        return self.state is not MesiState.INVALID


class Cache:
    """Set-associative cache with MESI line states and LRU ranks."""

    def __init__(self, name: str, geometry: CacheGeometry, states: FrozenSet[MesiState] = ALL_STATES,
                 track_history: bool = False):
        self.name = name
        self.geometry = geometry
        self.ways = geometry.ways
        self.num_sets = geometry.num_sets
        self.states = states
        self.stats = Statistics(track_history=track_history)
        self.replacement_policy = LRUReplacement(self.ways)

        # allocate the sets matrix: num_sets x ways
        self.sets: List[List[CacheLine]] = [
            [CacheLine(lru=self.ways - 1) for _ in range(self.ways)]
            for _ in range(self.num_sets)
        ]

    def decode(self, address: int) -> Tuple[int, int, int]:
        """Decode address into (tag, set_index, offset)."""
        return decode(address, self.geometry)

    def line(self, set_index: int, way: int) -> CacheLine:
        return self.sets[set_index][way]

    def find_way(self, set_index: int, tag: int) -> Optional[int]:
        """Return the valid way holding `tag`, or None."""
        for wi, line in enumerate(self.sets[set_index]):
            if line.valid and line.tag == tag:
                return wi
        return None

    def find_invalid_way(self, set_index: int) -> Optional[int]:
        """Return the lowest Invalid way, or None when the set is full."""
        for wi, line in enumerate(self.sets[set_index]):
            if not line.valid:
                return wi
        return None

    def find_victim_way(self, set_index: int) -> int:
        lines = self.sets[set_index]
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s: set 0x%04x recency LRU->MRU %s", self.name, set_index,
                         self.replacement_policy.peek(lines))
        return self.replacement_policy.evict(lines)

    def allocate_way(self, set_index: int) -> Tuple[int, Optional[CacheLine]]:
        """Pick the way a missing block goes into.

        Returns (way, evicted) where `evicted` is a copy of the victim line
        when a valid line has to make room, otherwise None.
        """
        way = self.find_invalid_way(set_index)
        if way is not None:
            return way, None
        way = self.find_victim_way(set_index)
        return way, replace(self.sets[set_index][way])

    def touch(self, set_index: int, way: int) -> None:
        """Make `way` the most recently used line of its set."""
        self.replacement_policy.access(self.sets[set_index], way)

    @property
    def writable(self) -> bool:
        return MesiState.MODIFIED in self.states

    def set_state(self, line: CacheLine, state: MesiState) -> None:
        if state not in self.states:
            raise ValueError(f"{self.name} lines cannot enter state {state.name}")
        line.state = state

    def valid_lines(self) -> Iterator[Tuple[int, int, CacheLine]]:
        """Yield (set_index, way, line) for every non-Invalid line."""
        for si, cache_set in enumerate(self.sets):
            for wi, line in enumerate(cache_set):
                if line.valid:
                    yield si, wi, line

    def reset(self):
        """Invalidate every line, restore initial ranks and zero the stats."""
        for cache_set in self.sets:
            for line in cache_set:
                line.tag = 0
                line.state = MesiState.INVALID
            self.replacement_policy.reset(cache_set)
        self.stats.reset()
