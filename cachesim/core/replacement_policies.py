"""LRU replacement using per-line rank integers.

Every line of a set carries an `lru` rank: 0 is the most recently used way
and `ways - 1` the least recently used (or never used) one. The policy
keeps a small API so the cache can call it without knowing the internals:

- access(lines, way): promote `way` to MRU and age the ways that were newer
- evict(lines): choose the victim way (highest rank, lowest index on ties)
- peek(lines): way indices ordered LRU -> MRU (for reports/debug)
- reset(lines): put every rank back to `ways - 1`

The rank array is an O(ways) stand-in for a recency-ordered list; once all
ways of a set have been touched the ranks are a permutation of 0..ways-1.
"""

from typing import List, Sequence


class LRUReplacement:
    """Least-Recently-Used replacement over rank fields."""

    def __init__(self, ways: int):
        self.ways = int(ways)

    def access(self, lines: Sequence, way: int) -> None:
        """Register an access to `way`."""
        previous = lines[way].lru
        for wi, line in enumerate(lines):
            # only ways newer than the touched one get older
            if wi != way and line.lru < previous:
                line.lru += 1
        lines[way].lru = 0

    def evict(self, lines: Sequence) -> int:
        """Return the LRU way. Strict '>' keeps the first maximal way."""
        victim = 0
        max_rank = lines[0].lru
        for wi in range(1, len(lines)):
            if lines[wi].lru > max_rank:
                max_rank = lines[wi].lru
                victim = wi
        return victim

    def peek(self, lines: Sequence) -> List[int]:
        """Return way indices from LRU->MRU, for debug logging."""
        return sorted(range(len(lines)), key=lambda wi: (-lines[wi].lru, wi))

    def reset(self, lines: Sequence) -> None:
        for line in lines:
            line.lru = self.ways - 1


__all__ = ["LRUReplacement"]
