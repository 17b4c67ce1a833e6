"""Text reports for cache contents and statistics.

Contents dump (one block per cache, only sets holding a valid line):

    === D$ Contents ===
    Set 0x0000:
      way0 TAG=0x000 STATE=E  LRU=000

Statistics dump (writes only for caches that can be written):

    === D$ Statistics ===
    Cache reads     : 1
    Cache writes    : 0
    Cache hits      : 0
    Cache misses    : 1
    Cache hit ratio :  0.00 %
"""
from typing import List


def lru_bits(rank: int, width: int) -> str:
    """Render an LRU rank as a fixed-width binary string."""
    if width <= 0:
        return ''
    return format(rank & ((1 << width) - 1), f'0{width}b')


def format_cache_state(cache) -> List[str]:
    lines = [f"=== {cache.name} Contents ==="]
    width = cache.geometry.lru_bits
    current_set = None
    for set_index, way, line in cache.valid_lines():
        if set_index != current_set:
            lines.append(f"Set 0x{set_index:04x}:")
            current_set = set_index
        lines.append(
            f"  way{way} TAG=0x{line.tag:03x} STATE={line.state.label}  LRU={lru_bits(line.lru, width)}"
        )
    return lines


def format_statistics(cache) -> List[str]:
    s = cache.stats
    lines = [
        f"=== {cache.name} Statistics ===",
        f"Cache reads     : {s.reads}",
    ]
    if cache.writable:
        lines.append(f"Cache writes    : {s.writes}")
    lines.extend([
        f"Cache hits      : {s.hits}",
        f"Cache misses    : {s.misses}",
        f"Cache hit ratio : {s.hit_ratio_percent:5.2f} %",
    ])
    return lines
