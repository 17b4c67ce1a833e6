"""Cache geometry and address decoding.

A 32-bit address is split into three fields:
  offset = address & (line_size - 1)
  index  = (address >> offset_bits) & (num_sets - 1)
  tag    = address >> (offset_bits + index_bits), limited to tag_bits

Geometry is a small value object attached to each cache, so the decoder
never needs to know which kind of cache it is working for.
"""

from dataclasses import dataclass
from typing import Tuple

ADDRESS_BITS = 32
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1


class ConfigurationError(ValueError):
    """Raised when a cache geometry cannot decode addresses consistently."""


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class CacheGeometry:
    line_size: int
    num_sets: int
    ways: int
    address_bits: int = ADDRESS_BITS

    def __post_init__(self):
        if not _is_power_of_two(self.line_size):
            raise ConfigurationError(f"line size must be a power of 2, got {self.line_size}")
        if not _is_power_of_two(self.num_sets):
            raise ConfigurationError(f"number of sets must be a power of 2, got {self.num_sets}")
        if self.ways < 1:
            raise ConfigurationError(f"associativity must be >= 1, got {self.ways}")
        if self.offset_bits + self.index_bits > self.address_bits:
            raise ConfigurationError(
                f"offset ({self.offset_bits}) + index ({self.index_bits}) bits exceed "
                f"the {self.address_bits}-bit address"
            )

    @property
    def offset_bits(self) -> int:
        return self.line_size.bit_length() - 1

    @property
    def index_bits(self) -> int:
        return self.num_sets.bit_length() - 1

    @property
    def tag_bits(self) -> int:
        return self.address_bits - self.offset_bits - self.index_bits

    @property
    def lru_bits(self) -> int:
        """Width of the binary LRU rank in state dumps: ceil(log2(ways))."""
        return (self.ways - 1).bit_length()


# 64-byte lines, 16K sets for both L1 caches; only associativity differs.
ICACHE_GEOMETRY = CacheGeometry(line_size=64, num_sets=16384, ways=4)
DCACHE_GEOMETRY = CacheGeometry(line_size=64, num_sets=16384, ways=8)


def decode(address: int, geometry: CacheGeometry) -> Tuple[int, int, int]:
    """Decode address into (tag, index, offset)."""
    address &= ADDRESS_MASK
    offset = address & (geometry.line_size - 1)
    index = (address >> geometry.offset_bits) & (geometry.num_sets - 1)
    tag = (address >> (geometry.offset_bits + geometry.index_bits)) & ((1 << geometry.tag_bits) - 1)
    return tag, index, offset


def compose(tag: int, index: int, offset: int, geometry: CacheGeometry) -> int:
    """Rebuild an address from its fields (inverse of decode)."""
    return ((tag << (geometry.offset_bits + geometry.index_bits))
            | (index << geometry.offset_bits)
            | offset) & ADDRESS_MASK
