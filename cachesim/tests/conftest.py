"""Test configuration for pytest.

Ensure the repository root is on sys.path so tests can import the `cachesim`
package without needing PYTHONPATH set externally. Also provides the small
geometries most tests use so a whole set can be filled in a few accesses.
"""
import os
import sys

import pytest

# Compute project root: two directories above this file (cachesim/tests -> cachesim -> project root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from cachesim.core.address import CacheGeometry  # noqa: E402


@pytest.fixture
def small_geometry():
    # 64-byte lines, 4 sets, 4 ways -> offset 6 bits, index 2 bits, tag 24 bits
    return CacheGeometry(line_size=64, num_sets=4, ways=4)


@pytest.fixture
def addr_of(small_geometry):
    """Build an address that maps to (tag, set) in the small geometry."""
    def _addr(tag, set_index=0, offset=0):
        return (tag << 8) | (set_index << 6) | offset
    return _addr
