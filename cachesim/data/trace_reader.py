"""Trace file reader.

One record per line: `<opcode> [<hex address>]`, e.g.

    # comment
    0 0x1000
    2 40c
    9

Blank lines and `#` comments are skipped. The address is read like C's
strtoul(s, NULL, 16): optional 0x prefix, longest run of hex digits, 0 when
nothing parses (including a missing address field). Values past the
64-bit range saturate to all ones before the result is cut to 32 bits. Lines that do not start
with a non-negative integer opcode are skipped with a warning.
"""
import logging
import re
from typing import Iterable, Iterator, Optional, Tuple

from cachesim.core.address import ADDRESS_MASK

logger = logging.getLogger(__name__)

_ULONG_MAX = (1 << 64) - 1

_OPCODE_RE = re.compile(r'[+-]?\d+')
_HEX_RE = re.compile(r'([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]*)')


def parse_address(field: str) -> int:
    """Parse a hex address field; anything unparsable degrades to 0."""
    m = _HEX_RE.match(field.strip())
    sign, digits = m.group(1), m.group(2)
    if not digits:
        return 0
    value = int(digits, 16)
    # out of range saturates like strtoul, whatever the sign
    if value > _ULONG_MAX:
        return ADDRESS_MASK
    if sign == '-':
        value = -value
    return value & ADDRESS_MASK


def parse_line(line: str) -> Optional[Tuple[int, int]]:
    """Return (opcode, address) for a trace line, or None if it carries no record."""
    text = line.strip()
    if not text or text.startswith('#'):
        return None
    fields = text.split()
    m = _OPCODE_RE.match(fields[0])
    if m is None:
        logger.warning("skipping malformed trace line: %r", text)
        return None
    opcode = int(m.group(0))
    if opcode < 0:
        logger.warning("skipping trace line with negative opcode: %r", text)
        return None
    address = parse_address(fields[1]) if len(fields) > 1 else 0
    return opcode, address


def iter_records(lines: Iterable[str]) -> Iterator[Tuple[int, int]]:
    for line in lines:
        record = parse_line(line)
        if record is not None:
            yield record


def read_trace(path: str) -> Iterator[Tuple[int, int]]:
    """Yield records from the trace file at `path`. Opening errors propagate."""
    with open(path, 'r', encoding='utf-8', errors='replace') as fh:
        yield from iter_records(fh)
