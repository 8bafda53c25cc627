"""
asset_engines.request_number -- Request number formatting and scanning.

Responsibility:
    Request numbers look like ``DM-2026-00042``: prefix, calendar year and
    a five-digit sequence that restarts every year.  This module formats,
    parses, and computes the next number from the set already in use.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The clock year is passed
    in by the caller.

Invariants enforced:
    - The next sequence is ``max(seq of numbers matching prefix+year) + 1``
      or 1 when none match.  Numbers of other prefixes, other years, or
      that do not parse are ignored.
    - Sequences wider than five digits are still parsed (``DM-2026-100000``)
      and formatted without truncation.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

SEQUENCE_WIDTH = 5

_REQUEST_NO_RE = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<year>\d{4})-(?P<seq>\d+)$")


@dataclass(frozen=True)
class RequestNumber:
    """Parsed request number."""

    prefix: str
    year: int
    seq: int

    def __str__(self) -> str:
        return format_request_no(self.prefix, self.year, self.seq)


def format_request_no(prefix: str, year: int, seq: int) -> str:
    """``format_request_no("DM", 2026, 7) -> "DM-2026-00007"``."""
    if seq < 1:
        raise ValueError(f"Request sequence must be positive, got {seq}")
    return f"{prefix}-{year:04d}-{seq:0{SEQUENCE_WIDTH}d}"


def parse_request_no(value: str) -> RequestNumber | None:
    """Parse a request number, or None if it is not well formed."""
    match = _REQUEST_NO_RE.match(value.strip()) if value else None
    if match is None:
        return None
    return RequestNumber(
        prefix=match.group("prefix"),
        year=int(match.group("year")),
        seq=int(match.group("seq")),
    )


def max_sequence(prefix: str, year: int, existing: Iterable[str]) -> int:
    """Highest sequence in ``existing`` for ``prefix``/``year`` (0 if none)."""
    highest = 0
    for value in existing:
        parsed = parse_request_no(value)
        if parsed is None or parsed.prefix != prefix or parsed.year != year:
            continue
        highest = max(highest, parsed.seq)
    return highest


def next_request_no(prefix: str, year: int, existing: Iterable[str]) -> str:
    """Next free request number for ``prefix`` in ``year``."""
    return format_request_no(prefix, year, max_sequence(prefix, year, existing) + 1)
