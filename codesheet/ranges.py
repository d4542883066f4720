"""Range literals found in threshold tables: "26-50", "1001+", "1001 and over", "7"."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Union

Number = Union[int, float]

_CLOSED = re.compile(r"^(\d+)\s*(?:-|–|to)\s*(\d+)$", re.IGNORECASE)
_OPEN_PLUS = re.compile(r"^(\d+)\s*\+$")
_OPEN_WORDS = re.compile(r"^(\d+)\s+(?:and|or)\s+(?:over|above|more|up)$", re.IGNORECASE)
_EXACT = re.compile(r"^(\d+)$")


@dataclass(frozen=True)
class Interval:
    lower: Number
    upper: Optional[Number]  # None: open-ended
    kind: str  # exact | closed | open

    def contains(self, value: Number) -> bool:
        if value < self.lower:
            return False
        return self.upper is None or value <= self.upper

    def __str__(self) -> str:
        if self.kind == "open":
            return f"{self.lower}+"
        if self.kind == "exact":
            return str(self.lower)
        return f"{self.lower}-{self.upper}"


def parse_range(value: Any) -> Optional[Interval]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Interval(value, value, "exact")
    if isinstance(value, float):
        return Interval(value, value, "exact") if value.is_integer() else None
    if not isinstance(value, str):
        return None

    text = value.strip().replace(",", "")

    m = _CLOSED.match(text)
    if m:
        lo, hi = int(m.group(1)), int(m.group(2))
        if lo > hi:
            lo, hi = hi, lo
        return Interval(lo, hi, "closed")

    m = _OPEN_PLUS.match(text) or _OPEN_WORDS.match(text)
    if m:
        return Interval(int(m.group(1)), None, "open")

    m = _EXACT.match(text)
    if m:
        n = int(m.group(1))
        return Interval(n, n, "exact")
    return None
