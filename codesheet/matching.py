"""
Zoning district resolution.

A wizard selection (jurisdiction + district code such as "r-5") is matched
against uploaded zoning rows whose district text is free-form ("R-5
Residential", "Residential (R-5)", "R5"). Strategies run in order; a
strategy is tried only when every earlier one matched nothing. Within a
strategy the first row in dataset order wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .rules import DISTRICT_STRIP_RE, DISTRICT_WORD_ALIASES
from .table import Record, cell_text, records_of

Predicate = Callable[[str, str], bool]

JURISDICTION_KEYS = ("county", "jurisdiction")
DISTRICT_KEYS = ("zoning_district", "district")

_WORD_RES = tuple(
    (re.compile(rf"\b{re.escape(word)}\b"), alias) for word, alias in DISTRICT_WORD_ALIASES
)
_PARENTHETICAL = re.compile(r"\(([^)]*)\)")
_ALNUM_CODE = re.compile(r"([a-z]+)-?(\d+(?:\.\d+)?)")
_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True)
class MatchStrategy:
    name: str
    predicate: Predicate


@dataclass(frozen=True)
class MatchOutcome:
    record: Optional[Record]
    strategy: Optional[str]
    jurisdiction_values: List[str] = field(default_factory=list)
    district_values: List[str] = field(default_factory=list)
    candidates: int = 0


def normalize_district(text: str) -> str:
    """'BMX-3 Community Business Mixed Use' -> 'bmx3communitybusinessmix'."""
    value = text.lower()
    for pattern, alias in _WORD_RES:
        value = pattern.sub(alias, value)
    return DISTRICT_STRIP_RE.sub("", value)


def exact_match(district: str, target: str) -> bool:
    d = district.lower()
    t = target.lower()
    return t == d or t == re.sub(r"\s+", "_", d)


def substring_match(district: str, target: str) -> bool:
    d = normalize_district(district)
    t = normalize_district(target)
    if not d or not t:
        return False
    return t in d or d in t


def parenthetical_match(district: str, target: str) -> bool:
    m = _PARENTHETICAL.search(district)
    if not m:
        return False
    inner = normalize_district(m.group(1))
    return bool(inner) and inner == normalize_district(target)


def alphanumeric_match(district: str, target: str) -> bool:
    d = _ALNUM_CODE.search(district.lower())
    t = _ALNUM_CODE.search(target.lower())
    if not d or not t:
        return False
    return d.groups() == t.groups()


def leading_number_match(district: str, target: str) -> bool:
    d = _DIGITS.search(district)
    t = _DIGITS.search(target)
    if not d or not t:
        return False
    return d.group(0) == t.group(0)


def starts_with_match(district: str, target: str) -> bool:
    d = district.lower()
    t = target.lower()
    if d.startswith(t):
        return True
    d_words = d.split()
    t_words = t.split()
    return bool(d_words and t_words) and d_words[0] == t_words[0]


DEFAULT_STRATEGIES: Tuple[MatchStrategy, ...] = (
    MatchStrategy("exact", exact_match),
    MatchStrategy("substring", substring_match),
    MatchStrategy("parenthetical", parenthetical_match),
    MatchStrategy("alphanumeric", alphanumeric_match),
    MatchStrategy("leading-number", leading_number_match),
    MatchStrategy("starts-with", starts_with_match),
)


def _first_present(record: Record, keys: Sequence[str]) -> str:
    for key in keys:
        if key in record:
            text = cell_text(record[key])
            if text:
                return text
    return ""


def resolve_with_trace(
    dataset: Any,
    jurisdiction: Optional[str],
    target_code: Optional[str],
    strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
) -> MatchOutcome:
    rows = records_of(dataset)
    jurisdiction_values = sorted({_first_present(r, JURISDICTION_KEYS).lower() for r in rows} - {""})

    target = (target_code or "").strip()
    wanted = (jurisdiction or "").strip().lower()
    if not rows or not target or not wanted:
        return MatchOutcome(None, None, jurisdiction_values)

    scoped = [r for r in rows if _first_present(r, JURISDICTION_KEYS).lower() == wanted]
    districts = [(r, _first_present(r, DISTRICT_KEYS)) for r in scoped]
    district_values = [d for _, d in districts if d]

    for strategy in strategies:
        for record, district in districts:
            if district and strategy.predicate(district, target):
                return MatchOutcome(record, strategy.name, jurisdiction_values, district_values, len(scoped))

    return MatchOutcome(None, None, jurisdiction_values, district_values, len(scoped))


def resolve_zoning_match(
    dataset: Any,
    jurisdiction: Optional[str],
    target_code: Optional[str],
    strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
) -> Optional[Record]:
    """Return the zoning row for (jurisdiction, district code), or None when nothing fits."""
    return resolve_with_trace(dataset, jurisdiction, target_code, strategies).record
