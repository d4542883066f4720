"""
Scalar lookups against normalized reference tables.

None of these raise for missing data: "no table uploaded yet" and "no row
for this selection" are normal states of the worksheet, so they come back
as a zero result with a description the UI can show. Only a dataset of the
wrong shape raises (DatasetShapeError).
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .parser import canonical_header, parse_number
from .ranges import parse_range
from .rules import (
    ADA_FALLBACK_TIERS,
    ADA_OVER_1000_BASE,
    ADA_OVER_1000_STEP,
    ADA_OVER_1000_THRESHOLDS,
    ADA_PERCENT_RATE,
    ADA_PERCENT_THRESHOLD,
    DEFAULT_OCCUPANT_LOAD_FACTOR,
    EXIT_THRESHOLDS,
    MIN_EXITS,
    OCCUPANT_LOAD_FACTORS,
    DatasetType,
)
from .table import Dataset, Record, cell_text, records_of

logger = logging.getLogger("codesheet.lookups")

Number = Union[int, float]

_PER_UNIT = re.compile(
    r"^\s*(?:(\d+(?:\.\d+)?)\s*)?(?:/|per)\s*(?:du|d\.u\.|dwelling(?:\s+units?)?|units?)(?![a-z])",
    re.IGNORECASE,
)
_PER_AREA = re.compile(
    r"^\s*(?:(\d+(?:\.\d+)?)\s*)?(?:/|per)\s*"
    r"(?:([\d,]+(?:\.\d+)?)?\s*(?:sf|sq\.?\s*ft\.?|square\s+feet)(?![a-z])"
    # "1 per 300": a bare denominator is square feet
    r"|([\d,]+(?:\.\d+)?)\s*$)",
    re.IGNORECASE,
)
_SPLIT_PARKING = re.compile(r"^([\d.]+)\s*(?:/|per)\s*(.+)$", re.IGNORECASE)
_HOURS = re.compile(r"\s*(?:hours?|hrs?)\.?\s*$", re.IGNORECASE)

ADA_SPACES_KEY = "total_parking_spaces_provided"
ADA_STALLS_KEY = "minimum_required_ada_stalls"

_LIMIT_UNITS = {
    DatasetType.HEIGHT_LIMITS: "ft",
    DatasetType.STORY_LIMITS: "stories",
    DatasetType.AREA_LIMITS: "sq ft",
}


@dataclass(frozen=True)
class LookupResult:
    required: int
    description: str
    source: Optional[str] = None


@dataclass(frozen=True)
class LimitResult:
    limit: Number
    description: str


@dataclass(frozen=True)
class ParkingMetrics:
    units: Number = 0
    area: Number = 0


@dataclass(frozen=True)
class EgressResult:
    exits_required: int
    max_travel_distance: Optional[Number]
    description: str


def _ceil(value: float) -> int:
    # round first so 550 * 0.02 == 11.000000000000002 stays 11
    return int(math.ceil(round(value, 9)))


def _same(cell: Any, query: Any) -> bool:
    """Case-insensitive cell equality. A blank query matches nothing, blank cells included."""
    wanted = cell_text(query).lower()
    return bool(wanted) and cell_text(cell).lower() == wanted


def _jurisdiction(record: Record) -> str:
    return cell_text(record.get("county") or record.get("jurisdiction") or "")


# ---------------------------------------------------------------------------
# ADA stalls
# ---------------------------------------------------------------------------

def ada_stalls_fallback(total_spaces: Number) -> LookupResult:
    """Built-in 2010 ADA Standards table, used when no ADA dataset is loaded."""
    if total_spaces <= 0:
        return LookupResult(0, "No parking provided; no accessible stalls required.")

    for upper, stalls in ADA_FALLBACK_TIERS:
        if total_spaces <= upper:
            if stalls is None:
                required = _ceil(total_spaces * ADA_PERCENT_RATE)
                return LookupResult(required, f"2% of {total_spaces} spaces, rounded up (built-in table).")
            return LookupResult(stalls, f"{stalls} accessible stalls for up to {upper} spaces (built-in table).")

    required = ADA_OVER_1000_BASE + _ceil((total_spaces - 1000) / ADA_OVER_1000_STEP)
    return LookupResult(
        required,
        f"20 plus 1 per 100 spaces over 1000 for {total_spaces} spaces (built-in table).",
    )


def lookup_ada_stalls(dataset: Any, total_spaces: Any) -> LookupResult:
    rows = records_of(dataset)
    count = parse_number(total_spaces)
    if count is None:
        return LookupResult(0, f"Total parking count {total_spaces!r} is not a number.")
    if count <= 0 or not rows:
        return ada_stalls_fallback(count)

    for rec in rows:
        interval = parse_range(rec.get(ADA_SPACES_KEY))
        if interval is None or not interval.contains(count):
            continue

        if interval.lower in ADA_OVER_1000_THRESHOLDS:
            required = ADA_OVER_1000_BASE + _ceil((count - 1000) / ADA_OVER_1000_STEP)
            return LookupResult(required, f"20 plus 1 per 100 spaces over 1000 (table range {interval}).")
        if interval.lower == ADA_PERCENT_THRESHOLD:
            required = _ceil(count * ADA_PERCENT_RATE)
            return LookupResult(required, f"2% of {count} spaces, rounded up (table range {interval}).")

        raw = rec.get(ADA_STALLS_KEY)
        stalls = parse_number(raw)
        if stalls is None:
            return LookupResult(
                0,
                f"Table range {interval} has an unreadable stall value {cell_text(raw)!r}.",
                source=cell_text(raw),
            )
        return LookupResult(_ceil(stalls), f"{_ceil(stalls)} accessible stalls for {count} spaces (table range {interval}).")

    return LookupResult(0, f"No ADA table range covers {count} spaces.")


# ---------------------------------------------------------------------------
# Parking
# ---------------------------------------------------------------------------

def split_parking_requirement(text: Optional[str]) -> Tuple[str, str]:
    """'2 / DU' -> ('2', 'DU'). Text without a ratio comes back whole as the spaces part."""
    if not text:
        return "", ""
    m = _SPLIT_PARKING.match(text.strip())
    if m:
        return m.group(1).strip(), m.group(2).strip()
    return text, ""


def format_parking_requirement(spaces: str, unit: str) -> str:
    if not spaces:
        return ""
    if not unit:
        return spaces
    return f"{spaces} / {unit}"


def parking_from_requirement(requirement: Any, metrics: ParkingMetrics) -> LookupResult:
    text = cell_text(requirement)

    m = _PER_UNIT.match(text)
    if m:
        rate = float(m.group(1) or 1)
        required = _ceil(rate * metrics.units)
        return LookupResult(required, f"{text}: {rate:g} x {metrics.units} units", source=text)

    m = _PER_AREA.match(text)
    if m:
        rate = float(m.group(1) or 1)
        per = float((m.group(2) or m.group(3) or "1").replace(",", ""))
        if per > 0:
            required = _ceil(metrics.area / per * rate)
            return LookupResult(required, f"{text}: {metrics.area} SF / {per:g} x {rate:g}", source=text)

    logger.info("unparsed parking requirement %r", text)
    return LookupResult(0, f"Could not interpret parking requirement '{text}'.", source=text)


def lookup_parking_rate(
    dataset: Any,
    jurisdiction: Optional[str],
    use_type: Optional[str],
    metrics: ParkingMetrics = ParkingMetrics(),
) -> LookupResult:
    rows = records_of(dataset)
    if not rows:
        return LookupResult(0, "No parking requirements dataset is loaded.")

    for rec in rows:
        if _same(_jurisdiction(rec), jurisdiction or "") and _same(rec.get("use_type", ""), use_type or ""):
            return parking_from_requirement(rec.get("parking_requirement", ""), metrics)

    return LookupResult(0, f"No parking requirement for use '{use_type}' in '{jurisdiction}'.")


# ---------------------------------------------------------------------------
# IBC tables
# ---------------------------------------------------------------------------

def _dataset_kind(dataset: Any, dataset_type: Optional[DatasetType]) -> Optional[DatasetType]:
    if dataset_type is not None:
        return DatasetType.coerce(dataset_type)
    if isinstance(dataset, Dataset):
        return dataset.dataset_type
    return None


def lookup_ibc_limit(
    dataset: Any,
    occupancy: Optional[str],
    construction_type: Optional[str],
    sprinklered: bool,
    dataset_type: Optional[DatasetType] = None,
) -> LimitResult:
    """Height, story or area limit for an occupancy/construction pair, sprinklered ('s') or not ('ns')."""
    rows = records_of(dataset)
    kind = _dataset_kind(dataset, dataset_type)
    unit = _LIMIT_UNITS.get(kind, "")
    column = "s" if sprinklered else "ns"
    label = "sprinklered" if sprinklered else "non-sprinklered"

    if not rows:
        return LimitResult(0, "No IBC limits table is loaded.")

    for rec in rows:
        if _same(rec.get("occupancy", ""), occupancy or "") and _same(
            rec.get("type_of_construction", ""), construction_type or ""
        ):
            raw = rec.get(column, "")
            limit = parse_number(raw)
            if limit is None:
                return LimitResult(0, f"Limit '{cell_text(raw)}' for {occupancy} / {construction_type} ({label}) is not numeric.")
            amount = f"{limit} {unit}".strip()
            return LimitResult(limit, f"{amount} for {occupancy} / {construction_type} ({label}).")

    return LimitResult(0, f"No IBC limit found for {occupancy} / {construction_type}.")


def lookup_fire_rating(dataset: Any, construction_type: Optional[str], element: str) -> LimitResult:
    """Fire-resistance rating in hours for a building element ("exterior walls", "roof_construction")."""
    rows = records_of(dataset)
    column = canonical_header(element or "")
    if not rows:
        return LimitResult(0, "No fire rating table is loaded.")

    for rec in rows:
        if _same(rec.get("type_of_construction", ""), construction_type or ""):
            raw = rec.get(column)
            if raw is None:
                return LimitResult(0, f"Fire rating table has no '{column}' column.")
            hours = parse_number(_HOURS.sub("", cell_text(raw)))
            if hours is None:
                return LimitResult(0, f"Rating '{cell_text(raw)}' for {column} in type {construction_type} is not numeric.")
            return LimitResult(hours, f"{hours} hr {column.replace('_', ' ')} for type {construction_type}.")

    return LimitResult(0, f"No fire rating row for construction type {construction_type}.")


# ---------------------------------------------------------------------------
# Egress
# ---------------------------------------------------------------------------

def estimate_occupant_load(occupancy: Optional[str], area: Number) -> int:
    key = re.sub(r"[^a-z0-9]", "", (occupancy or "").lower())
    factor = OCCUPANT_LOAD_FACTORS.get(key, DEFAULT_OCCUPANT_LOAD_FACTOR)
    if not area or area <= 0:
        return 0
    return _ceil(area / factor)


def required_exits(occupant_load: Number) -> int:
    for above, exits in EXIT_THRESHOLDS:
        if occupant_load > above:
            return exits
    return MIN_EXITS


def lookup_egress(dataset: Any, occupancy: Optional[str], occupant_load: Number) -> EgressResult:
    """
    First egress row for the occupancy whose max_occupant_load covers the load
    (a blank or non-numeric max covers everything). Without a match the
    built-in exit-count thresholds apply.
    """
    rows = records_of(dataset)
    for rec in rows:
        if not _same(rec.get("occupancy", ""), occupancy or ""):
            continue
        ceiling = parse_number(rec.get("max_occupant_load", ""))
        if ceiling is not None and occupant_load > ceiling:
            continue
        exits = parse_number(rec.get("min_exits", ""))
        if exits is None:
            continue
        travel = parse_number(rec.get("max_travel_distance", ""))
        return EgressResult(
            _ceil(exits),
            travel,
            f"{_ceil(exits)} exits for occupant load {occupant_load} ({occupancy} table row).",
        )

    exits = required_exits(occupant_load)
    return EgressResult(exits, None, f"{exits} exits for occupant load {occupant_load} (built-in thresholds).")
