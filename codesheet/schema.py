"""
Column normalization onto the canonical per-dataset schema.

Uploaded tables name their columns every which way ("District", "Zoning
District", "ZONING_DISTRICT"). Each header is matched to a canonical key
by exact key first, then by the synonym table for the dataset type.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .parser import parse_number
from .rules import (
    COLUMN_SYNONYMS,
    COUNTY_SCOPED_TYPES,
    SETBACK_COLUMN,
    SETBACK_PARTS,
    DatasetType,
)
from .table import Cell, Dataset, Record, cell_text, key_set, records_of

logger = logging.getLogger("codesheet.schema")

_SQUASH = re.compile(r"[^a-z0-9]")
_LABELLED_SETBACK = re.compile(r"(front|side|rear)[^0-9\-]*(-?\d+(?:\.\d+)?)", re.IGNORECASE)
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
# "height_ft", "coverage_pct": unit suffixes tolerated on synonym lookup
_UNIT_SUFFIX = re.compile(r"(?:sqft|feet|ft|sf|pct|percent|stories)$")


@dataclass(frozen=True)
class ColumnMapping:
    source: str
    target: str
    rule: str  # exact | synonym | decomposed | unmapped


@dataclass(frozen=True)
class NormalizedTable:
    dataset: Dataset
    mapping: Tuple[ColumnMapping, ...]


def _squash(name: str) -> str:
    return _SQUASH.sub("", name.lower())


def plan_columns(
    columns: Sequence[str],
    dataset_type: DatasetType,
    synonyms: Mapping[DatasetType, Mapping[str, Tuple[str, ...]]] = COLUMN_SYNONYMS,
) -> List[ColumnMapping]:
    """Decide the target key for each source column. First claimant of a canonical key wins."""
    table = synonyms.get(dataset_type, {})
    lookup: Dict[str, str] = {}
    for canonical, spellings in table.items():
        for spelling in (canonical,) + tuple(spellings):
            lookup.setdefault(_squash(spelling), canonical)

    claimed = set()
    plan: List[ColumnMapping] = []

    # exact canonical names claim their key before any synonym can
    for col in columns:
        if col in table:
            claimed.add(col)

    for col in columns:
        if col in table:
            plan.append(ColumnMapping(col, col, "exact"))
            continue
        squashed = _squash(col)
        target = lookup.get(squashed) or lookup.get(_UNIT_SUFFIX.sub("", squashed))
        if target is not None and target not in claimed:
            claimed.add(target)
            plan.append(ColumnMapping(col, target, "synonym"))
        else:
            plan.append(ColumnMapping(col, col, "unmapped"))
    return plan


def split_setbacks(value: Cell) -> Optional[Tuple[Cell, Cell, Cell]]:
    """
    Decompose a combined setback cell into (front, side, rear).

    Accepts "Front 20 / Side 5 / Rear 10", "20/5/10" or a single number applied to all sides.
    """
    if isinstance(value, bool):
        return None
    number = parse_number(value)
    if number is not None:
        return number, number, number

    text = cell_text(value)
    labelled = {m.group(1).lower(): m.group(2) for m in _LABELLED_SETBACK.finditer(text)}
    if labelled:
        return tuple(  # type: ignore[return-value]
            parse_number(labelled[side]) if side in labelled else ""
            for side in ("front", "side", "rear")
        )

    numbers = _NUMBER.findall(text)
    if len(numbers) == 3:
        return tuple(parse_number(n) for n in numbers)  # type: ignore[return-value]
    return None


def normalize(
    records: Sequence[Record],
    dataset_type: DatasetType,
    synonyms: Mapping[DatasetType, Mapping[str, Tuple[str, ...]]] = COLUMN_SYNONYMS,
    default_county: Optional[str] = None,
) -> List[Record]:
    """Re-key records onto the canonical schema for dataset_type. Input records are not modified."""
    out, _ = _normalize(records, dataset_type, synonyms, default_county)
    return out


def _coerce_type(value) -> DatasetType:
    dataset_type = DatasetType.coerce(value)
    if dataset_type is None:
        raise ValueError(f"unknown dataset type: {value!r}")
    return dataset_type


def _normalize(records, dataset_type, synonyms, default_county):
    dataset_type = _coerce_type(dataset_type)
    records = records_of(records)
    columns = key_set(records)
    plan = plan_columns(columns, dataset_type, synonyms)
    targets = [m.target for m in plan]

    decompose = (
        dataset_type is DatasetType.ZONING
        and SETBACK_COLUMN in targets
        and not any(part in targets for part in SETBACK_PARTS)
    )
    if decompose:
        source = next(m.source for m in plan if m.target == SETBACK_COLUMN)
        plan.extend(ColumnMapping(source, part, "decomposed") for part in SETBACK_PARTS)
        targets.extend(SETBACK_PARTS)

    fill_county = bool(default_county) and dataset_type in COUNTY_SCOPED_TYPES

    out: List[Record] = []
    for rec in records:
        row: Record = {}
        for m in plan:
            if m.rule == "decomposed":
                continue
            row[m.target] = rec.get(m.source, "")
        if decompose:
            parts = split_setbacks(row.get(SETBACK_COLUMN, ""))
            for key, val in zip(SETBACK_PARTS, parts or ("", "", "")):
                row[key] = val
        if fill_county and cell_text(row.get("county", "")) == "":
            row["county"] = default_county
        out.append(row)

    if fill_county and "county" not in targets:
        plan.append(ColumnMapping("county", "county", "exact"))

    return out, plan


def normalize_dataset(
    dataset: Dataset,
    dataset_type: DatasetType,
    synonyms: Mapping[DatasetType, Mapping[str, Tuple[str, ...]]] = COLUMN_SYNONYMS,
    default_county: Optional[str] = None,
) -> NormalizedTable:
    records, plan = _normalize(dataset.records, dataset_type, synonyms, default_county)

    for m in plan:
        if m.source != m.target or m.rule == "unmapped":
            logger.debug("column %r -> %r (%s)", m.source, m.target, m.rule)

    originals: Dict[str, str] = {}
    for m in plan:
        literal = dataset.original_headers.get(m.source, m.source)
        originals.setdefault(m.target, literal)

    headers = tuple(key_set(records))
    normalized = replace(
        dataset,
        records=tuple(records),
        headers=headers,
        original_headers=originals,
        dataset_type=_coerce_type(dataset_type),
    )
    return NormalizedTable(dataset=normalized, mapping=tuple(plan))
