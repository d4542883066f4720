"""Dataset and record types shared by the parser, normalizer and lookups."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import DatasetShapeError
from .rules import DatasetType

Cell = Union[bool, int, float, str]
Record = Dict[str, Cell]


@dataclass(frozen=True)
class RowIssue:
    row: int
    reason: str
    text: str


@dataclass(frozen=True)
class Dataset:
    records: Tuple[Record, ...]
    headers: Tuple[str, ...]
    # canonical key -> literal header text as it appeared in the upload
    original_headers: Mapping[str, str] = field(default_factory=dict)
    dataset_type: Optional[DatasetType] = None
    skipped_rows: Tuple[RowIssue, ...] = ()
    warnings: Tuple[RowIssue, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)


def records_of(dataset: Any) -> Sequence[Record]:
    """
    Accept a Dataset, a list/tuple of records, or None (absent dataset).

    Anything else is a caller bug and raises DatasetShapeError.
    """
    if dataset is None:
        return ()
    if isinstance(dataset, Dataset):
        return dataset.records
    if isinstance(dataset, (list, tuple)):
        for rec in dataset:
            if not isinstance(rec, Mapping):
                raise DatasetShapeError(f"dataset rows must be mappings, got {type(rec).__name__}")
        return dataset
    raise DatasetShapeError(f"expected a dataset or a list of records, got {type(dataset).__name__}")


def cell_text(value: Any) -> str:
    """Render a cell as text. Integral floats drop their '.0'; other floats never use exponents."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        if math.isfinite(value):
            return format(Decimal(repr(value)), "f")
    return str(value).strip()


def key_set(records: Sequence[Record]) -> List[str]:
    """Keys across all records, in order of first appearance."""
    seen: Dict[str, None] = {}
    for rec in records:
        for k in rec:
            seen.setdefault(k, None)
    return list(seen)
