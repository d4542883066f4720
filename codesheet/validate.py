from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Tuple

from .rules import REQUIRED_COLUMNS, DatasetType
from .table import records_of

logger = logging.getLogger("codesheet.validate")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str
    missing_columns: List[str] = field(default_factory=list)
    record_count: int = 0


def validate(
    records: Any,
    dataset_type: Any,
    manifests: Mapping[DatasetType, Tuple[str, ...]] = REQUIRED_COLUMNS,
) -> ValidationResult:
    """
    Check a normalized table against the required-column manifest for its type.

    Columns are read off the first record only; normalized tables share one key set.
    Never raises for a failing table: callers decide whether to block on the result.
    """
    rows = records_of(records)
    kind = DatasetType.coerce(dataset_type)
    required = manifests.get(kind) if kind is not None else None

    if required is None:
        logger.warning("no column manifest for dataset type %r; accepting without checks", dataset_type)
        return ValidationResult(
            valid=True,
            message=f"No validation rules for dataset type '{dataset_type}'; accepted as-is.",
            record_count=len(rows),
        )

    if not rows:
        return ValidationResult(
            valid=False,
            message="Dataset has no records.",
            missing_columns=list(required),
            record_count=0,
        )

    present = rows[0].keys()
    missing = [col for col in required if col not in present]
    if missing:
        return ValidationResult(
            valid=False,
            message=f"Missing required columns: {', '.join(missing)}",
            missing_columns=missing,
            record_count=len(rows),
        )

    return ValidationResult(
        valid=True,
        message=f"Dataset is valid with {len(rows)} records.",
        record_count=len(rows),
    )
