from __future__ import annotations

import csv
import io
from typing import Any, Optional, Sequence

from .table import Record, cell_text, key_set, records_of


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return cell_text(value)


def encode_csv(records: Any, columns: Optional[Sequence[str]] = None) -> str:
    """
    Header row plus one row per record. Fields holding a comma or a double
    quote are quoted, inner quotes doubled; everything else is written bare.
    """
    rows: Sequence[Record] = records_of(records)
    cols = list(columns) if columns is not None else key_set(rows)

    outp = io.StringIO(newline="")
    writer = csv.writer(outp, delimiter=",", lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(cols)
    for rec in rows:
        writer.writerow([_render(rec.get(col, "")) for col in cols])
    return outp.getvalue()
