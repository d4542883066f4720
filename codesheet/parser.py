"""
Delimited-text parsing.

Responsibilities:
- byte decoding (charset detection, BOM, replacement fallback)
- newline normalization
- quote-aware row tokenization
- header canonicalization
- per-cell coercion (numbers with units, booleans, strings)
- row-level fault recovery: one bad row never voids the file
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from charset_normalizer import from_bytes

from .errors import EmptyInputError, NoDataError, NoHeaderError, NoRowsError, RowParseError
from .rules import BOOLEAN_VALUES, NORMALIZED_DELIMITER, NUMBER_RE, QUOTE_CHAR, TARGET_ENCODING, UNIT_TOKEN_RE
from .table import Cell, Dataset, Record, RowIssue

logger = logging.getLogger("codesheet.parser")

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def decode_bytes(raw: bytes) -> Tuple[str, Dict[str, Any]]:
    """
    Decode an uploaded file to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is consumed, never surfaced as part of the first header.
    - If decode fails, fall back to UTF-8, then to UTF-8 with replacement characters.
    """
    if not raw:
        return "", {"detected": None, "decode_used": TARGET_ENCODING, "decode_fallback": False}

    detected = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or TARGET_ENCODING
    if raw.startswith(b"\xef\xbb\xbf") and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    decode_fallback = False
    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        decode_fallback = True
        try:
            text = raw.decode("utf-8-sig")
            decode_used = "utf-8-sig"
        except UnicodeDecodeError:
            text = raw.decode(TARGET_ENCODING, errors="replace")
            decode_used = TARGET_ENCODING

    if decode_fallback:
        logger.warning("decode with %s failed; used %s", detected, decode_used)

    return text, {
        "detected": detected,
        "decode_used": decode_used,
        "decode_fallback": decode_fallback,
    }


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def canonical_header(header: str) -> str:
    """'Front Setback (ft)' -> 'front_setback_ft'."""
    return _NON_ALNUM_RUN.sub("_", header.lower()).strip("_")


def parse_number(value: Any) -> Optional[float]:
    """
    Numeric-with-units parse: "10'", "10 ft", "10SF", "12.5%", "3,000 sq. ft." is *not* numeric
    (thousands separators are not stripped). Returns int for integral input, float otherwise,
    None when the text is not a number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return None
    stripped = UNIT_TOKEN_RE.sub("", value)
    if not NUMBER_RE.match(stripped):
        return None
    if "." in stripped:
        return float(stripped)
    return int(stripped)


def coerce_cell(value: str) -> Cell:
    number = parse_number(value)
    if number is not None:
        return number
    flag = BOOLEAN_VALUES.get(value.strip().lower())
    if flag is not None:
        return flag
    return value.strip()


def _clean_field(chars: List[str]) -> str:
    # delimiting quotes never reach the buffer; any quote left is an escaped literal
    return "".join(chars).strip()


def tokenize_row(line: str, row: int = 0) -> List[str]:
    """
    Split one row on commas outside double quotes. A quote opens a quoted
    field only as the first non-space character of the field; elsewhere it is
    literal text (an inch mark in 10"). A doubled quote inside a quoted field
    is a literal quote. Raises RowParseError on an unterminated quoted field.
    """
    fields: List[str] = []
    buf: List[str] = []
    in_quotes = False
    was_quoted = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if in_quotes:
            if ch == QUOTE_CHAR:
                if i + 1 < n and line[i + 1] == QUOTE_CHAR:
                    buf.append(QUOTE_CHAR)
                    i += 2
                    continue
                in_quotes = False
            else:
                buf.append(ch)
        elif ch == QUOTE_CHAR and not was_quoted and not "".join(buf).strip():
            in_quotes = True
            was_quoted = True
        elif ch == NORMALIZED_DELIMITER:
            fields.append(_clean_field(buf))
            buf = []
            was_quoted = False
        else:
            buf.append(ch)
        i += 1

    if in_quotes:
        raise RowParseError(row, "unterminated quoted field")

    fields.append(_clean_field(buf))
    return fields


def _header_keys(literal: List[str]) -> List[str]:
    keys: List[str] = []
    for idx, name in enumerate(literal):
        base = canonical_header(name) or f"column_{idx + 1}"
        key = base
        suffix = 1
        while key in keys:
            suffix += 1
            key = f"{base}_{suffix}"
        keys.append(key)
    return keys


def parse(text: Any) -> Dataset:
    """Parse delimited text (first row is the header) into a Dataset."""
    if not isinstance(text, str) or text == "":
        raise EmptyInputError("No CSV content was provided.")

    rows = [line for line in normalize_newlines(text).split("\n") if line.strip()]
    if not rows:
        raise NoRowsError("The file contains no rows.")

    try:
        literal_headers = tokenize_row(rows[0], row=1)
    except RowParseError as e:
        raise NoHeaderError(f"The header row could not be read: {e.reason}.") from e
    if not any(literal_headers):
        raise NoHeaderError("The header row contains no column names.")

    headers = _header_keys(literal_headers)
    original_headers = {key: lit for key, lit in zip(headers, literal_headers)}

    records: List[Record] = []
    faults: List[RowIssue] = []
    warnings: List[RowIssue] = []

    for offset, line in enumerate(rows[1:], start=2):
        try:
            values = tokenize_row(line, row=offset)
        except RowParseError as e:
            logger.warning("skipping %s", e)
            faults.append(RowIssue(row=offset, reason=e.reason, text=line))
            continue

        if len(values) > len(headers):
            reason = f"{len(values)} fields, expected {len(headers)}; extra fields ignored"
            warnings.append(RowIssue(row=offset, reason=reason, text=line))
        elif len(values) < len(headers):
            values = values + [""] * (len(headers) - len(values))

        records.append({key: coerce_cell(values[i]) for i, key in enumerate(headers)})

    if not records:
        if faults:
            raise NoDataError(f"None of the {len(faults)} data rows could be parsed.")
        raise NoDataError("The file has a header row but no data rows.")

    logger.info(
        "parsed %d records, %d columns, %d rows skipped",
        len(records),
        len(headers),
        len(faults),
    )
    return Dataset(
        records=tuple(records),
        headers=tuple(headers),
        original_headers=original_headers,
        skipped_rows=tuple(faults),
        warnings=tuple(warnings),
    )


def parse_bytes(raw: bytes) -> Tuple[Dataset, Dict[str, Any]]:
    """Decode an upload and parse it. Returns the dataset and the decoding report."""
    if not raw:
        raise EmptyInputError("The uploaded file is empty.")
    text, encoding = decode_bytes(raw)
    return parse(text), encoding


def describe_text(text: str, preview_rows: int = 5) -> Dict[str, Any]:
    """Diagnostic summary of raw text shown next to a failed upload."""
    if not isinstance(text, str):
        return {"summary": "Content is not text.", "first_row": "", "first_rows": []}

    rows = [line for line in normalize_newlines(text).split("\n") if line.strip()]
    first_rows: List[List[str]] = []
    for i, line in enumerate(rows[:preview_rows], start=1):
        try:
            first_rows.append(tokenize_row(line, row=i))
        except RowParseError:
            first_rows.append([line])

    columns = len(first_rows[0]) if first_rows else 0
    return {
        "summary": f"{len(rows)} rows, {columns} columns in header",
        "first_row": rows[0] if rows else "",
        "first_rows": first_rows,
    }
