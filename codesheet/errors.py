from __future__ import annotations


class CodesheetError(Exception):
    """Base class for errors raised by the table core."""


class ParseError(CodesheetError):
    """Structural failure: the text cannot yield a dataset at all."""


class EmptyInputError(ParseError):
    pass


class NoRowsError(ParseError):
    pass


class NoHeaderError(ParseError):
    pass


class NoDataError(ParseError):
    pass


class RowParseError(CodesheetError):
    """A single data row could not be tokenized. Caught by the parser; the row is skipped."""

    def __init__(self, row: int, reason: str):
        super().__init__(f"row {row}: {reason}")
        self.row = row
        self.reason = reason


class DatasetShapeError(CodesheetError, TypeError):
    """A lookup was handed something that is not a dataset or a list of records."""
