from __future__ import annotations

from typing import Optional


class DdlError(Exception):
    """Base class for everything the conversion pipeline raises."""


class EmptySqlError(DdlError):
    def __init__(self, message: str = "SQL cannot be empty"):
        super().__init__(message)


class UnknownDialectError(DdlError):
    def __init__(self, message: str = "Unable to determine SQL dialect. Please specify dialect explicitly."):
        super().__init__(message)


class StrictModeParseError(DdlError):
    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.table = table


class DdlParseError(DdlError):
    """A single clause or table body could not be parsed."""

    def __init__(self, message: str, clause: Optional[str] = None):
        super().__init__(message)
        self.clause = clause


class ColumnParseError(DdlParseError):
    pass


class ForeignKeySyntaxError(DdlParseError):
    pass


class IndexSyntaxError(DdlParseError):
    pass


class UnterminatedTableError(DdlParseError):
    pass
