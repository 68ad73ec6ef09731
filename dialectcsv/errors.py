"""
Exception hierarchy for dialectcsv.

Structural problems (ParseError) abort the current read; typed-value problems
(ValidationError) are scoped to one field and are usually collected on a
TypedField instead of propagating.
"""

from __future__ import annotations

from typing import Any, Optional


class CsvError(Exception):
    """Base class for every error raised by dialectcsv."""


class ConfigError(CsvError, ValueError):
    """Raised when a dialect, config or spec is built with invalid settings."""


class HeaderError(CsvError, ValueError):
    """Raised on blank or colliding header names."""


class CsvStateError(CsvError, RuntimeError):
    """Raised when an object is used out of order (second header, closed reader, ...)."""


class RowIterationError(CsvError):
    """Raised from iterator boundaries when the underlying source fails."""


class ParseError(CsvError, ValueError):
    """Raised on malformed quoting. Carries the 1-based position when known."""

    def __init__(self, reason: str, *, line: int = -1, column: int = -1) -> None:
        self.reason = reason
        self.line = line        # 1-based physical line, -1 if unknown
        self.column = column    # 1-based column, -1 if unknown
        super().__init__(self._render())

    def _render(self) -> str:
        if self.line <= 0:
            return self.reason
        if self.column <= 0:
            return f"{self.reason} [line {self.line}]"
        return f"{self.reason} [line {self.line}, col {self.column}]"


class ValidationError(CsvError, ValueError):
    """Raised when a cell cannot be coerced to its field type or fails a validator."""

    def __init__(
        self,
        reason: str,
        *,
        column: Optional[str] = None,
        index: int = -1,
        value: Any = None,
    ) -> None:
        self.reason = reason
        self.column = column    # logical column name, None if unknown
        self.index = index      # 0-based column index, -1 if unknown
        self.value = value      # offending raw text or value
        if column is None and index < 0:
            msg = reason
        else:
            msg = f"ValidationError(column={column!r}, index={index}, value={value!r}): {reason}"
        super().__init__(msg)


__all__ = [
    "CsvError",
    "ConfigError",
    "HeaderError",
    "CsvStateError",
    "RowIterationError",
    "ParseError",
    "ValidationError",
]
