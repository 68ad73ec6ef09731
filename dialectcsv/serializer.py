"""
Dialect-aware record serializer, the exact inverse of tokenizer.Tokenizer.

For any Dialect ``d`` and cells free of content the dialect cannot express,
``Tokenizer(StringIO(format_row(cells, d)), d).read_row() == cells``.
"""

from __future__ import annotations

from typing import Any, Iterable, TextIO

from .dialect import DEFAULT, Dialect
from .errors import ConfigError, CsvError


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def needs_quoting(value: str, dialect: Dialect) -> bool:
    q = dialect.quote_char
    if q is None:
        return False
    if dialect.always_quote:
        return True
    if (
        dialect.delimiter in value
        or "\r" in value
        or "\n" in value
        or q in value
        or (dialect.escape_char is not None and dialect.escape_char in value)
    ):
        return True
    if value.startswith(" ") or value.endswith(" "):
        return True
    # Trimming dialects would also eat tabs from an unquoted field.
    return dialect.trim_unquoted_fields and value != value.strip(" \t")


def format_cell(value: Any, dialect: Dialect = DEFAULT) -> str:
    text = _cell_text(value)
    q, esc = dialect.quote_char, dialect.escape_char

    if q is None:
        specials = (dialect.delimiter, "\r", "\n")
        if not any(s in text for s in specials):
            if esc is None or esc not in text:
                return text
        if esc is None:
            raise CsvError(
                f"Cell {text!r} contains a delimiter or line break and dialect "
                f"{dialect.name!r} has neither a quote nor an escape character"
            )
        out = text.replace(esc, esc + esc)
        for s in specials:
            out = out.replace(s, esc + s)
        return out

    if not needs_quoting(text, dialect):
        return text

    body = text
    if esc is not None:
        body = body.replace(esc, esc + esc)
    if q in body:
        if dialect.double_quote:
            body = body.replace(q, q + q)
        elif esc is not None:
            body = body.replace(q, esc + q)
        else:
            raise CsvError(
                f"Cell {text!r} contains a quote character but dialect {dialect.name!r} "
                "disables double quotes and has no escape character"
            )
    return q + body + q


def format_row(cells: Iterable[Any], dialect: Dialect = DEFAULT) -> str:
    """Serialize one record, newline included."""
    return dialect.delimiter.join(format_cell(c, dialect) for c in cells) + dialect.newline


class Serializer:
    """Writes records to a text sink using a Dialect."""

    def __init__(self, sink: TextIO, dialect: Dialect = DEFAULT) -> None:
        if sink is None:
            raise ConfigError("sink must not be None")
        if not isinstance(dialect, Dialect):
            raise ConfigError("dialect must be a Dialect")
        self._sink = sink
        self.dialect = dialect

    def print_row(self, cells: Iterable[Any]) -> None:
        self._sink.write(format_row(cells, self.dialect))

    def flush(self) -> None:
        self._sink.flush()

    def close(self) -> None:
        self._sink.close()


__all__ = ["Serializer", "format_row", "format_cell", "needs_quoting"]
