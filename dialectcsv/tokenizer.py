"""
Character-level CSV tokenizer.

A small state machine reads characters from a text stream and returns one
logical record per call as a list of raw field strings. It knows nothing
about headers or types; see reader.CsvReader for that.

States:
    START_ROW        nothing consumed for this record yet
    START_CELL       at the beginning of a field
    INSIDE_QUOTED    between an opening and closing quote
    INSIDE_UNQUOTED  inside a plain field
    AFTER_QUOTE      just after a closing quote
"""

from __future__ import annotations

import io
from enum import Enum, auto
from typing import Iterator, List, Optional, TextIO

from .dialect import DEFAULT, Dialect
from .errors import ConfigError, ParseError


class _State(Enum):
    START_ROW = auto()
    START_CELL = auto()
    INSIDE_QUOTED = auto()
    INSIDE_UNQUOTED = auto()
    AFTER_QUOTE = auto()


class _Lookahead:
    """Chunked character source with one character of look-ahead and position tracking."""

    __slots__ = ("_stream", "_size", "_buf", "_pos", "_eof", "line", "column")

    def __init__(self, stream: TextIO, size: int) -> None:
        self._stream = stream
        self._size = size
        self._buf = ""
        self._pos = 0
        self._eof = False
        self.line = 1      # 1-based line of the next character
        self.column = 0    # 1-based column of the last character read

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._stream.read(self._size)
        if not chunk:
            self._eof = True
            return False
        self._buf = self._buf[self._pos:] + chunk
        self._pos = 0
        return True

    def peek(self) -> Optional[str]:
        if self._pos >= len(self._buf) and not self._fill():
            return None
        return self._buf[self._pos]

    def read(self) -> Optional[str]:
        ch = self.peek()
        if ch is None:
            return None
        self._pos += 1
        # CRLF counts once, on the LF.
        if ch == "\n" or (ch == "\r" and self.peek() != "\n"):
            self.line += 1
            self.column = 0
        else:
            self.column += 1
        return ch


class Tokenizer:
    """Turns a text stream into records of raw field strings under a Dialect."""

    def __init__(self, source: TextIO, dialect: Dialect = DEFAULT, *, buffer_size: int = 8192) -> None:
        if source is None:
            raise ConfigError("source must not be None")
        if not isinstance(dialect, Dialect):
            raise ConfigError("dialect must be a Dialect")
        if buffer_size <= 0:
            raise ConfigError(f"buffer_size must be > 0, got {buffer_size}")
        self.dialect = dialect
        self._src = _Lookahead(source, buffer_size)
        self.record_line = 0       # line on which the last returned record started
        self.blank_line = False    # last record came from an empty physical line

    @property
    def line(self) -> int:
        return self._src.line

    def __iter__(self) -> Iterator[List[str]]:
        while True:
            row = self.read_row()
            if row is None:
                return
            yield row

    def read_row(self) -> Optional[List[str]]:
        """
        Read the next record. Returns None once the input is exhausted.

        Raises ParseError on malformed quoting; the stream position is then
        unspecified.
        """
        d = self.dialect
        src = self._src
        delim, quote, esc = d.delimiter, d.quote_char, d.escape_char
        skip_ws = d.skip_whitespace_around_quotes

        row: List[str] = []
        cell: List[str] = []
        state = _State.START_ROW
        self.blank_line = False
        self.record_line = src.line

        while True:
            ch = src.read()

            if ch is None:
                if state is _State.START_ROW:
                    return None
                if state is _State.INSIDE_QUOTED:
                    raise self._error("Unexpected end of input inside quoted field")
                if state is _State.AFTER_QUOTE:
                    row.append("".join(cell))
                else:
                    row.append(self._unquoted(cell))
                return row

            # Quoted content is taken verbatim, line breaks included.
            if state is _State.INSIDE_QUOTED:
                if ch == esc:
                    nxt = src.read()
                    if nxt is None:
                        raise self._error("Unexpected end of input after escape inside quoted field")
                    cell.append(nxt)
                elif ch == quote:
                    if d.double_quote and src.peek() == quote:
                        src.read()
                        cell.append(quote)
                    else:
                        state = _State.AFTER_QUOTE
                else:
                    cell.append(ch)
                continue

            if ch == "\r":
                if src.peek() == "\n":
                    src.read()
                ch = "\n"

            if state is _State.START_ROW:
                state = _State.START_CELL

            if state is _State.START_CELL:
                if ch == "\n":
                    if not row and not cell:
                        self.blank_line = True
                    row.append(self._unquoted(cell))
                    return row
                if ch == delim:
                    row.append(self._unquoted(cell))
                    cell.clear()
                elif ch == quote:
                    cell.clear()
                    state = _State.INSIDE_QUOTED
                elif ch == esc:
                    cell.append(self._escaped())
                    state = _State.INSIDE_UNQUOTED
                elif skip_ws and ch in " \t":
                    cell.append(ch)
                else:
                    cell.append(ch)
                    state = _State.INSIDE_UNQUOTED

            elif state is _State.AFTER_QUOTE:
                if ch == delim:
                    row.append("".join(cell))
                    cell.clear()
                    state = _State.START_CELL
                elif ch == "\n":
                    row.append("".join(cell))
                    return row
                elif skip_ws and ch in " \t":
                    pass
                elif d.lenient:
                    # Quotes lose their meaning mid-field: keep everything as plain text.
                    cell.append(self._escaped() if ch == esc else ch)
                    state = _State.INSIDE_UNQUOTED
                else:
                    raise self._error(f"Unexpected character {ch!r} after closing quote")

            else:  # INSIDE_UNQUOTED
                if ch == delim:
                    row.append(self._unquoted(cell))
                    cell.clear()
                    state = _State.START_CELL
                elif ch == "\n":
                    row.append(self._unquoted(cell))
                    return row
                elif ch == quote:
                    if not d.allow_unescaped_quotes:
                        raise self._error("Unexpected quote in unquoted field")
                    cell.append(ch)
                elif ch == esc:
                    cell.append(self._escaped())
                else:
                    cell.append(ch)

    def _escaped(self) -> str:
        nxt = self._src.read()
        # A trailing escape outside quotes is kept as-is.
        return self.dialect.escape_char if nxt is None else nxt

    def _unquoted(self, cell: List[str]) -> str:
        value = "".join(cell)
        if self.dialect.trim_unquoted_fields:
            value = value.strip(" \t")
        return value

    def _error(self, reason: str) -> ParseError:
        return ParseError(reason, line=self._src.line, column=self._src.column)


def parse_text(text: str, dialect: Dialect = DEFAULT) -> List[List[str]]:
    """Tokenize a whole string into records."""
    return list(Tokenizer(io.StringIO(text), dialect))


__all__ = ["Tokenizer", "parse_text"]
