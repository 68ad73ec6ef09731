"""
CsvReader: records from a Tokenizer bound to Headers as Row objects.

Header resolution order:
1. headers passed by the caller
2. the first record, when ``config.has_header``
3. synthesized col0..colN-1, sized to the first data record

When the uniform-field-count rule applies, short records are padded with ""
and long ones truncated, each producing a RowShapeWarning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Sequence, TextIO, Tuple, Union

from .bom import PathLike, open_text
from .config import CsvConfig
from .errors import ConfigError, CsvStateError, RowIterationError
from .fields import Schema, TypedField
from .rows import Headers, Row, RowBuilder
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)

_Record = Tuple[List[str], int, bool]  # cells, start line, came from a blank line


class WarningKind(Enum):
    TOO_FEW_FIELDS = "too_few_fields"
    TOO_MANY_FIELDS = "too_many_fields"


@dataclass(frozen=True)
class RowShapeWarning:
    line: int           # 1-based line the record started on
    kind: WarningKind
    message: str
    expected: int
    actual: int


class CsvReader:
    """
    Forward-only reader yielding Row objects.

        with CsvReader(io.StringIO(text), CsvConfig(has_header=True)) as r:
            for row in r:
                print(row["name"])
    """

    def __init__(
        self,
        source: TextIO,
        config: Optional[CsvConfig] = None,
        headers: Union[Headers, Sequence[str], None] = None,
        *,
        on_warning: Optional[Callable[[RowShapeWarning], None]] = None,
        close_source: bool = True,
    ) -> None:
        if source is None:
            raise ConfigError("source must not be None")
        self.config = config or CsvConfig()
        self._source = source
        self._tok = Tokenizer(source, self.config.dialect, buffer_size=self.config.read_buffer_size)
        self._headers: Optional[Headers] = None
        if headers is not None:
            self._headers = headers if isinstance(headers, Headers) else Headers(headers)
        self._supplied = headers is not None
        self._resolved = headers is not None
        self._pending: Optional[_Record] = None
        self._by_width: Dict[int, Headers] = {}
        self._on_warning = on_warning
        self._close_source = close_source
        self._closed = False
        self.warnings: List[RowShapeWarning] = []

    @classmethod
    def from_path(
        cls,
        path: PathLike,
        config: Optional[CsvConfig] = None,
        headers: Union[Headers, Sequence[str], None] = None,
        **kwargs,
    ) -> "CsvReader":
        """Open ``path`` with ``config.charset``, honouring a leading BOM."""
        config = config or CsvConfig()
        stream = open_text(path, config.charset)
        try:
            return cls(stream, config, headers, **kwargs)
        except BaseException:
            stream.close()
            raise

    # ----------------------------
    # Headers
    # ----------------------------

    @property
    def headers(self) -> Optional[Headers]:
        """Effective headers; None only when the input is empty and none were given."""
        self._resolve_headers()
        return self._headers

    @property
    def last_warning(self) -> Optional[RowShapeWarning]:
        return self.warnings[-1] if self.warnings else None

    @property
    def line(self) -> int:
        """Start line of the most recently read record."""
        return self._tok.record_line

    def _next_record(self) -> Optional[_Record]:
        if self._pending is not None:
            rec, self._pending = self._pending, None
            return rec
        cells = self._tok.read_row()
        if cells is None:
            return None
        return cells, self._tok.record_line, self._tok.blank_line

    def _next_content(self) -> Optional[_Record]:
        while True:
            rec = self._next_record()
            if rec is None or not rec[2] or not self.config.skip_empty_lines:
                return rec

    def _resolve_headers(self) -> None:
        if self._resolved:
            return
        self._resolved = True

        if self.config.has_header:
            # Blank lines before the header row never count as data.
            rec = self._next_record()
            while rec is not None and rec[2]:
                rec = self._next_record()
            if rec is None:
                logger.debug("Empty input: no header row")
                return
            self._headers = Headers(rec[0])
            logger.debug("Header row at line %d: %s", rec[1], list(self._headers.names))
            return

        rec = self._next_content()
        if rec is None:
            return
        self._pending = rec
        width = 1 if rec[2] else len(rec[0])
        self._headers = self._synthesized(width)
        logger.debug("Synthesized %d headers from line %d", width, rec[1])

    def _synthesized(self, width: int) -> Headers:
        h = self._by_width.get(width)
        if h is None:
            h = self._by_width[width] = Headers.synthesize(width)
        return h

    # ----------------------------
    # Rows
    # ----------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise CsvStateError("Reader is closed")

    def read_row(self) -> Optional[Row]:
        """Next Row, or None at end of input."""
        self._check_open()
        self._resolve_headers()
        rec = self._next_content()
        if rec is None:
            return None
        cells, line, blank = rec
        headers = self._headers
        if headers is None:
            raise CsvStateError("Headers could not be resolved")

        if blank:
            return self._build(headers, ())

        width = len(headers)
        if len(cells) == width:
            return self._build(headers, cells)
        if not (self._supplied or self.config.uniform_field_count):
            return self._build(self._synthesized(len(cells)), cells)

        if len(cells) < width:
            self._warn(line, WarningKind.TOO_FEW_FIELDS, width, len(cells))
        else:
            self._warn(line, WarningKind.TOO_MANY_FIELDS, width, len(cells))
            cells = cells[:width]
        return self._build(headers, cells)

    @staticmethod
    def _build(headers: Headers, cells: Sequence[str]) -> Row:
        """Row from ``cells``, padding the remaining slots with ""."""
        builder = RowBuilder(headers).add_all(cells)
        while not builder.is_complete:
            builder.add("")
        return builder.build()

    def _warn(self, line: int, kind: WarningKind, expected: int, actual: int) -> None:
        if kind is WarningKind.TOO_FEW_FIELDS:
            detail = "padded with empty values"
        else:
            detail = "extra values dropped"
        message = f"Row at line {line} has {actual} fields, expected {expected}; {detail}"
        w = RowShapeWarning(line=line, kind=kind, message=message, expected=expected, actual=actual)
        self.warnings.append(w)
        logger.warning(message)
        if self._on_warning is not None:
            self._on_warning(w)

    def read_all(self) -> List[Row]:
        return list(self)

    def __iter__(self) -> Iterator[Row]:
        return self

    def __next__(self) -> Row:
        try:
            row = self.read_row()
        except OSError as e:
            raise RowIterationError(f"Failed to read row after line {self._tok.record_line}: {e}") from e
        if row is None:
            raise StopIteration
        return row

    def typed_rows(self, schema: Schema) -> Iterator[List[TypedField]]:
        """Rows parsed through ``schema``; invalid cells are reported on each TypedField."""
        for row in self:
            yield schema.parse_row(row)

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._close_source:
            self._source.close()

    def __enter__(self) -> "CsvReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["CsvReader", "RowShapeWarning", "WarningKind"]
