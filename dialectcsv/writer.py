"""CsvWriter: headers, rows and typed records out through a Serializer."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, TextIO, Union

from .bom import PathLike, open_sink
from .config import CsvConfig
from .errors import ConfigError, CsvStateError
from .fields import Schema
from .rows import Headers, Row
from .serializer import Serializer

logger = logging.getLogger(__name__)


class CsvWriter:
    """
    Writes records under ``config.dialect``.

    - ``write_header`` at most once; without arguments it writes the headers
      (or schema names) given at construction.
    - ``write_row`` takes a plain sequence or a Row. Once a header has been
      written, Row values are taken in header order.
    - ``write_record`` formats a mapping through the schema.
    """

    def __init__(
        self,
        sink: TextIO,
        config: Optional[CsvConfig] = None,
        headers: Union[Headers, Sequence[str], None] = None,
        *,
        schema: Optional[Schema] = None,
        close_sink: bool = True,
    ) -> None:
        if sink is None:
            raise ConfigError("sink must not be None")
        self.config = config or CsvConfig()
        self._ser = Serializer(sink, self.config.dialect)
        if headers is not None and not isinstance(headers, Headers):
            headers = Headers(headers)
        self.headers: Optional[Headers] = headers
        self.schema = schema
        self._written: Optional[Headers] = None
        self._close_sink = close_sink
        self._closed = False

    @classmethod
    def from_path(
        cls,
        path: PathLike,
        config: Optional[CsvConfig] = None,
        headers: Union[Headers, Sequence[str], None] = None,
        **kwargs,
    ) -> "CsvWriter":
        """Create ``path`` with ``config.charset``, writing a BOM when ``config.write_bom``."""
        config = config or CsvConfig()
        sink = open_sink(path, config.charset, write_bom=config.write_bom)
        try:
            return cls(sink, config, headers, **kwargs)
        except BaseException:
            sink.close()
            raise

    def _check_open(self) -> None:
        if self._closed:
            raise CsvStateError("Writer is closed")

    @property
    def header_written(self) -> bool:
        return self._written is not None

    def write_header(self, names: Union[Headers, Sequence[str], None] = None) -> None:
        self._check_open()
        if self._written is not None:
            raise CsvStateError("Header already written")
        if names is None:
            if self.headers is not None:
                names = self.headers
            elif self.schema is not None:
                names = self.schema.names
            else:
                raise CsvStateError("No headers to write")
        headers = names if isinstance(names, Headers) else Headers(names)
        self._ser.print_row(headers.names)
        self._written = self.headers = headers
        logger.debug("Wrote header: %s", list(headers.names))

    def write_row(self, values: Union[Row, Sequence[Any]]) -> None:
        self._check_open()
        if isinstance(values, Row):
            if self._written is not None:
                cells = [values[name] for name in self._written.names]
            else:
                cells = list(values.values)
        else:
            cells = list(values)
        self._ser.print_row(cells)

    def write_rows(self, rows: Iterable[Union[Row, Sequence[Any]]]) -> None:
        for r in rows:
            self.write_row(r)

    def write_all_rows(self, source: Iterable[Row]) -> int:
        """Copy every row of ``source`` (a CsvReader, say). Returns the count."""
        n = 0
        for row in source:
            self.write_row(row)
            n += 1
        return n

    def write_record(self, record: Union[Mapping[str, Any], Sequence[Any]]) -> None:
        """Format ``record`` through the schema; None values become empty cells."""
        if self.schema is None:
            raise CsvStateError("write_record needs a schema")
        self.write_row(self.schema.format_row(record))

    def write_records(self, records: Iterable[Union[Mapping[str, Any], Sequence[Any]]]) -> None:
        for r in records:
            self.write_record(r)

    def flush(self) -> None:
        self._check_open()
        self._ser.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._ser.flush()
        finally:
            if self._close_sink:
                self._ser.close()

    def __enter__(self) -> "CsvWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["CsvWriter"]
