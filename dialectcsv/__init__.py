"""
dialectcsv: dialect-driven CSV reading/writing with an optional typed-field layer (stdlib-only).

Layers:
- Dialect / CsvConfig: grammar (delimiter, quoting, escapes, newline) and
  reader/writer policy (header row, uniform width, empty lines, charset).
- Tokenizer / Serializer: a character-level state machine and its exact
  inverse.
- CsvReader / CsvWriter: Headers, Row and RowBuilder on top of those.
- FieldType / ColumnSpec / Schema: typed parse/format per cell, driven by
  DecimalSpec and DateTimeSpec/DateSpec/TimeSpec, plus validators.

Conventions:
- Blank cells parse to None for every type except STRING (kept as text).
- None is written as an empty cell.
- Malformed quoting raises ParseError with line/column; typed failures are
  collected on TypedField.errors instead of raised.

API (csv-like):
- reader(f, config=None, headers=None) -> CsvReader
- writer(f, config=None, headers=None) -> CsvWriter

Python: 3.10+
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, TextIO, Union

from . import validators
from .bom import DetectedStream, detect_bom, open_text
from .config import CsvConfig
from .dialect import (
    DEFAULT,
    EXCEL,
    EXCEL_SEMICOLON,
    JSON_CSV,
    RFC4180,
    RFC4180_WINDOWS,
    TSV,
    Dialect,
    get_dialect,
    list_dialects,
)
from .errors import (
    ConfigError,
    CsvError,
    CsvStateError,
    HeaderError,
    ParseError,
    RowIterationError,
    ValidationError,
)
from .fields import ColumnSpec, FieldType, Schema, TypedField, infer_field_type
from .reader import CsvReader, RowShapeWarning, WarningKind
from .rows import Headers, Row, RowBuilder
from .serializer import Serializer, format_row
from .specs import DateSpec, DateTimeSpec, DecimalSpec, MissingPartPolicy, TimeSpec
from .tokenizer import Tokenizer, parse_text
from .writer import CsvWriter

__version__ = "0.3.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())


def reader(
    f: TextIO,
    config: Optional[CsvConfig] = None,
    headers: Union[Headers, Sequence[str], None] = None,
    **kwargs,
) -> CsvReader:
    return CsvReader(f, config, headers, **kwargs)


def writer(
    f: TextIO,
    config: Optional[CsvConfig] = None,
    headers: Union[Headers, Sequence[str], None] = None,
    **kwargs,
) -> CsvWriter:
    return CsvWriter(f, config, headers, **kwargs)


__all__ = [
    "__version__",
    "reader",
    "writer",
    "Dialect",
    "RFC4180",
    "RFC4180_WINDOWS",
    "EXCEL",
    "EXCEL_SEMICOLON",
    "TSV",
    "JSON_CSV",
    "DEFAULT",
    "get_dialect",
    "list_dialects",
    "CsvConfig",
    "Tokenizer",
    "parse_text",
    "Serializer",
    "format_row",
    "CsvReader",
    "CsvWriter",
    "RowShapeWarning",
    "WarningKind",
    "Headers",
    "Row",
    "RowBuilder",
    "FieldType",
    "ColumnSpec",
    "Schema",
    "TypedField",
    "infer_field_type",
    "DecimalSpec",
    "DateTimeSpec",
    "DateSpec",
    "TimeSpec",
    "MissingPartPolicy",
    "validators",
    "DetectedStream",
    "detect_bom",
    "open_text",
    "CsvError",
    "ConfigError",
    "HeaderError",
    "CsvStateError",
    "RowIterationError",
    "ParseError",
    "ValidationError",
]
