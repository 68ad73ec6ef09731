"""
Typed-field layer: FieldType codecs, ColumnSpec/Schema, TypedField.

Conventions shared by every type:
- None or blank raw text parses to None (STRING keeps the raw text).
- None formats to "".
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from .errors import HeaderError, ValidationError
from .rows import Row
from .specs import DateSpec, DateTimeSpec, DecimalSpec, TimeSpec
from .validators import Validator

T = TypeVar("T")

INT_MIN, INT_MAX = -(2 ** 31), 2 ** 31 - 1
LONG_MIN, LONG_MAX = -(2 ** 63), 2 ** 63 - 1

TRUTHY = frozenset({"true", "1", "y", "yes"})


class FieldType(Enum):
    STRING = "string"
    INT = "int"
    LONG = "long"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"

    def parse(self, raw: Optional[str], column: Optional["ColumnSpec"] = None) -> Any:
        """Parse raw cell text; raises ValidationError on bad input."""
        parser, _ = _CODECS[self]
        return parser(raw, column or _default_column(self))

    def format(self, value: Any, column: Optional["ColumnSpec"] = None) -> str:
        _, formatter = _CODECS[self]
        return formatter(value, column or _default_column(self))


# ----------------------------
# Type codecs (parse/format)
# ----------------------------

def _blank(raw: Optional[str]) -> Optional[str]:
    """Trimmed text, or None when missing."""
    if raw is None:
        return None
    s = raw.strip()
    return s or None


_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def _integer_codec(label: str, lo: int, hi: int) -> Tuple[Callable, Callable]:
    def parse(raw: Optional[str], column: "ColumnSpec") -> Optional[int]:
        s = _blank(raw)
        if s is None:
            return None
        if _INTEGER_RE.fullmatch(s) is None:
            raise ValidationError(f"Invalid {label}: {raw!r}", value=raw)
        try:
            v = int(s)
        except ValueError:
            # Longer than the interpreter's int conversion limit.
            raise ValidationError(f"{label} out of range: {raw!r}", value=raw) from None
        if not lo <= v <= hi:
            raise ValidationError(f"{label} out of range: {raw!r}", value=raw)
        return v

    def fmt(value: Any, column: "ColumnSpec") -> str:
        return "" if value is None else str(int(value))

    return parse, fmt


def _parse_double(raw: Optional[str], column: "ColumnSpec") -> Optional[float]:
    s = _blank(raw)
    if s is None:
        return None
    if "_" in s:
        raise ValidationError(f"Invalid double: {raw!r}", value=raw)
    try:
        v = float(s)
    except ValueError:
        raise ValidationError(f"Invalid double: {raw!r}", value=raw) from None
    # Finite text that overflowed to infinity.
    if math.isinf(v) and "inf" not in s.lower():
        raise ValidationError(f"double out of range: {raw!r}", value=raw)
    return v


def _format_double(value: Any, column: "ColumnSpec") -> str:
    return "" if value is None else repr(float(value))


def _parse_bool(raw: Optional[str], column: "ColumnSpec") -> Optional[bool]:
    s = _blank(raw)
    if s is None:
        return None
    return s.lower() in TRUTHY


def _format_bool(value: Any, column: "ColumnSpec") -> str:
    if value is None:
        return ""
    return "true" if bool(value) else "false"


def _parse_string(raw: Optional[str], column: "ColumnSpec") -> Optional[str]:
    return raw


def _format_string(value: Any, column: "ColumnSpec") -> str:
    return "" if value is None else str(value)


_CODECS: Dict[FieldType, Tuple[Callable[[Optional[str], "ColumnSpec"], Any], Callable[[Any, "ColumnSpec"], str]]] = {
    FieldType.STRING: (_parse_string, _format_string),
    FieldType.INT: _integer_codec("int", INT_MIN, INT_MAX),
    FieldType.LONG: _integer_codec("long", LONG_MIN, LONG_MAX),
    FieldType.DOUBLE: (_parse_double, _format_double),
    FieldType.BOOLEAN: (_parse_bool, _format_bool),
    FieldType.DECIMAL: (
        lambda raw, c: c.decimal_spec.parse(raw),
        lambda v, c: c.decimal_spec.format(v),
    ),
    FieldType.DATE: (
        lambda raw, c: c.date_spec.parse(raw),
        lambda v, c: c.date_spec.format(v),
    ),
    FieldType.DATETIME: (
        lambda raw, c: c.datetime_spec.parse(raw),
        lambda v, c: c.datetime_spec.format(v),
    ),
    FieldType.TIME: (
        lambda raw, c: c.time_spec.parse(raw),
        lambda v, c: c.time_spec.format(v),
    ),
}


# ----------------------------
# Columns and schema
# ----------------------------

@dataclass(frozen=True)
class ColumnSpec:
    name: str
    field_type: FieldType = FieldType.STRING
    decimal_spec: DecimalSpec = field(default_factory=DecimalSpec)
    date_spec: DateSpec = field(default_factory=DateSpec)
    datetime_spec: DateTimeSpec = field(default_factory=DateTimeSpec)
    time_spec: TimeSpec = field(default_factory=TimeSpec)
    validators: Tuple[Validator, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.field_type, FieldType):
            object.__setattr__(self, "field_type", FieldType(self.field_type))
        object.__setattr__(self, "validators", tuple(self.validators))

    def parse(self, raw: Optional[str]) -> Any:
        """Parse and validate, raising the first ValidationError."""
        value = self.field_type.parse(raw, self)
        for check in self.validators:
            check(value)
        return value

    def format(self, value: Any) -> str:
        return self.field_type.format(value, self)


_DEFAULT_COLUMNS: Dict[FieldType, ColumnSpec] = {}


def _default_column(field_type: FieldType) -> ColumnSpec:
    col = _DEFAULT_COLUMNS.get(field_type)
    if col is None:
        col = _DEFAULT_COLUMNS[field_type] = ColumnSpec("value", field_type)
    return col


@dataclass(frozen=True)
class TypedField:
    """The outcome of parsing one cell: either a value or the errors that prevented it."""

    index: int
    name: str
    raw: Optional[str]
    field_type: FieldType
    valid: bool
    errors: Tuple[ValidationError, ...]
    value: Any

    @classmethod
    def parse(cls, index: int, raw: Optional[str], column: ColumnSpec) -> "TypedField":
        errors: List[ValidationError] = []
        value: Any = None
        try:
            value = column.field_type.parse(raw, column)
        except ValidationError as e:
            errors.append(_in_context(e, column.name, index, raw))
        else:
            for check in column.validators:
                try:
                    check(value)
                except ValidationError as e:
                    errors.append(_in_context(e, column.name, index, raw))
        return cls(
            index=index,
            name=column.name,
            raw=raw,
            field_type=column.field_type,
            valid=not errors,
            errors=tuple(errors),
            value=None if errors else value,
        )

    @property
    def missing(self) -> bool:
        return self.raw is None or not self.raw.strip()

    def value_as(self, cls: Type[T]) -> Optional[T]:
        """The value checked against ``cls``; TypeError on mismatch."""
        if self.value is None:
            return None
        if not isinstance(self.value, cls):
            raise TypeError(f"Field {self.name!r} holds {type(self.value).__name__}, not {cls.__name__}")
        return self.value


def _in_context(e: ValidationError, name: str, index: int, raw: Optional[str]) -> ValidationError:
    return ValidationError(e.reason, column=name, index=index, value=raw)


@dataclass(frozen=True)
class Schema:
    columns: Tuple[ColumnSpec, ...]

    def __post_init__(self) -> None:
        cols = tuple(self.columns)
        seen: Dict[str, int] = {}
        for i, c in enumerate(cols):
            key = c.name.strip().casefold()
            if key in seen:
                raise HeaderError(f"Duplicate column {c.name!r} at index {i} (collides with index {seen[key]})")
            seen[key] = i
        object.__setattr__(self, "columns", cols)

    @classmethod
    def of(cls, types: Mapping[str, Union[FieldType, str]]) -> "Schema":
        """Schema from a name -> type mapping, specs left at their defaults."""
        return cls(tuple(ColumnSpec(name, FieldType(t)) for name, t in types.items()))

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    def parse_row(self, row: Union[Row, Sequence[Optional[str]]]) -> List[TypedField]:
        """
        Typed fields for one record. A Row is matched by column name; a plain
        sequence by position (missing trailing cells count as None).
        """
        out: List[TypedField] = []
        for j, col in enumerate(self.columns):
            if isinstance(row, Row):
                index = row.headers.index_of(col.name)
                raw = row[index]
            else:
                index = j
                raw = row[j] if j < len(row) else None
            out.append(TypedField.parse(index, raw, col))
        return out

    def format_row(self, record: Union[Mapping[str, Any], Sequence[Any]]) -> List[str]:
        """Format a mapping (by column name, missing keys -> "") or a sequence (by position)."""
        if isinstance(record, Mapping):
            return [c.format(record.get(c.name)) for c in self.columns]
        if len(record) != len(self.columns):
            raise ValidationError(
                f"Expected {len(self.columns)} values but got {len(record)}"
            )
        return [c.format(v) for c, v in zip(self.columns, record)]


# ----------------------------
# Inference
# ----------------------------

def infer_field_type(values: Iterable[Optional[str]]) -> FieldType:
    """
    Infer a type for an untyped column from sample values.
    Conservative: INT -> LONG -> DOUBLE, else STRING. Blanks are ignored.
    """
    samples = [v for v in values if v is not None and v.strip()]
    if not samples:
        return FieldType.STRING

    def can_parse_all(ft: FieldType) -> bool:
        try:
            for s in samples:
                ft.parse(s)
            return True
        except ValidationError:
            return False

    for candidate in (FieldType.INT, FieldType.LONG, FieldType.DOUBLE):
        if can_parse_all(candidate):
            return candidate
    return FieldType.STRING


__all__ = [
    "FieldType",
    "ColumnSpec",
    "Schema",
    "TypedField",
    "infer_field_type",
    "TRUTHY",
]
