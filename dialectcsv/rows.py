"""
Table data model: Headers, Row and RowBuilder.

Headers are shared by every Row of a table. Rows are immutable; RowBuilder
is the mutable accumulator the reader fills before freezing a Row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import CsvStateError, HeaderError

if TYPE_CHECKING:
    from .fields import ColumnSpec, FieldType, TypedField

Key = Union[int, str]


def _fold(name: str) -> str:
    return name.strip().casefold()


class Headers:
    """Ordered column names with case-insensitive, whitespace-trimmed lookup."""

    __slots__ = ("_names", "_index")

    def __init__(self, names: Iterable[str]) -> None:
        cleaned: List[str] = []
        index: Dict[str, int] = {}
        for i, name in enumerate(names):
            if name is None:
                raise HeaderError(f"Header name at index {i} is None")
            trimmed = str(name).strip()
            if not trimmed:
                raise HeaderError(f"Header name at index {i} is blank")
            key = trimmed.casefold()
            if key in index:
                raise HeaderError(
                    f"Duplicate header name {trimmed!r} at index {i} "
                    f"(collides with index {index[key]})"
                )
            index[key] = i
            cleaned.append(trimmed)
        if not cleaned:
            raise HeaderError("Headers must contain at least one name")
        self._names: Tuple[str, ...] = tuple(cleaned)
        self._index = index

    @classmethod
    def synthesize(cls, count: int) -> "Headers":
        """Headers named col0..col{count-1}."""
        return cls(f"col{i}" for i in range(count))

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def index_of(self, name: str) -> int:
        try:
            return self._index[_fold(name)]
        except KeyError:
            raise KeyError(f"Column not found: {name!r}") from None

    def name_at(self, index: int) -> str:
        if index < 0 or index >= len(self._names):
            raise IndexError(f"Invalid column index: {index}")
        return self._names[index]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _fold(name) in self._index

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._names == other._names

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"Headers({list(self._names)!r})"


class Row:
    """An immutable record of nullable strings bound to one Headers instance."""

    __slots__ = ("_headers", "_values")

    def __init__(self, headers: Headers, values: Sequence[Optional[str]]) -> None:
        if headers is None:
            raise ValueError("headers must not be None")
        if values is None:
            raise ValueError("values must not be None")
        if len(values) != len(headers):
            raise ValueError(
                f"Value count ({len(values)}) does not match header count ({len(headers)})"
            )
        self._headers = headers
        self._values: Tuple[Optional[str], ...] = tuple(values)

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def values(self) -> Tuple[Optional[str], ...]:
        return self._values

    def _position(self, key: Key) -> int:
        if isinstance(key, int):
            if key < 0 or key >= len(self._values):
                raise IndexError(f"Invalid column index: {key}")
            return key
        return self._headers.index_of(key)

    def __getitem__(self, key: Key) -> Optional[str]:
        return self._values[self._position(key)]

    def get(self, key: Key, default: Optional[str] = None) -> Optional[str]:
        try:
            return self[key]
        except (KeyError, IndexError):
            return default

    def field(self, column: Union["ColumnSpec", str], field_type: Optional["FieldType"] = None) -> "TypedField":
        """
        Typed view of one cell.

        ``column`` is either a ColumnSpec, or a column name combined with a
        FieldType (specs then use their defaults).
        """
        from .fields import ColumnSpec, FieldType, TypedField

        if isinstance(column, str):
            column = ColumnSpec(column, field_type or FieldType.STRING)
        index = self._headers.index_of(column.name)
        return TypedField.parse(index, self._values[index], column)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return dict(zip(self._headers.names, self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Optional[str]]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self._headers == other._headers and self._values == other._values

    def __hash__(self) -> int:
        return hash((self._headers, self._values))

    def __repr__(self) -> str:
        return f"Row({self.to_dict()!r})"


_UNSET: Any = object()


class RowBuilder:
    """
    Mutable, headers-scoped accumulator for one Row.

    Values live in a fixed slot array sized to the headers; ``add`` fills the
    next empty slot, ``set`` targets a slot by index or name. ``build`` only
    succeeds once every slot holds a value (None counts as a value).
    """

    def __init__(self, headers: Headers) -> None:
        if headers is None:
            raise ValueError("headers must not be None")
        self.headers = headers
        self._slots: List[Any] = [_UNSET] * len(headers)
        self._filled = 0
        self._cursor = 0

    def _advance(self) -> None:
        while self._cursor < len(self._slots) and self._slots[self._cursor] is not _UNSET:
            self._cursor += 1

    def add(self, value: Optional[str]) -> "RowBuilder":
        self._advance()
        if self._cursor >= len(self._slots):
            raise CsvStateError(f"Row already holds {len(self._slots)} values")
        self._slots[self._cursor] = value
        self._filled += 1
        self._cursor += 1
        return self

    def add_all(self, values: Iterable[Optional[str]]) -> "RowBuilder":
        if values is None:
            raise ValueError("values must not be None")
        for v in values:
            self.add(v)
        return self

    def set(self, key: Key, value: Optional[str]) -> "RowBuilder":
        if isinstance(key, int):
            if key < 0 or key >= len(self._slots):
                raise IndexError(f"Invalid column index: {key}")
            index = key
        else:
            index = self.headers.index_of(key)
        if self._slots[index] is _UNSET:
            self._filled += 1
        self._slots[index] = value
        return self

    @property
    def size(self) -> int:
        return self._filled

    @property
    def is_complete(self) -> bool:
        return self._filled == len(self._slots)

    def clear(self) -> None:
        self._slots = [_UNSET] * len(self.headers)
        self._filled = 0
        self._cursor = 0

    def build(self) -> Row:
        if not self.is_complete:
            raise CsvStateError(
                f"Cannot build Row: expected {len(self.headers)} values but got {self._filled}"
            )
        return Row(self.headers, self._slots)


__all__ = ["Headers", "Row", "RowBuilder"]
