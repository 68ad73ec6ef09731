"""
Dialects: the grammar rules shared by the tokenizer and the serializer.

A Dialect is pure data. It never touches a stream; it is handed to a
Tokenizer (reading) or a Serializer (writing) so both sides agree on the
delimiter, quoting and newline conventions.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from .errors import ConfigError

_LINE_BREAKS = ("\r", "\n")


@dataclass(frozen=True)
class Dialect:
    delimiter: str = ","
    quote_char: Optional[str] = '"'     # None -> no quoting at all
    escape_char: Optional[str] = None   # None -> no escape character
    newline: str = "\n"                 # written after every record
    always_quote: bool = False
    double_quote: bool = True           # "" inside a quoted field is a literal quote
    allow_unescaped_quotes: bool = False
    allow_unbalanced_quotes: bool = False
    trim_unquoted_fields: bool = False
    skip_whitespace_around_quotes: bool = False
    name: str = "custom"

    def __post_init__(self) -> None:
        if not self.newline:
            raise ConfigError("newline must be a non-empty string")
        _check_char("delimiter", self.delimiter)
        if self.quote_char is not None:
            _check_char("quote_char", self.quote_char)
            if self.quote_char == self.delimiter:
                raise ConfigError("delimiter and quote_char must differ")
        if self.escape_char is not None:
            _check_char("escape_char", self.escape_char)
            if self.escape_char == self.delimiter:
                raise ConfigError("delimiter and escape_char must differ")
            if self.escape_char == self.quote_char:
                raise ConfigError("quote_char and escape_char must differ (use double_quote)")

    @property
    def lenient(self) -> bool:
        """True when stray quote characters are kept as text instead of rejected."""
        return self.allow_unescaped_quotes or self.allow_unbalanced_quotes

    def with_delimiter(self, delimiter: str) -> "Dialect":
        return replace(self, delimiter=delimiter)

    def with_quote_char(self, quote_char: Optional[str]) -> "Dialect":
        return replace(self, quote_char=quote_char)

    def with_newline(self, newline: str) -> "Dialect":
        return replace(self, newline=newline)

    def with_always_quote(self, always_quote: bool) -> "Dialect":
        return replace(self, always_quote=always_quote)


def _check_char(label: str, value: Optional[str]) -> None:
    if not isinstance(value, str) or len(value) != 1:
        raise ConfigError(f"{label} must be a single character, got {value!r}")
    if value in _LINE_BREAKS:
        raise ConfigError(f"{label} must not be CR or LF")


# ----------------------------
# Presets
# ----------------------------

RFC4180 = Dialect(name="rfc4180")
RFC4180_WINDOWS = Dialect(newline="\r\n", name="rfc4180_windows")
EXCEL = Dialect(
    newline="\r\n",
    allow_unescaped_quotes=True,
    skip_whitespace_around_quotes=True,
    name="excel",
)
EXCEL_SEMICOLON = replace(EXCEL, delimiter=";", name="excel_semicolon")
TSV = Dialect(delimiter="\t", quote_char=None, name="tsv")
JSON_CSV = Dialect(
    escape_char="\\",
    allow_unescaped_quotes=True,
    allow_unbalanced_quotes=True,
    name="json_csv",
)
DEFAULT = RFC4180

_PRESETS: Dict[str, Dialect] = {
    d.name: d for d in (RFC4180, RFC4180_WINDOWS, EXCEL, EXCEL_SEMICOLON, TSV, JSON_CSV)
}


def get_dialect(name: str) -> Dialect:
    """Look up a preset by name ("excel", "excel-semicolon", "TSV", ...)."""
    key = name.strip().lower().replace("-", "_")
    try:
        return _PRESETS[key]
    except KeyError:
        raise ConfigError(f"Unknown dialect: {name!r}") from None


def list_dialects() -> List[str]:
    return list(_PRESETS)


__all__ = [
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
]
