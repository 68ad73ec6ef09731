"""Reader/writer policy layered on top of a Dialect."""

from __future__ import annotations

import codecs
from dataclasses import dataclass, replace

from .dialect import EXCEL, RFC4180, Dialect
from .errors import ConfigError


@dataclass(frozen=True)
class CsvConfig:
    dialect: Dialect = RFC4180
    has_header: bool = False
    require_uniform_field_count: bool = False
    skip_empty_lines: bool = True
    charset: str = "utf-8"
    write_bom: bool = True          # only honoured when the writer opens the file itself
    read_buffer_size: int = 8192

    def __post_init__(self) -> None:
        if not isinstance(self.dialect, Dialect):
            raise ConfigError(f"dialect must be a Dialect, got {type(self.dialect).__name__}")
        if self.read_buffer_size <= 0:
            raise ConfigError(f"read_buffer_size must be > 0, got {self.read_buffer_size}")
        try:
            codecs.lookup(self.charset)
        except LookupError:
            raise ConfigError(f"Unknown charset: {self.charset!r}") from None

    @property
    def uniform_field_count(self) -> bool:
        # A header row fixes the table width, so it implies the uniform rule.
        return self.has_header or self.require_uniform_field_count

    @classmethod
    def excel_defaults(cls) -> "CsvConfig":
        """Excel dialect with a header row, blank lines skipped."""
        return cls(dialect=EXCEL, has_header=True)

    def with_dialect(self, dialect: Dialect) -> "CsvConfig":
        return replace(self, dialect=dialect)

    def with_header(self, has_header: bool = True) -> "CsvConfig":
        return replace(self, has_header=has_header)


__all__ = ["CsvConfig"]
