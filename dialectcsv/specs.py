"""
Value specs used by the typed-field layer.

- DecimalSpec: fixed scale, optional precision cap, rounding, inclusive bounds.
- DateTimeSpec: an ordered list of accepted formats (named presets and/or
  strptime patterns); the first one is also used for output.
- DateSpec / TimeSpec: date-only and time-only views over a DateTimeSpec.
"""

from __future__ import annotations

import email.utils
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import (
    ROUND_05UP,
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    ROUND_UP,
    Decimal,
    InvalidOperation,
    localcontext,
)
from enum import Enum
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigError, ValidationError

Temporal = Union[datetime, date, time]

EPOCH_DATE = date(1970, 1, 1)

_ROUNDING_MODES = {
    ROUND_05UP, ROUND_CEILING, ROUND_DOWN, ROUND_FLOOR,
    ROUND_HALF_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP,
}


# ----------------------------
# Decimal
# ----------------------------

def _to_decimal(value: Any, label: str) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ConfigError(f"{label} is not a decimal: {value!r}") from None
    if not d.is_finite():
        raise ConfigError(f"{label} must be finite, got {value!r}")
    return d


@dataclass(frozen=True)
class DecimalSpec:
    scale: int = 2
    precision: Optional[int] = None     # total significant digits after scaling
    rounding: str = ROUND_HALF_UP
    allow_blank: bool = True
    min_value: Optional[Decimal] = None  # inclusive
    max_value: Optional[Decimal] = None  # inclusive

    def __post_init__(self) -> None:
        if self.precision is not None and self.precision <= 0:
            raise ConfigError(f"precision must be > 0, got {self.precision}")
        if self.rounding not in _ROUNDING_MODES:
            raise ConfigError(f"Unknown rounding mode: {self.rounding!r}")
        object.__setattr__(self, "min_value", _to_decimal(self.min_value, "min_value"))
        object.__setattr__(self, "max_value", _to_decimal(self.max_value, "max_value"))
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ConfigError("min_value must not exceed max_value")

    def _rescale(self, value: Decimal) -> Decimal:
        with localcontext() as ctx:
            if value.adjusted() + self.scale >= ctx.Emax:
                raise ValidationError(f"Decimal out of range: {value}", value=value)
            ctx.prec = max(ctx.prec, value.adjusted() + self.scale + 2)
            try:
                return value.quantize(Decimal(1).scaleb(-self.scale), rounding=self.rounding)
            except InvalidOperation:
                raise ValidationError(f"Decimal out of range: {value}", value=value) from None

    def parse(self, raw: Optional[str]) -> Optional[Decimal]:
        """Parse cell text into a Decimal scaled to ``scale``."""
        if raw is None:
            return None
        s = raw.strip()
        if not s:
            if self.allow_blank:
                return None
            raise ValidationError("Blank not allowed", value=raw)
        if "_" in s:
            raise ValidationError(f"Invalid decimal: {raw!r}", value=raw)
        try:
            v = Decimal(s)
        except InvalidOperation:
            raise ValidationError(f"Invalid decimal: {raw!r}", value=raw) from None
        if not v.is_finite():
            raise ValidationError(f"Non-finite decimal: {raw!r}", value=raw)

        try:
            v = self._rescale(v)
        except ValidationError as e:
            raise ValidationError(e.reason, value=raw) from None
        if self.precision is not None and len(v.as_tuple().digits) > self.precision:
            raise ValidationError(f"Precision overflow: {v} exceeds {self.precision} digits", value=raw)
        if self.min_value is not None and v < self.min_value:
            raise ValidationError(f"Below min: {v} < {self.min_value}", value=raw)
        if self.max_value is not None and v > self.max_value:
            raise ValidationError(f"Above max: {v} > {self.max_value}", value=raw)
        return v

    def format(self, value: Any) -> str:
        """Format for output, always at ``scale`` digits after the point."""
        if value is None:
            if self.allow_blank:
                return ""
            raise ValidationError("Blank not allowed", value=value)
        try:
            d = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"Invalid decimal: {value!r}", value=value) from None
        if not d.is_finite():
            raise ValidationError(f"Non-finite decimal: {value!r}", value=value)
        return format(self._rescale(d), "f")


# ----------------------------
# Date/time formats
# ----------------------------

class MissingPartPolicy(Enum):
    DEFAULTS = "defaults"          # date-only -> midnight, time-only -> 1970-01-01
    REQUIRE_FULL = "require_full"  # reject partial input


class _Instant(NamedTuple):
    moment: datetime  # aware


Parsed = Union[datetime, date, time, _Instant]


@dataclass(frozen=True)
class DateTimeFormat:
    """One accepted input/output shape: a parser and a renderer."""

    name: str
    parse: Callable[[str], Parsed]
    render: Callable[[Temporal, Optional[tzinfo]], str]


_DATE = r"(?P<y>\d{4})-(?P<mo>\d{2})-(?P<d>\d{2})"
_CLOCK = r"(?P<h>\d{2}):(?P<mi>\d{2})(?::(?P<s>\d{2})(?:[.,](?P<f>\d{1,9}))?)?"
_OFFSET = r"(?P<off>Z|[+-]\d{2}(?::?\d{2})?)"
_ZONE = r"(?:\[(?P<zone>[^\]]+)\])"

_RE_LOCAL_DATE = re.compile(_DATE)
_RE_LOCAL_TIME = re.compile(_CLOCK)
_RE_LOCAL_DATE_TIME = re.compile(_DATE + "T" + _CLOCK, re.IGNORECASE)
_RE_OFFSET_DATE_TIME = re.compile(_DATE + "T" + _CLOCK + _OFFSET, re.IGNORECASE)
_RE_ZONED_DATE_TIME = re.compile(_DATE + "T" + _CLOCK + _OFFSET + _ZONE + "?", re.IGNORECASE)
_RE_YMD_FLEX = re.compile(
    _DATE
    + r"(?:T(?P<h>\d{2})(?::(?P<mi>\d{2}))?(?::(?P<s>\d{2}))?(?:\.(?P<f>\d{1,9}))?"
    + _OFFSET + "?)?",
    re.IGNORECASE,
)


def _match(regex: "re.Pattern[str]", text: str) -> "re.Match[str]":
    m = regex.fullmatch(text)
    if m is None:
        raise ValueError(f"{text!r} does not match {regex.pattern!r}")
    return m


def _micros(frac: Optional[str]) -> int:
    if not frac:
        return 0
    return int(frac[:6].ljust(6, "0"))


def _date_of(m: "re.Match[str]") -> date:
    return date(int(m["y"]), int(m["mo"]), int(m["d"]))


def _clock_of(m: "re.Match[str]") -> time:
    return time(
        int(m["h"] or 0),
        int(m["mi"] or 0),
        int(m["s"] or 0),
        _micros(m["f"]),
    )


def _offset_of(text: str) -> timezone:
    if text.upper() == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4] or 0)
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _as_datetime(value: Temporal) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    return datetime.combine(EPOCH_DATE, value)


def _attach_zone(value: Temporal, zone: Optional[tzinfo]) -> datetime:
    dt = _as_datetime(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=zone or timezone.utc)
    return dt


def _iso_clock(t: time) -> str:
    return t.replace(tzinfo=None).isoformat()


def _parse_local_date(text: str) -> Parsed:
    return _date_of(_match(_RE_LOCAL_DATE, text))


def _parse_local_time(text: str) -> Parsed:
    return _clock_of(_match(_RE_LOCAL_TIME, text))


def _parse_local_date_time(text: str) -> Parsed:
    m = _match(_RE_LOCAL_DATE_TIME, text)
    return datetime.combine(_date_of(m), _clock_of(m))


def _parse_offset_date_time(text: str) -> Parsed:
    m = _match(_RE_OFFSET_DATE_TIME, text)
    return datetime.combine(_date_of(m), _clock_of(m), tzinfo=_offset_of(m["off"]))


def _parse_zoned_date_time(text: str) -> Parsed:
    m = _match(_RE_ZONED_DATE_TIME, text)
    dt = datetime.combine(_date_of(m), _clock_of(m), tzinfo=_offset_of(m["off"]))
    if m["zone"]:
        try:
            dt = dt.astimezone(ZoneInfo(m["zone"]))
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown zone {m['zone']!r}") from e
    return dt


def _parse_instant(text: str) -> Parsed:
    return _Instant(_parse_offset_date_time(text))  # type: ignore[arg-type]


def _parse_rfc_1123(text: str) -> Parsed:
    try:
        dt = email.utils.parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError) as e:
        raise ValueError(f"{text!r} is not an RFC 1123 date-time") from e
    if dt is None:
        raise ValueError(f"{text!r} is not an RFC 1123 date-time")
    return dt


def _parse_ymd_flex(text: str) -> Parsed:
    m = _match(_RE_YMD_FLEX, text)
    d = _date_of(m)
    if m["h"] is None:
        return d
    tz = _offset_of(m["off"]) if m["off"] else None
    return datetime.combine(d, _clock_of(m), tzinfo=tz)


def _render_local_date(value: Temporal, zone: Optional[tzinfo]) -> str:
    return _as_datetime(value).date().isoformat()


def _render_local_time(value: Temporal, zone: Optional[tzinfo]) -> str:
    if isinstance(value, time):
        return _iso_clock(value)
    return _iso_clock(_as_datetime(value).time())


def _render_local_date_time(value: Temporal, zone: Optional[tzinfo]) -> str:
    return _as_datetime(value).replace(tzinfo=None).isoformat()


def _render_offset_date_time(value: Temporal, zone: Optional[tzinfo]) -> str:
    return _attach_zone(value, zone).isoformat()


def _render_zoned_date_time(value: Temporal, zone: Optional[tzinfo]) -> str:
    dt = _attach_zone(value, zone)
    key = getattr(dt.tzinfo, "key", None)
    return dt.isoformat() + (f"[{key}]" if key else "")


def _render_instant(value: Temporal, zone: Optional[tzinfo]) -> str:
    dt = _as_datetime(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=zone) if zone is not None else dt.astimezone()
    return dt.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def _render_rfc_1123(value: Temporal, zone: Optional[tzinfo]) -> str:
    dt = _attach_zone(value, zone)
    gmt = dt.utcoffset() == timedelta(0)
    if gmt:
        dt = dt.astimezone(timezone.utc)
    return email.utils.format_datetime(dt, usegmt=gmt)


def _render_ymd_flex(value: Temporal, zone: Optional[tzinfo]) -> str:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    return _as_datetime(value).replace(tzinfo=None).isoformat()


# ----------------------------
# strptime-backed formats (regional presets and explicit patterns)
# ----------------------------

_DATE_DIRECTIVES = set("aAwdbBmyYjUWGuV")
_TIME_DIRECTIVES = set("HIpMSf")


def _directives(pattern: str) -> set:
    return set(re.findall(r"%([a-zA-Z])", pattern))


def _strptime_format(name: str, patterns: Sequence[str], out_date: str, out_date_time: str) -> DateTimeFormat:
    """
    Build a format that accepts any of ``patterns`` and renders with
    ``out_date`` for date-only values and ``out_date_time`` otherwise.
    """
    shapes: List[Tuple[str, bool, bool]] = []
    for p in patterns:
        found = _directives(p)
        has_date = bool(found & _DATE_DIRECTIVES)
        has_time = bool(found & _TIME_DIRECTIVES)
        if not (has_date or has_time):
            raise ConfigError(f"Pattern {p!r} has no date or time directives")
        shapes.append((p, has_date, has_time))

    def parse(text: str) -> Parsed:
        last: Optional[Exception] = None
        for p, has_date, has_time in shapes:
            try:
                dt = datetime.strptime(text, p)
            except ValueError as e:
                last = e
                continue
            if dt.tzinfo is not None:
                return dt
            if has_date and not has_time:
                return dt.date()
            if has_time and not has_date:
                return dt.time()
            return dt
        raise ValueError(f"{text!r} does not match {name}") from last

    def render(value: Temporal, zone: Optional[tzinfo]) -> str:
        if isinstance(value, time):
            if not (_directives(out_date_time) & _DATE_DIRECTIVES):
                return value.strftime(out_date_time)
            return _as_datetime(value).strftime(out_date_time)
        if not isinstance(value, datetime):
            return value.strftime(out_date)
        if "%z" in out_date_time or "%Z" in out_date_time:
            value = _attach_zone(value, zone)
        return value.strftime(out_date_time)

    return DateTimeFormat(name, parse, render)


def _time_variants(prefix: str, clocks: Sequence[str]) -> List[str]:
    return [prefix] + [f"{prefix} {c}" for c in clocks]


_CLOCKS_24H = ("%H", "%H:%M", "%H:%M:%S", "%H:%M:%S.%f")
_CLOCKS_12H = ("%I %p", "%I:%M %p", "%I:%M:%S %p", "%I:%M:%S.%f %p")


def _pattern_format(pattern: str) -> DateTimeFormat:
    return _strptime_format(pattern, [pattern], pattern, pattern)


PRESETS = {
    "ISO_LOCAL_DATE": DateTimeFormat("ISO_LOCAL_DATE", _parse_local_date, _render_local_date),
    "ISO_LOCAL_TIME": DateTimeFormat("ISO_LOCAL_TIME", _parse_local_time, _render_local_time),
    "ISO_LOCAL_DATE_TIME": DateTimeFormat("ISO_LOCAL_DATE_TIME", _parse_local_date_time, _render_local_date_time),
    "ISO_OFFSET_DATE_TIME": DateTimeFormat("ISO_OFFSET_DATE_TIME", _parse_offset_date_time, _render_offset_date_time),
    "ISO_ZONED_DATE_TIME": DateTimeFormat("ISO_ZONED_DATE_TIME", _parse_zoned_date_time, _render_zoned_date_time),
    "ISO_INSTANT": DateTimeFormat("ISO_INSTANT", _parse_instant, _render_instant),
    "RFC_1123_DATE_TIME": DateTimeFormat("RFC_1123_DATE_TIME", _parse_rfc_1123, _render_rfc_1123),
    # 31/12/2025 or 31/12/2025 23:59[:ss][.ffffff]
    "EU_DMY": _strptime_format(
        "EU_DMY", _time_variants("%d/%m/%Y", _CLOCKS_24H), "%d/%m/%Y", "%d/%m/%Y %H:%M:%S",
    ),
    # 12/31/2025, 12/31/2025 11:59 PM or 12/31/2025 23:59
    "US_MDY": _strptime_format(
        "US_MDY", _time_variants("%m/%d/%Y", _CLOCKS_12H + _CLOCKS_24H), "%m/%d/%Y", "%m/%d/%Y %H:%M:%S",
    ),
    # 2025-12-31 or 2025-12-31T23:59[:ss][.fff][+01:00]
    "YMD_FLEX": DateTimeFormat("YMD_FLEX", _parse_ymd_flex, _render_ymd_flex),
}

_DEFAULT_FORMATS = ("YMD_FLEX", "ISO_LOCAL_DATE_TIME", "ISO_LOCAL_DATE", "ISO_OFFSET_DATE_TIME")


def resolve_format(entry: str) -> DateTimeFormat:
    """A preset name, or a strptime pattern when the entry contains '%'."""
    if "%" in entry:
        return _pattern_format(entry)
    key = entry.strip().upper()
    try:
        return PRESETS[key]
    except KeyError:
        raise ConfigError(f"Unknown date/time preset: {entry!r}") from None


def _resolve_zone(zone: Union[str, tzinfo, None]) -> Optional[tzinfo]:
    if zone is None or isinstance(zone, tzinfo):
        return zone
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigError(f"Unknown time zone: {zone!r}") from None


class DateTimeSpec:
    """
    Multi-format date/time spec.

    ``accept`` lists preset names (see PRESETS) and/or strptime patterns in
    the order they are tried. Parsing returns a naive datetime; the first
    format is used for output, so the written text may differ from what was
    read.

        DateTimeSpec(["ISO_LOCAL_DATE", "EU_DMY", "%d-%b-%Y %H:%M"], zone="Europe/Dublin")
    """

    def __init__(
        self,
        accept: Sequence[str] = (),
        *,
        zone: Union[str, tzinfo, None] = None,
        strict: bool = True,
        allow_blank: bool = True,
        missing_part_policy: MissingPartPolicy = MissingPartPolicy.DEFAULTS,
    ) -> None:
        if isinstance(accept, str):
            accept = [accept]
        entries = [a for a in accept if a and a.strip()] or list(_DEFAULT_FORMATS)
        self.formats: Tuple[DateTimeFormat, ...] = tuple(resolve_format(a) for a in entries)
        self.zone = _resolve_zone(zone)
        self.strict = strict
        self.allow_blank = allow_blank
        self.missing_part_policy = missing_part_policy

    @classmethod
    def of_pattern(cls, pattern: str, **kwargs: Any) -> "DateTimeSpec":
        return cls([pattern], **kwargs)

    @classmethod
    def of_presets(cls, *presets: str, **kwargs: Any) -> "DateTimeSpec":
        return cls(list(presets), **kwargs)

    @property
    def accepted(self) -> List[str]:
        return [f.name for f in self.formats]

    def parse(self, text: Optional[str]) -> Optional[datetime]:
        if text is None or not text.strip():
            if self.allow_blank:
                return None
            raise ValidationError("Blank date/time value not allowed", value=text)
        s = text.strip()

        candidates = [s]
        if not self.strict and "/" in s:
            candidates.append(s.replace("/", "-"))

        for fmt in self.formats:
            for candidate in candidates:
                try:
                    parsed = fmt.parse(candidate)
                except ValueError:
                    continue
                return self._coerce(parsed, s)
        raise ValidationError(f"No acceptable date/time format matched: {s!r}", value=text)

    def _coerce(self, parsed: Parsed, original: str) -> datetime:
        if isinstance(parsed, _Instant):
            if self.zone is not None:
                return parsed.moment.astimezone(self.zone).replace(tzinfo=None)
            return parsed.moment.astimezone().replace(tzinfo=None)
        if isinstance(parsed, datetime):
            return parsed.replace(tzinfo=None)
        if isinstance(parsed, date):
            if self.missing_part_policy is MissingPartPolicy.DEFAULTS:
                return datetime.combine(parsed, time())
            raise ValidationError(f"Time component required but missing: {original!r}", value=original)
        if isinstance(parsed, time):
            if self.missing_part_policy is MissingPartPolicy.DEFAULTS:
                return datetime.combine(EPOCH_DATE, parsed.replace(tzinfo=None))
            raise ValidationError(f"Date component required but missing: {original!r}", value=original)
        raise ValidationError(f"Could not coerce parsed value for: {original!r}", value=original)

    def format(self, value: Optional[Temporal]) -> str:
        """Render with the first accepted format."""
        if value is None:
            if self.allow_blank:
                return ""
            raise ValidationError("Blank date/time value not allowed", value=value)
        try:
            return self.formats[0].render(value, self.zone)
        except (ValueError, TypeError, OverflowError) as e:
            raise ValidationError(f"Cannot format {value!r} as {self.formats[0].name}: {e}", value=value) from e

    def is_valid(self, text: Optional[str]) -> bool:
        try:
            self.parse(text)
        except ValidationError:
            return False
        return True

    def __repr__(self) -> str:
        return f"DateTimeSpec({self.accepted!r}, strict={self.strict}, allow_blank={self.allow_blank})"


class DateSpec:
    """Date-only view over a DateTimeSpec."""

    def __init__(self, base: Optional[DateTimeSpec] = None) -> None:
        self.base = base or DateTimeSpec(["ISO_LOCAL_DATE", "EU_DMY", "US_MDY"])

    def parse(self, text: Optional[str]) -> Optional[date]:
        dt = self.base.parse(text)
        return None if dt is None else dt.date()

    def format(self, value: Optional[date]) -> str:
        if isinstance(value, datetime):
            value = value.date()
        return self.base.format(value)

    def is_valid(self, text: Optional[str]) -> bool:
        return self.base.is_valid(text)


class TimeSpec:
    """Time-only view over a DateTimeSpec."""

    def __init__(self, base: Optional[DateTimeSpec] = None) -> None:
        self.base = base or DateTimeSpec(
            ["ISO_LOCAL_TIME", "%H:%M", "%H:%M:%S", "%I:%M %p"],
            strict=False,
            missing_part_policy=MissingPartPolicy.DEFAULTS,
        )

    def parse(self, text: Optional[str]) -> Optional[time]:
        dt = self.base.parse(text)
        return None if dt is None else dt.time()

    def format(self, value: Optional[time]) -> str:
        if isinstance(value, datetime):
            value = value.time()
        return self.base.format(value)

    def is_valid(self, text: Optional[str]) -> bool:
        return self.base.is_valid(text)


__all__ = [
    "DecimalSpec",
    "DateTimeSpec",
    "DateTimeFormat",
    "DateSpec",
    "TimeSpec",
    "MissingPartPolicy",
    "PRESETS",
    "EPOCH_DATE",
    "resolve_format",
]
