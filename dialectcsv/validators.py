"""
Composable value validators for typed columns.

A validator is a callable taking the parsed value and raising
ValidationError when it is unacceptable. Missing values (None) pass every
validator except ``required``.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Optional, Union

from .errors import ConfigError, ValidationError

Validator = Callable[[Any], None]


def required() -> Validator:
    def check(value: Any) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError("value is required", value=value)
    return check


def min_value(bound: Any) -> Validator:
    def check(value: Any) -> None:
        if value is not None and value < bound:
            raise ValidationError(f"value {value!r} < min {bound!r}", value=value)
    return check


def max_value(bound: Any) -> Validator:
    def check(value: Any) -> None:
        if value is not None and value > bound:
            raise ValidationError(f"value {value!r} > max {bound!r}", value=value)
    return check


def length(min_len: Optional[int] = None, max_len: Optional[int] = None) -> Validator:
    if min_len is None and max_len is None:
        raise ConfigError("length() needs min_len and/or max_len")

    def check(value: Any) -> None:
        if value is None:
            return
        n = len(value if isinstance(value, str) else str(value))
        if min_len is not None and n < min_len:
            raise ValidationError(f"len {n} < minlen {min_len}", value=value)
        if max_len is not None and n > max_len:
            raise ValidationError(f"len {n} > maxlen {max_len}", value=value)
    return check


def regex(pattern: Union[str, "re.Pattern[str]"]) -> Validator:
    """The string form of the value must fullmatch ``pattern``."""
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid regex {pattern!r}: {e}") from e

    def check(value: Any) -> None:
        if value is None:
            return
        s = value if isinstance(value, str) else str(value)
        if compiled.fullmatch(s) is None:
            raise ValidationError(f"value {s!r} does not fullmatch /{compiled.pattern}/", value=value)
    return check


def one_of(*allowed: Any) -> Validator:
    choices = frozenset(allowed)

    def check(value: Any) -> None:
        if value is not None and value not in choices:
            shown = sorted(choices, key=repr)
            raise ValidationError(f"value {value!r} not in {shown!r}", value=value)
    return check


def all_of(*validators: Validator) -> Validator:
    """Every validator must pass; the first failure is raised."""
    def check(value: Any) -> None:
        for v in validators:
            v(value)
    return check


def any_of(*validators: Validator) -> Validator:
    """At least one validator must pass."""
    if not validators:
        raise ConfigError("any_of() needs at least one validator")

    def check(value: Any) -> None:
        reasons = []
        for v in validators:
            try:
                v(value)
                return
            except ValidationError as e:
                reasons.append(e.reason)
        raise ValidationError("no alternative matched: " + "; ".join(reasons), value=value)
    return check


def negate(validator: Validator, message: str = "value matched a forbidden rule") -> Validator:
    def check(value: Any) -> None:
        try:
            validator(value)
        except ValidationError:
            return
        raise ValidationError(message, value=value)
    return check


def custom(predicate: Callable[[Any], bool], message: str = "custom check failed") -> Validator:
    """Wrap a boolean predicate. None values are not passed to it."""
    def check(value: Any) -> None:
        if value is not None and not predicate(value):
            raise ValidationError(f"{message}: {value!r}", value=value)
    return check


def run_all(validators: Iterable[Validator], value: Any) -> list:
    """Run every validator, returning the ValidationErrors instead of raising."""
    errors = []
    for v in validators:
        try:
            v(value)
        except ValidationError as e:
            errors.append(e)
    return errors


__all__ = [
    "Validator",
    "required",
    "min_value",
    "max_value",
    "length",
    "regex",
    "one_of",
    "all_of",
    "any_of",
    "negate",
    "custom",
    "run_all",
]
