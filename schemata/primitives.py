"""
Primitive schema nodes: strings, numbers, booleans, dates, literals, enums.

Each primitive carries an ordered tuple of Checks. All checks run even after
one fails, so one field can report several issues.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Callable, Pattern
from urllib.parse import urlparse

from .core import ParseContext, Schema
from .errors import IssueCode
from .types import MISSING, Err, Ok, ParseResult

_EMAIL = re.compile(
    r"^(?!\.)(?!.*\.\.)([A-Z0-9_'+\-.]*)[A-Z0-9_+-]@([A-Z0-9][A-Z0-9\-]*\.)+[A-Z]{2,}$",
    re.IGNORECASE,
)
_UUID = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def _is_url(value: str) -> bool:
    try:
        parts = urlparse(value)
    except ValueError:
        return False
    return bool(parts.scheme and (parts.netloc or parts.path))


def _is_datetime(value: str) -> bool:
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    if "T" not in text and " " not in text:
        return False
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


_FORMATS: dict[str, Callable[[str], bool]] = {
    "email": lambda v: _EMAIL.match(v) is not None,
    "uuid": lambda v: _UUID.match(v) is not None,
    "url": _is_url,
    "datetime": _is_datetime,
}


@dataclass(frozen=True, slots=True)
class Check:
    """One constraint attached to a primitive."""

    kind: str
    value: Any = None
    message: str | None = None
    inclusive: bool = True


def _too_small(ctx: ParseContext, check: Check, kind: str, exact: bool = False):
    return ctx.issue(
        IssueCode.TOO_SMALL,
        message=check.message,
        minimum=check.value,
        inclusive=check.inclusive,
        exact=exact,
        type=kind,
    )


def _too_big(ctx: ParseContext, check: Check, kind: str, exact: bool = False):
    return ctx.issue(
        IssueCode.TOO_BIG,
        message=check.message,
        maximum=check.value,
        inclusive=check.inclusive,
        exact=exact,
        type=kind,
    )


@dataclass(frozen=True, slots=True, eq=False)
class StringSchema(Schema):
    checks: tuple[Check, ...] = ()
    coerce: bool = False
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if self.coerce and value is not MISSING and not isinstance(value, str):
            value = str(value)
        if not isinstance(value, str):
            return Err([ctx.invalid_type("string", value, self.message)])

        issues = []
        for check in self.checks:
            match check.kind:
                case "min":
                    if len(value) < check.value:
                        issues.append(_too_small(ctx, check, "string"))
                case "max":
                    if len(value) > check.value:
                        issues.append(_too_big(ctx, check, "string"))
                case "length":
                    if len(value) < check.value:
                        issues.append(_too_small(ctx, check, "string", exact=True))
                    elif len(value) > check.value:
                        issues.append(_too_big(ctx, check, "string", exact=True))
                case "email" | "url" | "uuid" | "datetime":
                    if not _FORMATS[check.kind](value):
                        issues.append(
                            ctx.issue(
                                IssueCode.INVALID_STRING,
                                message=check.message,
                                validation=check.kind,
                            )
                        )
                case "regex":
                    if check.value.search(value) is None:
                        issues.append(
                            ctx.issue(
                                IssueCode.INVALID_STRING,
                                message=check.message,
                                validation="regex",
                                pattern=check.value.pattern,
                            )
                        )
                case "starts_with" | "ends_with" | "includes":
                    if not _affix_matches(check.kind, value, check.value):
                        issues.append(
                            ctx.issue(
                                IssueCode.INVALID_STRING,
                                message=check.message,
                                validation={check.kind: check.value},
                            )
                        )
                case "trim":
                    value = value.strip()
                case "to_lower":
                    value = value.lower()
                case "to_upper":
                    value = value.upper()

        return Err(issues) if issues else Ok(value)

    def _with(self, check: Check) -> StringSchema:
        return replace(self, checks=(*self.checks, check))

    def min(self, length: int, message: str | None = None) -> StringSchema:
        return self._with(Check("min", length, message))

    def max(self, length: int, message: str | None = None) -> StringSchema:
        return self._with(Check("max", length, message))

    def length(self, length: int, message: str | None = None) -> StringSchema:
        return self._with(Check("length", length, message))

    def nonempty(self, message: str | None = None) -> StringSchema:
        return self.min(1, message)

    def email(self, message: str | None = None) -> StringSchema:
        return self._with(Check("email", message=message))

    def url(self, message: str | None = None) -> StringSchema:
        return self._with(Check("url", message=message))

    def uuid(self, message: str | None = None) -> StringSchema:
        return self._with(Check("uuid", message=message))

    def datetime(self, message: str | None = None) -> StringSchema:
        """ISO 8601 date-time, e.g. 2024-01-31T12:00:00Z."""
        return self._with(Check("datetime", message=message))

    def regex(self, pattern: str | Pattern[str], message: str | None = None) -> StringSchema:
        return self._with(Check("regex", re.compile(pattern), message))

    def starts_with(self, prefix: str, message: str | None = None) -> StringSchema:
        return self._with(Check("starts_with", prefix, message))

    def ends_with(self, suffix: str, message: str | None = None) -> StringSchema:
        return self._with(Check("ends_with", suffix, message))

    def includes(self, part: str, message: str | None = None) -> StringSchema:
        return self._with(Check("includes", part, message))

    def trim(self) -> StringSchema:
        """Strip surrounding whitespace before the checks that follow."""
        return self._with(Check("trim"))

    def to_lower(self) -> StringSchema:
        return self._with(Check("to_lower"))

    def to_upper(self) -> StringSchema:
        return self._with(Check("to_upper"))


def _affix_matches(kind: str, value: str, part: str) -> bool:
    if kind == "starts_with":
        return value.startswith(part)
    if kind == "ends_with":
        return value.endswith(part)
    return part in value


def _coerce_number(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return value
    if isinstance(value, Decimal):
        return float(value)
    return value


# ints are always finite and may be too large to convert to float
def _is_nan(value: int | float) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _is_infinite(value: int | float) -> bool:
    return isinstance(value, float) and math.isinf(value)


def _is_multiple(value: int | float, step: int | float) -> bool:
    if isinstance(value, int) and isinstance(step, int):
        return value % step == 0
    try:
        remainder = math.remainder(value, step)
    except OverflowError:
        return Fraction(value) % Fraction(step) == 0
    return abs(remainder) < 1e-9 * max(1.0, abs(step))


@dataclass(frozen=True, slots=True, eq=False)
class NumberSchema(Schema):
    checks: tuple[Check, ...] = ()
    coerce: bool = False
    allow_non_finite_values: bool = False
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if self.coerce:
            value = _coerce_number(value)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return Err([ctx.invalid_type("number", value, self.message)])
        if _is_nan(value) and not self.allow_non_finite_values:
            return Err([ctx.invalid_type("number", value, self.message)])

        issues = []
        if _is_infinite(value) and not self.allow_non_finite_values:
            issues.append(ctx.issue(IssueCode.NOT_FINITE))

        for check in self.checks:
            match check.kind:
                case "min":
                    if value < check.value or (not check.inclusive and value == check.value):
                        issues.append(_too_small(ctx, check, "number"))
                case "max":
                    if value > check.value or (not check.inclusive and value == check.value):
                        issues.append(_too_big(ctx, check, "number"))
                case "int":
                    if not (isinstance(value, int) or value.is_integer()):
                        issues.append(
                            ctx.issue(
                                IssueCode.INVALID_TYPE,
                                message=check.message,
                                expected="integer",
                                received="float",
                            )
                        )
                case "multiple_of":
                    if _is_infinite(value) or not _is_multiple(value, check.value):
                        issues.append(
                            ctx.issue(
                                IssueCode.NOT_MULTIPLE_OF,
                                message=check.message,
                                multiple_of=check.value,
                            )
                        )
                case "finite":
                    if _is_infinite(value) or _is_nan(value):
                        issues.append(ctx.issue(IssueCode.NOT_FINITE, message=check.message))

        return Err(issues) if issues else Ok(value)

    def _with(self, check: Check) -> NumberSchema:
        return replace(self, checks=(*self.checks, check))

    def gte(self, bound: int | float, message: str | None = None) -> NumberSchema:
        return self._with(Check("min", bound, message, inclusive=True))

    def gt(self, bound: int | float, message: str | None = None) -> NumberSchema:
        return self._with(Check("min", bound, message, inclusive=False))

    def lte(self, bound: int | float, message: str | None = None) -> NumberSchema:
        return self._with(Check("max", bound, message, inclusive=True))

    def lt(self, bound: int | float, message: str | None = None) -> NumberSchema:
        return self._with(Check("max", bound, message, inclusive=False))

    min = gte
    max = lte

    def int(self, message: str | None = None) -> NumberSchema:
        return self._with(Check("int", message=message))

    def positive(self, message: str | None = None) -> NumberSchema:
        return self.gt(0, message)

    def nonnegative(self, message: str | None = None) -> NumberSchema:
        return self.gte(0, message)

    def negative(self, message: str | None = None) -> NumberSchema:
        return self.lt(0, message)

    def nonpositive(self, message: str | None = None) -> NumberSchema:
        return self.lte(0, message)

    def multiple_of(self, step: int | float, message: str | None = None) -> NumberSchema:
        if step <= 0:
            raise ValueError("multiple_of() requires a positive step")
        return self._with(Check("multiple_of", step, message))

    def finite(self, message: str | None = None) -> NumberSchema:
        return self._with(Check("finite", message=message))

    def allow_non_finite(self) -> NumberSchema:
        """Accept NaN and +/-Infinity, which are rejected by default."""
        return replace(self, allow_non_finite_values=True)


@dataclass(frozen=True, slots=True, eq=False)
class BooleanSchema(Schema):
    coerce: bool = False
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if self.coerce and value is not MISSING:
            value = bool(value)
        if not isinstance(value, bool):
            return Err([ctx.invalid_type("boolean", value, self.message)])
        return Ok(value)


def _is_aware(value: datetime) -> bool:
    return value.utcoffset() is not None


def _comparable(value: date, bound: date) -> tuple[date, date]:
    # date and datetime refuse to compare with each other, and so do naive
    # and aware datetimes; a naive side is read as UTC
    if isinstance(value, datetime) and not isinstance(bound, datetime):
        return value.date(), bound
    if isinstance(bound, datetime) and not isinstance(value, datetime):
        return value, bound.date()
    if isinstance(value, datetime) and _is_aware(value) != _is_aware(bound):
        if _is_aware(value):
            return value, bound.replace(tzinfo=timezone.utc)
        return value.replace(tzinfo=timezone.utc), bound
    return value, bound


@dataclass(frozen=True, slots=True, eq=False)
class DateSchema(Schema):
    checks: tuple[Check, ...] = ()
    coerce: bool = False
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if self.coerce:
            if isinstance(value, str):
                value = _parse_iso(value)
                if value is None:
                    return Err([ctx.issue(IssueCode.INVALID_DATE, message=self.message)])
            elif isinstance(value, (int, float)) and not isinstance(value, bool):
                try:
                    value = datetime.fromtimestamp(value, tz=timezone.utc)
                except (OverflowError, OSError, ValueError):
                    return Err([ctx.issue(IssueCode.INVALID_DATE, message=self.message)])
        if not isinstance(value, date):
            return Err([ctx.invalid_type("date", value, self.message)])

        issues = []
        for check in self.checks:
            current, bound = _comparable(value, check.value)
            if check.kind == "min" and current < bound:
                issues.append(_too_small(ctx, check, "date"))
            elif check.kind == "max" and current > bound:
                issues.append(_too_big(ctx, check, "date"))
        return Err(issues) if issues else Ok(value)

    def min(self, bound: date, message: str | None = None) -> DateSchema:
        return replace(self, checks=(*self.checks, Check("min", bound, message)))

    def max(self, bound: date, message: str | None = None) -> DateSchema:
        return replace(self, checks=(*self.checks, Check("max", bound, message)))


def _parse_iso(text: str) -> datetime | None:
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def is_number(value: Any) -> bool:
    """int or float, but not bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _same_value(value: Any, expected: Any) -> bool:
    if value is expected:
        return True
    if is_number(value) and is_number(expected):
        return value == expected
    return type(value) is type(expected) and value == expected


@dataclass(frozen=True, slots=True, eq=False)
class LiteralSchema(Schema):
    value: Any
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if _same_value(value, self.value):
            return Ok(value)
        return Err(
            [
                ctx.issue(
                    IssueCode.INVALID_LITERAL,
                    message=self.message,
                    expected=self.value,
                    received=value,
                )
            ]
        )


@dataclass(frozen=True, slots=True, eq=False)
class EnumSchema(Schema):
    options: tuple[Any, ...]
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if any(_same_value(value, option) for option in self.options):
            return Ok(value)
        return Err([_invalid_enum(ctx, self.options, value, self.message)])

    def extract(self, *values: Any) -> EnumSchema:
        return EnumSchema(tuple(o for o in self.options if o in values), self.message)

    def exclude(self, *values: Any) -> EnumSchema:
        return EnumSchema(tuple(o for o in self.options if o not in values), self.message)


@dataclass(frozen=True, slots=True, eq=False)
class NativeEnumSchema(Schema):
    """Accepts members of a Python Enum or their values; outputs the member."""

    enum_class: type[Enum]
    message: str | None = None

    @property
    def options(self) -> tuple[Any, ...]:
        return tuple(member.value for member in self.enum_class)

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if isinstance(value, self.enum_class):
            return Ok(value)
        for member in self.enum_class:
            if _same_value(value, member.value):
                return Ok(member)
        return Err([_invalid_enum(ctx, self.options, value, self.message)])


def _invalid_enum(ctx: ParseContext, options: tuple[Any, ...], value: Any, message: str | None):
    if value is MISSING:
        return ctx.invalid_type("enum", value, message)
    return ctx.issue(
        IssueCode.INVALID_ENUM_VALUE,
        message=message,
        options=list(options),
        received=value,
    )


@dataclass(frozen=True, slots=True, eq=False)
class NoneSchema(Schema):
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if value is None:
            return Ok(None)
        return Err([ctx.invalid_type("null", value, self.message)])


@dataclass(frozen=True, slots=True, eq=False)
class AnySchema(Schema):
    """Accepts every value, including a missing key."""

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        return Ok(value)

    def is_optional(self) -> bool:
        return True


@dataclass(frozen=True, slots=True, eq=False)
class UnknownSchema(AnySchema):
    pass


@dataclass(frozen=True, slots=True, eq=False)
class NeverSchema(Schema):
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        return Err([ctx.invalid_type("never", value, self.message)])
