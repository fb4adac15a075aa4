"""
Coercing constructors: convert the input before validating it.

Usage:
    from schemata import coerce

    coerce.number().int().parse("42")        # 42
    coerce.date().parse("2024-01-31")        # datetime(2024, 1, 31)
    coerce.string().parse(12)                # "12"

A value that cannot be converted fails with a type issue (or INVALID_DATE
for unparseable date strings); it never raises.
"""

from __future__ import annotations

from .primitives import BooleanSchema, DateSchema, NumberSchema, StringSchema


def string(message: str | None = None) -> StringSchema:
    """str(value) for anything but a missing key."""
    return StringSchema(coerce=True, message=message)


def number(message: str | None = None) -> NumberSchema:
    """Numeric strings, bools and Decimals become int or float."""
    return NumberSchema(coerce=True, message=message)


def boolean(message: str | None = None) -> BooleanSchema:
    """Truthiness: bool(value). Note that bool("false") is True."""
    return BooleanSchema(coerce=True, message=message)


def date(message: str | None = None) -> DateSchema:
    """ISO 8601 strings and POSIX timestamps (read as UTC)."""
    return DateSchema(coerce=True, message=message)
