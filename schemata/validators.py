"""
Schema constructors.

Provides factory functions that return schema nodes. Several names mirror
builtins (`object`, `tuple`, `any`); use them qualified:

    import schemata as s

    user = s.object({"name": s.string().min(1), "tags": s.array(s.string())})
"""

from __future__ import annotations

import builtins
from datetime import date as _date
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from .composites import (
    ArraySchema,
    DiscriminatedUnionSchema,
    LazySchema,
    ObjectSchema,
    RecordSchema,
    TupleSchema,
    UnionSchema,
)
from .context import UnknownKeys
from .core import Schema
from .errors import SchemaDefinitionError
from .primitives import (
    AnySchema,
    BooleanSchema,
    DateSchema,
    EnumSchema,
    LiteralSchema,
    NativeEnumSchema,
    NeverSchema,
    NoneSchema,
    NumberSchema,
    StringSchema,
    UnknownSchema,
)


def string(message: str | None = None) -> StringSchema:
    """
    Validate that value is a str.

    Usage:
        string()
        string().min(8).max(64)
        string().email("Enter an email address")
    """
    return StringSchema(message=message)


def number(message: str | None = None, *, allow_non_finite: bool = False) -> NumberSchema:
    """
    Validate that value is an int or float (bool is rejected).

    NaN and +/-Infinity fail unless allow_non_finite is set.

    Usage:
        number().int().nonnegative()
        number().gt(0).lte(1)
    """
    return NumberSchema(message=message, allow_non_finite_values=allow_non_finite)


def boolean(message: str | None = None) -> BooleanSchema:
    return BooleanSchema(message=message)


def date(message: str | None = None) -> DateSchema:
    """Validate a datetime.date (datetime.datetime included)."""
    return DateSchema(message=message)


def literal(value: Any, message: str | None = None) -> LiteralSchema:
    """Validate exact equality, with matching type (1 is not True)."""
    return LiteralSchema(value, message)


def enum(*values: Any, message: str | None = None) -> EnumSchema:
    """
    Validate value is one of a fixed set.

    Usage:
        enum("active", "inactive", "pending")
    """
    if len(values) == 1 and isinstance(values[0], (list, builtins.tuple)):
        values = builtins.tuple(values[0])
    if not values:
        raise SchemaDefinitionError("enum() requires at least one value")
    return EnumSchema(values, message)


def native_enum(enum_class: type[Enum], message: str | None = None) -> NativeEnumSchema:
    """Validate members (or values) of a Python Enum; outputs the member."""
    return NativeEnumSchema(enum_class, message)


def none(message: str | None = None) -> NoneSchema:
    return NoneSchema(message)


def any() -> AnySchema:
    return AnySchema()


def unknown() -> UnknownSchema:
    return UnknownSchema()


def never(message: str | None = None) -> NeverSchema:
    return NeverSchema(message)


def object(
    fields: Mapping[str, Any],
    *,
    unknown_keys: UnknownKeys | str | None = None,
    message: str | None = None,
) -> ObjectSchema:
    """
    Validate a mapping against named fields.

    Usage:
        object({
            "name": string(),
            "email": string().email().optional(),
        })
        object({...}, unknown_keys="strict")
    """
    policy = UnknownKeys.coerce(unknown_keys) if unknown_keys is not None else None
    shape = {key: to_schema(value) for key, value in fields.items()}
    return ObjectSchema(shape, unknown_keys=policy, message=message)


def array(element: Any, message: str | None = None) -> ArraySchema:
    """
    Validate a list whose items all match element.

    Usage:
        array(string().uuid())
        array(number()).min(1).max(10)
        array(string()).nonempty()
    """
    return ArraySchema(to_schema(element), message=message)


def tuple(items: Iterable[Any], rest: Any = None, message: str | None = None) -> TupleSchema:
    """Validate a fixed-length list; `rest` validates any extra items."""
    return TupleSchema(
        builtins.tuple(to_schema(item) for item in items),
        to_schema(rest) if rest is not None else None,
        message,
    )


def record(values: Any, keys: Any = None, message: str | None = None) -> RecordSchema:
    """
    Validate a mapping with arbitrary keys.

    Usage:
        record(number())                       # {str: number}
        record(number(), keys=string().min(2))
    """
    return RecordSchema(
        to_schema(values),
        to_schema(keys) if keys is not None else None,
        message,
    )


def union(*options: Any, message: str | None = None) -> UnionSchema:
    """
    Accept the first option that validates.

    Usage:
        union(string(), number())
        string() | number()                    # same
    """
    if len(options) == 1 and isinstance(options[0], (list, builtins.tuple)):
        options = builtins.tuple(options[0])
    if not options:
        raise SchemaDefinitionError("union() requires at least one option")
    return UnionSchema(builtins.tuple(to_schema(option) for option in options), message)


def discriminated_union(
    discriminator: str,
    options: Iterable[ObjectSchema],
    message: str | None = None,
) -> DiscriminatedUnionSchema:
    """
    Select an object option by a literal field.

    Usage:
        discriminated_union("type", [
            object({"type": literal("circle"), "radius": number()}),
            object({"type": literal("square"), "side": number()}),
        ])
    """
    return DiscriminatedUnionSchema.create(discriminator, options, message)


def lazy(getter: Callable[[], Schema]) -> LazySchema:
    return LazySchema(getter)


def to_schema(value: Any) -> Schema:
    """
    Coerce a shorthand to a schema.

    Conversion rules:
        Schema -> pass through
        str, int, float, bool -> string(), number().int(), number(), boolean()
        datetime.date -> date()
        None -> none()
        Enum subclass -> native_enum()
        dict -> object() with recursive conversion
        [item] -> array(item)
    """
    if isinstance(value, Schema):
        return value

    if value is None:
        return NoneSchema()

    if isinstance(value, type):
        if issubclass(value, Enum):
            return NativeEnumSchema(value)
        if value is bool:
            return BooleanSchema()
        if value is int:
            return NumberSchema().int()
        if value is float:
            return NumberSchema()
        if value is str:
            return StringSchema()
        if issubclass(value, _date):
            return DateSchema()

    if isinstance(value, dict):
        return object(value)

    if isinstance(value, list):
        if len(value) != 1:
            raise SchemaDefinitionError(
                "List shorthand takes exactly one item schema, e.g. [str]"
            )
        return array(value[0])

    raise SchemaDefinitionError(f"Cannot convert {value!r} to a schema")
