"""
Schema algebra: pure functions that build new schemas from existing ones.

None of these mutate their arguments; object schemas share unchanged field
nodes with the schemas they were derived from.
"""

from __future__ import annotations

import functools
from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping

from .composites import ArraySchema, IntersectionSchema, LazySchema, ObjectSchema, TupleSchema
from .core import Schema
from .errors import SchemaDefinitionError
from .validators import to_schema
from .wrappers import NullableSchema, OptionalSchema


def _require_object(schema: Any, operation: str) -> ObjectSchema:
    if not isinstance(schema, ObjectSchema):
        raise SchemaDefinitionError(
            f"{operation}() requires an object schema, got {type(schema).__name__}"
        )
    return schema


def _select(schema: ObjectSchema, keys: Iterable[str] | None, operation: str) -> set[str]:
    if keys is None:
        return set(schema.fields)
    if isinstance(keys, str):
        keys = [keys]
    selected = set(keys)
    unknown = selected - set(schema.fields)
    if unknown:
        raise SchemaDefinitionError(
            f"{operation}() got keys not in the shape: {sorted(unknown)}"
        )
    return selected


def extend(base: ObjectSchema, fields: Mapping[str, Any]) -> ObjectSchema:
    """
    Add fields to an object schema; `fields` wins on a name collision.

    A colliding field is replaced as a whole: its constraints and messages
    come only from `fields`.

    Usage:
        user = object({"name": string()})
        admin = extend(user, {"role": literal("admin")})
    """
    base = _require_object(base, "extend")
    added = {key: to_schema(value) for key, value in fields.items()}
    return replace(base, fields={**base.fields, **added})


def merge(first: ObjectSchema, second: ObjectSchema) -> ObjectSchema:
    """
    Combine two object schemas; `second` wins on collisions and supplies the
    unknown-key policy. Equivalent to extend(first, second.shape) for fields.
    """
    first = _require_object(first, "merge")
    second = _require_object(second, "merge")
    return replace(
        first,
        fields={**first.fields, **second.fields},
        unknown_keys=second.unknown_keys,
        catchall_schema=second.catchall_schema,
    )


def pick(schema: ObjectSchema, keys: Iterable[str]) -> ObjectSchema:
    """Keep only `keys`; every other key becomes unknown to the schema."""
    schema = _require_object(schema, "pick")
    selected = _select(schema, keys, "pick")
    return replace(schema, fields={k: v for k, v in schema.fields.items() if k in selected})


def omit(schema: ObjectSchema, keys: Iterable[str]) -> ObjectSchema:
    """Remove `keys` from the shape; they fall under the unknown-key policy."""
    schema = _require_object(schema, "omit")
    selected = _select(schema, keys, "omit")
    return replace(schema, fields={k: v for k, v in schema.fields.items() if k not in selected})


def _optional(schema: Schema) -> Schema:
    return schema if isinstance(schema, OptionalSchema) else OptionalSchema(schema)


def partial(schema: ObjectSchema, keys: Iterable[str] | None = None) -> ObjectSchema:
    """
    Make the selected top-level fields (all of them by default) optional.

    Nested object fields keep their own required fields; see deep_partial.
    """
    schema = _require_object(schema, "partial")
    selected = _select(schema, keys, "partial")
    return replace(
        schema,
        fields={
            key: _optional(value) if key in selected else value
            for key, value in schema.fields.items()
        },
    )


def required(schema: ObjectSchema, keys: Iterable[str] | None = None) -> ObjectSchema:
    """Undo partial: strip optional wrappers from the selected fields."""
    schema = _require_object(schema, "required")
    selected = _select(schema, keys, "required")
    fields = {}
    for key, value in schema.fields.items():
        if key in selected:
            while isinstance(value, OptionalSchema):
                value = value.inner
        fields[key] = value
    return replace(schema, fields=fields)


def deep_partial(schema: Schema) -> Schema:
    """
    Make every object field optional, recursively.

    Recurses through object fields, array elements, tuple items and the
    optional/nullable wrappers. Array fields become optional as fields; the
    array schema itself is not. Nodes are memoized by identity, so a node
    shared in several places maps to one transformed node and recursive
    schemas built with lazy() terminate.
    """
    return _deep_partial(schema, {})


def _deep_partial(schema: Schema, memo: dict[int, tuple[Schema, Schema]]) -> Schema:
    hit = memo.get(id(schema))
    if hit is not None:
        return hit[1]

    match schema:
        case ObjectSchema():
            result: Schema = replace(
                schema,
                fields={
                    key: _optional(_deep_partial(value, memo))
                    for key, value in schema.fields.items()
                },
            )
        case ArraySchema():
            result = replace(schema, element=_deep_partial(schema.element, memo))
        case TupleSchema():
            result = replace(
                schema, items=tuple(_deep_partial(item, memo) for item in schema.items)
            )
        case OptionalSchema():
            result = OptionalSchema(_deep_partial(schema.inner, memo))
        case NullableSchema():
            result = NullableSchema(_deep_partial(schema.inner, memo))
        case LazySchema():
            result = LazySchema(_resolve_once(schema, memo))
        case _:
            result = schema

    # The source node is kept alive alongside its id
    memo[id(schema)] = (schema, result)
    return result


def _resolve_once(
    source: LazySchema, memo: dict[int, tuple[Schema, Schema]]
) -> Callable[[], Schema]:
    # The memo is only written during the first resolution; later parses
    # reuse the cached node
    @functools.cache
    def getter() -> Schema:
        return _deep_partial(source.getter(), memo)

    return getter


def intersection(left: Any, right: Any) -> Schema:
    """
    Require both schemas to accept the value.

    Unlike merge, object schemas are not combined into one shape: each side
    validates independently, so conflicting field rules can make the
    intersection unsatisfiable.
    """
    return IntersectionSchema(to_schema(left), to_schema(right))
