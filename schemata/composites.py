"""
Structural schema nodes: objects, arrays, tuples, records, unions,
intersections and lazy (recursive) references.

Children are validated independently and their issues concatenated in
declaration/index order. The async variants dispatch siblings concurrently
with gather_owned, which returns results in submission order, so the issue
order never depends on completion order.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from .context import UnknownKeys
from .core import ParseContext, Schema, gather_owned
from .errors import Issue, IssueCode, SchemaDefinitionError
from .primitives import Check, EnumSchema, LiteralSchema, NativeEnumSchema, is_number
from .types import MISSING, Err, Ok, ParseResult


def _gather_issues(results: Iterable[ParseResult]) -> list[Issue]:
    issues: list[Issue] = []
    for result in results:
        if isinstance(result, Err):
            issues.extend(result.error)
    return issues


@dataclass(frozen=True, slots=True, eq=False)
class ObjectSchema(Schema):
    """
    Validates a mapping field by field.

    `fields` keeps declaration order, which is the order of issues and of keys
    in the output. Keys outside `fields` follow `unknown_keys` (or the
    validation_context default when None), unless `catchall_schema` is set,
    in which case they are validated against it.
    """

    fields: Mapping[str, Schema]
    unknown_keys: UnknownKeys | None = None
    catchall_schema: Schema | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def shape(self) -> dict[str, Schema]:
        return dict(self.fields)

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, Mapping):
            return Err([ctx.invalid_type("object", value, self.message)])
        jobs = self._jobs(value)
        results = [schema._parse(item, ctx.child(key)) for key, schema, item in jobs]
        return self._assemble(value, jobs, results, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, Mapping):
            return Err([ctx.invalid_type("object", value, self.message)])
        jobs = self._jobs(value)
        results = await gather_owned(
            schema._parse_async(item, ctx.child(key)) for key, schema, item in jobs
        )
        return self._assemble(value, jobs, results, ctx)

    def _extra_keys(self, value: Mapping[Any, Any]) -> list[Any]:
        return [key for key in value if key not in self.fields]

    def _jobs(self, value: Mapping[Any, Any]) -> list[tuple[Any, Schema, Any]]:
        jobs = [(key, schema, value.get(key, MISSING)) for key, schema in self.fields.items()]
        if self.catchall_schema is not None:
            jobs.extend((key, self.catchall_schema, value[key]) for key in self._extra_keys(value))
        return jobs

    def _assemble(
        self,
        value: Mapping[Any, Any],
        jobs: list[tuple[Any, Schema, Any]],
        results: list[ParseResult],
        ctx: ParseContext,
    ) -> ParseResult:
        issues = _gather_issues(results)
        output: dict[Any, Any] = {}
        for (key, _, _), result in zip(jobs, results):
            # Absent optional fields stay absent
            if isinstance(result, Ok) and result.value is not MISSING:
                output[key] = result.value

        if self.catchall_schema is None:
            extras = self._extra_keys(value)
            policy = self.unknown_keys or ctx.unknown_keys
            if policy is UnknownKeys.STRICT and extras:
                issues.append(ctx.issue(IssueCode.UNRECOGNIZED_KEYS, keys=extras))
            elif policy is UnknownKeys.PASSTHROUGH:
                for key in extras:
                    output[key] = value[key]

        return Err(issues) if issues else Ok(output)

    # Unknown-key policy

    def strict(self) -> ObjectSchema:
        return replace(self, unknown_keys=UnknownKeys.STRICT, catchall_schema=None)

    def strip(self) -> ObjectSchema:
        return replace(self, unknown_keys=UnknownKeys.STRIP, catchall_schema=None)

    def passthrough(self) -> ObjectSchema:
        return replace(self, unknown_keys=UnknownKeys.PASSTHROUGH, catchall_schema=None)

    def catchall(self, schema: Schema) -> ObjectSchema:
        """Validate undeclared keys against schema instead of a policy."""
        return replace(self, catchall_schema=schema)

    def keyof(self) -> EnumSchema:
        return EnumSchema(tuple(self.fields))

    # Composition, see compose.py

    def extend(self, fields: Mapping[str, Any]) -> ObjectSchema:
        from .compose import extend

        return extend(self, fields)

    def merge(self, other: ObjectSchema) -> ObjectSchema:
        from .compose import merge

        return merge(self, other)

    def pick(self, *keys: str) -> ObjectSchema:
        from .compose import pick

        return pick(self, keys)

    def omit(self, *keys: str) -> ObjectSchema:
        from .compose import omit

        return omit(self, keys)

    def partial(self, *keys: str) -> ObjectSchema:
        from .compose import partial

        return partial(self, keys or None)

    def deep_partial(self) -> ObjectSchema:
        from .compose import deep_partial

        return deep_partial(self)

    def required(self, *keys: str) -> ObjectSchema:
        from .compose import required

        return required(self, keys or None)


@dataclass(frozen=True, slots=True, eq=False)
class ArraySchema(Schema):
    """
    Validates a list (or tuple) item by item; outputs a list.

    Length checks and item validation are independent: a too-short array
    with a bad item reports both.
    """

    element: Schema
    checks: tuple[Check, ...] = ()
    non_empty: bool = False
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, (list, tuple)):
            return Err([ctx.invalid_type("array", value, self.message)])
        results = [self.element._parse(item, ctx.child(i)) for i, item in enumerate(value)]
        return self._assemble(value, results, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, (list, tuple)):
            return Err([ctx.invalid_type("array", value, self.message)])
        results = await gather_owned(
            self.element._parse_async(item, ctx.child(i)) for i, item in enumerate(value)
        )
        return self._assemble(value, results, ctx)

    def _assemble(self, value: Any, results: list[ParseResult], ctx: ParseContext) -> ParseResult:
        issues = self._length_issues(len(value), ctx)
        issues.extend(_gather_issues(results))
        if issues:
            return Err(issues)
        return Ok([result.value for result in results])

    def _length_issues(self, size: int, ctx: ParseContext) -> list[Issue]:
        issues = []
        for check in self.checks:
            exact = check.kind == "length"
            if check.kind in ("min", "length") and size < check.value:
                issues.append(
                    ctx.issue(
                        IssueCode.TOO_SMALL,
                        message=check.message,
                        minimum=check.value,
                        inclusive=True,
                        exact=exact,
                        type="array",
                    )
                )
            if check.kind in ("max", "length") and size > check.value:
                issues.append(
                    ctx.issue(
                        IssueCode.TOO_BIG,
                        message=check.message,
                        maximum=check.value,
                        inclusive=True,
                        exact=exact,
                        type="array",
                    )
                )
        return issues

    def _with(self, check: Check) -> ArraySchema:
        return replace(self, checks=(*self.checks, check))

    def min(self, length: int, message: str | None = None) -> ArraySchema:
        return self._with(Check("min", length, message))

    def max(self, length: int, message: str | None = None) -> ArraySchema:
        return self._with(Check("max", length, message))

    def length(self, length: int, message: str | None = None) -> ArraySchema:
        return self._with(Check("length", length, message))

    def nonempty(self, message: str | None = None) -> ArraySchema:
        """Same runtime check as min(1); exported shapes guarantee one item."""
        return replace(self.min(1, message), non_empty=True)

    @property
    def min_length(self) -> int | None:
        bounds = [c.value for c in self.checks if c.kind in ("min", "length")]
        return max(bounds) if bounds else None

    @property
    def max_length(self) -> int | None:
        bounds = [c.value for c in self.checks if c.kind in ("max", "length")]
        return min(bounds) if bounds else None


@dataclass(frozen=True, slots=True, eq=False)
class TupleSchema(Schema):
    """Fixed positions, each with its own schema; optional `rest` for the tail."""

    items: tuple[Schema, ...]
    rest: Schema | None = None
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, (list, tuple)):
            return Err([ctx.invalid_type("array", value, self.message)])
        results = [schema._parse(item, ctx.child(i)) for i, schema, item in self._jobs(value)]
        return self._assemble(value, results, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, (list, tuple)):
            return Err([ctx.invalid_type("array", value, self.message)])
        results = await gather_owned(
            schema._parse_async(item, ctx.child(i)) for i, schema, item in self._jobs(value)
        )
        return self._assemble(value, results, ctx)

    def _jobs(self, value: Any) -> list[tuple[int, Schema, Any]]:
        jobs = list(zip(range(len(self.items)), self.items, value))
        if self.rest is not None:
            jobs.extend((i, self.rest, value[i]) for i in range(len(self.items), len(value)))
        return jobs

    def _assemble(self, value: Any, results: list[ParseResult], ctx: ParseContext) -> ParseResult:
        issues = []
        size = len(self.items)
        if len(value) < size:
            issues.append(
                ctx.issue(
                    IssueCode.TOO_SMALL,
                    minimum=size,
                    inclusive=True,
                    exact=self.rest is None,
                    type="array",
                )
            )
        elif len(value) > size and self.rest is None:
            issues.append(
                ctx.issue(
                    IssueCode.TOO_BIG,
                    maximum=size,
                    inclusive=True,
                    exact=True,
                    type="array",
                )
            )
        issues.extend(_gather_issues(results))
        if issues:
            return Err(issues)
        return Ok([result.value for result in results])


@dataclass(frozen=True, slots=True, eq=False)
class RecordSchema(Schema):
    """A mapping with arbitrary keys, every value validated by `values`."""

    values: Schema
    keys: Schema | None = None
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, Mapping):
            return Err([ctx.invalid_type("object", value, self.message)])
        results = []
        for key, item in value.items():
            child = ctx.child(key)
            key_result = self.keys._parse(key, child) if self.keys is not None else Ok(key)
            results.append((key_result, self.values._parse(item, child)))
        return self._assemble(results)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if not isinstance(value, Mapping):
            return Err([ctx.invalid_type("object", value, self.message)])

        async def pair(key: Any, item: Any) -> tuple[ParseResult, ParseResult]:
            child = ctx.child(key)
            key_result = (
                await self.keys._parse_async(key, child) if self.keys is not None else Ok(key)
            )
            return key_result, await self.values._parse_async(item, child)

        results = await gather_owned(pair(key, item) for key, item in value.items())
        return self._assemble(results)

    def _assemble(self, results: Iterable[tuple[ParseResult, ParseResult]]) -> ParseResult:
        issues: list[Issue] = []
        output: dict[Any, Any] = {}
        for key_result, value_result in results:
            issues.extend(_gather_issues((key_result, value_result)))
            if isinstance(key_result, Ok) and isinstance(value_result, Ok):
                output[key_result.value] = value_result.value
        return Err(issues) if issues else Ok(output)


# Codes that mean an option did not match the input's shape at all
_MISMATCH_CODES = frozenset(
    {
        IssueCode.INVALID_TYPE,
        IssueCode.INVALID_LITERAL,
        IssueCode.INVALID_ENUM_VALUE,
        IssueCode.INVALID_UNION,
        IssueCode.INVALID_DISCRIMINATOR,
        IssueCode.INVALID_DATE,
        IssueCode.UNRECOGNIZED_KEYS,
    }
)


@dataclass(frozen=True, slots=True, eq=False)
class UnionSchema(Schema):
    """
    Tries each option in order; the first success wins.

    When every option fails, the first option that accepted the input's type
    and only failed its constraints or refinements is the best match, and its
    issues are reported as they are. Otherwise reports one INVALID_UNION
    issue with the per-option issues in its `union_errors` context entry.
    """

    options: tuple[Schema, ...]
    message: str | None = None

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        failures = []
        for option in self.options:
            result = option._parse(value, ctx)
            if isinstance(result, Ok):
                return result
            failures.append(result.error)
        return self._fail(failures, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        failures = []
        for option in self.options:
            result = await option._parse_async(value, ctx)
            if isinstance(result, Ok):
                return result
            failures.append(result.error)
        return self._fail(failures, ctx)

    def _fail(self, failures: list[list[Issue]], ctx: ParseContext) -> ParseResult:
        for issues in failures:
            if not any(issue.code in _MISMATCH_CODES for issue in issues):
                return Err(issues)
        return Err([ctx.issue(IssueCode.INVALID_UNION, message=self.message, union_errors=failures)])

    def is_optional(self) -> bool:
        return any(option.is_optional() for option in self.options)


def _discriminant_values(schema: Schema) -> list[Any]:
    match schema:
        case LiteralSchema(value=value):
            return [value]
        case EnumSchema(options=options):
            return list(options)
        case NativeEnumSchema(enum_class=enum_class):
            return [*enum_class, *(member.value for member in enum_class)]
    raise SchemaDefinitionError(
        f"Discriminator fields must be literal or enum schemas, got {type(schema).__name__}"
    )


def _lookup_key(value: Any) -> tuple[type, Any]:
    # Keep True and 1 apart; 1 and 1.0 are the same number
    if is_number(value):
        return (float, value)
    return (type(value), value)


@dataclass(frozen=True, slots=True, eq=False)
class DiscriminatedUnionSchema(Schema):
    """
    Picks one object option by the value of its `discriminator` field.

    Selection is a dictionary lookup, not trial and error, so a failing
    branch reports its own issues in full.
    """

    discriminator: str
    options: tuple[ObjectSchema, ...]
    lookup: Mapping[tuple[type, Any], ObjectSchema]
    message: str | None = None

    @classmethod
    def create(
        cls,
        discriminator: str,
        options: Iterable[ObjectSchema],
        message: str | None = None,
    ) -> DiscriminatedUnionSchema:
        options = tuple(options)
        lookup: dict[tuple[type, Any], ObjectSchema] = {}
        for option in options:
            if not isinstance(option, ObjectSchema):
                raise SchemaDefinitionError(
                    f"Discriminated union options must be object schemas, "
                    f"got {type(option).__name__}"
                )
            field_schema = option.fields.get(discriminator)
            if field_schema is None:
                raise SchemaDefinitionError(
                    f"Option is missing discriminator field {discriminator!r}"
                )
            for value in _discriminant_values(field_schema):
                key = _lookup_key(value)
                if key in lookup:
                    raise SchemaDefinitionError(
                        f"Discriminator value {value!r} is used by more than one option"
                    )
                lookup[key] = option
        return cls(discriminator, options, MappingProxyType(lookup), message)

    @property
    def discriminants(self) -> list[Any]:
        return [value for (_, value) in self.lookup if not isinstance(value, Enum)]

    def _select(self, value: Any, ctx: ParseContext) -> ObjectSchema | Err:
        if not isinstance(value, Mapping):
            return Err([ctx.invalid_type("object", value, self.message)])
        tag = value.get(self.discriminator, MISSING)
        try:
            branch = self.lookup.get(_lookup_key(tag))
        except TypeError:
            branch = None
        if branch is None:
            return Err(
                [
                    ctx.issue(
                        IssueCode.INVALID_DISCRIMINATOR,
                        message=self.message,
                        path=(self.discriminator,),
                        options=self.discriminants,
                        received=tag,
                    )
                ]
            )
        return branch

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        branch = self._select(value, ctx)
        if isinstance(branch, Err):
            return branch
        return branch._parse(value, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        branch = self._select(value, ctx)
        if isinstance(branch, Err):
            return branch
        return await branch._parse_async(value, ctx)


_UNMERGEABLE = object()


def _merge_values(left: Any, right: Any) -> Any:
    if left is right:
        return left
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        merged = dict(left)
        for key, value in right.items():
            if key in merged:
                value = _merge_values(merged[key], value)
                if value is _UNMERGEABLE:
                    return _UNMERGEABLE
            merged[key] = value
        return merged
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return _UNMERGEABLE
        items = [_merge_values(a, b) for a, b in zip(left, right)]
        if any(item is _UNMERGEABLE for item in items):
            return _UNMERGEABLE
        return items
    if type(left) is type(right) and left == right:
        return left
    return _UNMERGEABLE


@dataclass(frozen=True, slots=True, eq=False)
class IntersectionSchema(Schema):
    """
    Both sides validate the same input independently.

    Issues from both sides are reported. When both succeed, their outputs
    are merged (mappings key by key); outputs that disagree produce an
    INVALID_INTERSECTION_TYPES issue.
    """

    left: Schema
    right: Schema

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        return self._merge(self.left._parse(value, ctx), self.right._parse(value, ctx), ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        left, right = await gather_owned(
            (self.left._parse_async(value, ctx), self.right._parse_async(value, ctx))
        )
        return self._merge(left, right, ctx)

    def _merge(self, left: ParseResult, right: ParseResult, ctx: ParseContext) -> ParseResult:
        issues = _gather_issues((left, right))
        if issues:
            return Err(issues)
        merged = _merge_values(left.value, right.value)
        if merged is _UNMERGEABLE:
            return Err([ctx.issue(IssueCode.INVALID_INTERSECTION_TYPES)])
        return Ok(merged)

    def is_optional(self) -> bool:
        return self.left.is_optional() and self.right.is_optional()


@dataclass(frozen=True, slots=True, eq=False)
class LazySchema(Schema):
    """
    Defers building a schema until parse time, for recursive definitions.

    Usage:
        category = object({
            "name": string(),
            "children": lazy(lambda: category).array(),
        })
    """

    getter: Callable[[], Schema]

    @property
    def schema(self) -> Schema:
        return self.getter()

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        return self.getter()._parse(value, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        return await self.getter()._parse_async(value, ctx)

    def is_optional(self) -> bool:
        return self.getter().is_optional()
