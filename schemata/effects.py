"""
Effect nodes: preprocess, refinements and transforms.

Effects wrap a schema one at a time, so a chain like
`string().transform(str.strip).refine(bool)` nests as
Effects(refine, Effects(transform, string())) and runs in attachment order:
the refinement sees the stripped string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from .core import ParseContext, Schema, resolve
from .errors import Issue, IssueCode
from .types import Err, Ok, ParseResult, Path


class IssueCollector:
    """
    Issue sink handed to super_refine visitors.

    Owned by a single visitor call; the engine reads the collected issues once
    the visitor returns.

    Usage:
        def check_passwords(value, issues):
            if value["password"] != value["confirm"]:
                issues.add_issue("Passwords differ", path=("confirm",))

        schema.super_refine(check_passwords)
    """

    __slots__ = ("_ctx", "_issues")

    def __init__(self, ctx: ParseContext):
        self._ctx = ctx
        self._issues: list[Issue] = []

    @property
    def path(self) -> Path:
        """Path of the value being refined."""
        return self._ctx.path

    @property
    def issues(self) -> tuple[Issue, ...]:
        return tuple(self._issues)

    def add_issue(
        self,
        message: str | None = None,
        *,
        code: IssueCode | str = IssueCode.CUSTOM,
        path: Path = (),
        **context: Any,
    ) -> IssueCollector:
        """Record an issue at `path`, relative to the refined value."""
        self._issues.append(
            self._ctx.issue(IssueCode(code), message=message, path=tuple(path), **context)
        )
        return self

    def result(self, value: Any) -> ParseResult:
        return Err(list(self._issues)) if self._issues else Ok(value)


@dataclass(frozen=True, slots=True)
class Preprocess:
    fn: Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class Refinement:
    check: Callable[[Any], Any]
    message: str | None = None
    path: Path = ()
    params: Mapping[str, Any] = field(default_factory=dict)

    def apply(self, value: Any, ctx: ParseContext) -> ParseResult:
        return self._settle(value, ctx.run_sync(self.check, value), ctx)

    async def apply_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        return self._settle(value, await resolve(self.check(value)), ctx)

    def _settle(self, value: Any, passed: Any, ctx: ParseContext) -> ParseResult:
        if passed:
            return Ok(value)
        context = {"params": dict(self.params)} if self.params else {}
        return Err([ctx.issue(IssueCode.CUSTOM, message=self.message, path=self.path, **context)])


@dataclass(frozen=True, slots=True)
class SuperRefinement:
    visitor: Callable[[Any, IssueCollector], Any]

    def apply(self, value: Any, ctx: ParseContext) -> ParseResult:
        collector = IssueCollector(ctx)
        ctx.run_sync(self.visitor, value, collector)
        return collector.result(value)

    async def apply_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        collector = IssueCollector(ctx)
        await resolve(self.visitor(value, collector))
        return collector.result(value)


@dataclass(frozen=True, slots=True)
class Transform:
    fn: Callable[[Any], Any]

    def apply(self, value: Any, ctx: ParseContext) -> ParseResult:
        return Ok(ctx.run_sync(self.fn, value))

    async def apply_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        return Ok(await resolve(self.fn(value)))


Effect = Preprocess | Refinement | SuperRefinement | Transform


@dataclass(frozen=True, slots=True, eq=False)
class EffectsSchema(Schema):
    """
    A schema plus one effect.

    Preprocess runs on the raw input before `schema`; every other effect runs
    only when `schema` succeeded, so refinements and transforms never see a
    structurally invalid value.
    """

    schema: Schema
    effect: Effect

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if isinstance(self.effect, Preprocess):
            return self.schema._parse(ctx.run_sync(self.effect.fn, value), ctx)
        result = self.schema._parse(value, ctx)
        if isinstance(result, Err):
            return result
        return self.effect.apply(result.value, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if isinstance(self.effect, Preprocess):
            processed = await resolve(self.effect.fn(value))
            return await self.schema._parse_async(processed, ctx)
        result = await self.schema._parse_async(value, ctx)
        if isinstance(result, Err):
            return result
        return await self.effect.apply_async(result.value, ctx)

    def is_optional(self) -> bool:
        return self.schema.is_optional()

    def inner_type(self) -> Schema:
        """The innermost non-effect schema."""
        schema = self.schema
        while isinstance(schema, EffectsSchema):
            schema = schema.schema
        return schema


def preprocess(fn: Callable[[Any], Any], schema: Schema) -> Schema:
    """
    Run fn on the raw input, then validate its result with schema.

    Usage:
        preprocess(lambda v: v.split(",") if isinstance(v, str) else v, array(string()))
    """
    return EffectsSchema(schema, Preprocess(fn))
