"""
Core schema node and parse engine for schemata.

Every schema is an immutable node. A parse walks the node tree depth-first
with a ParseContext that records the current path; each node returns
Ok(value) or Err([Issue, ...]) and parents concatenate child issues in
declaration order. Nothing is shared between calls except the nodes.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Iterable

from .context import UnknownKeys, current_error_map, current_unknown_keys
from .errors import AsyncRefinementError, Issue, IssueCode, ParseTimeoutError, SchemaError
from .messages import default_message
from .types import MISSING, Err, ErrorMap, ParseResult, Path, PathKey, parsed_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParseContext:
    """Per-call traversal state: where we are and how to word issues."""

    path: Path = ()
    error_map: ErrorMap | None = None
    config_error_map: ErrorMap | None = None
    unknown_keys: UnknownKeys = UnknownKeys.STRIP
    is_async: bool = False

    @classmethod
    def start(cls, error_map: ErrorMap | None, is_async: bool) -> ParseContext:
        return cls(
            error_map=error_map,
            config_error_map=current_error_map(),
            unknown_keys=current_unknown_keys(),
            is_async=is_async,
        )

    def child(self, key: PathKey) -> ParseContext:
        return replace(self, path=(*self.path, key))

    def issue(
        self,
        code: IssueCode,
        *,
        message: str | None = None,
        path: Path = (),
        **context: Any,
    ) -> Issue:
        if message is None:
            message = self._word(code, context)
        return Issue(path=(*self.path, *path), code=code, message=message, context=context)

    def invalid_type(self, expected: str, value: Any, message: str | None = None) -> Issue:
        return self.issue(
            IssueCode.INVALID_TYPE,
            message=message,
            expected=expected,
            received=parsed_type(value),
        )

    def _word(self, code: IssueCode, context: dict[str, Any]) -> str:
        fallback = default_message(code, context)
        for error_map in (self.error_map, self.config_error_map):
            if error_map is not None:
                custom = error_map(code, context, fallback)
                if custom is not None:
                    return custom
        return fallback

    def run_sync(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Call a user callback, refusing anything that needs an event loop."""
        if inspect.iscoroutinefunction(fn):
            raise AsyncRefinementError(_ASYNC_USAGE.format(name=_name(fn)))
        outcome = fn(*args)
        if inspect.isawaitable(outcome):
            if inspect.iscoroutine(outcome):
                outcome.close()
            raise AsyncRefinementError(_ASYNC_USAGE.format(name=_name(fn)))
        return outcome


_ASYNC_USAGE = (
    "{name} is asynchronous; use parse_async() or safe_parse_async() "
    "instead of parse() or safe_parse()"
)


def _name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


async def resolve(outcome: Any) -> Any:
    """Await outcome if a user callback handed back an awaitable."""
    if inspect.isawaitable(outcome):
        return await outcome
    return outcome


async def gather_owned(coros: Iterable[Awaitable[Any]]) -> list[Any]:
    """
    Run sibling parses concurrently and return their results in order.

    If one of them raises (or the parse is cancelled), the siblings still
    pending are cancelled and awaited before the exception propagates, so no
    work outlives the call.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _finish(result: ParseResult) -> ParseResult:
    if isinstance(result, Err):
        error = SchemaError(result.error)
        logger.debug("Parse failed with %d issue(s)", len(error.issues))
        return Err(error)
    return result


class Schema:
    """
    Immutable schema node.

    Subclasses are frozen dataclasses implementing `_parse` (and `_parse_async`
    when they hold children or user callbacks). Every combinator returns a new
    node; nodes can be shared freely across threads and tasks.
    """

    __slots__ = ()

    # -- engine hooks ------------------------------------------------------

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        raise NotImplementedError

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        return self._parse(value, ctx)

    def is_optional(self) -> bool:
        """Whether an object may omit the key this schema validates."""
        return False

    # -- entry points ------------------------------------------------------

    def safe_parse(self, value: Any, *, error_map: ErrorMap | None = None) -> ParseResult:
        """
        Validate without raising for validation failures.

        Returns:
            Ok(output) if validation passes
            Err(SchemaError) carrying every issue otherwise

        Exceptions raised by refinement, transform or preprocess callbacks
        propagate unchanged.
        """
        ctx = ParseContext.start(error_map, is_async=False)
        return _finish(self._parse(value, ctx))

    def parse(self, value: Any, *, error_map: ErrorMap | None = None) -> Any:
        """Validate and return the output, raising one SchemaError on failure."""
        result = self.safe_parse(value, error_map=error_map)
        if isinstance(result, Err):
            raise result.error
        return result.value

    async def safe_parse_async(
        self,
        value: Any,
        *,
        error_map: ErrorMap | None = None,
        timeout: float | None = None,
    ) -> ParseResult:
        """
        Asynchronous safe_parse; awaits async preprocess/refine/transform steps.

        Raises:
            ParseTimeoutError: if `timeout` seconds pass before completion
        """
        ctx = ParseContext.start(error_map, is_async=True)
        if timeout is None:
            return _finish(await self._parse_async(value, ctx))
        try:
            result = await asyncio.wait_for(self._parse_async(value, ctx), timeout=timeout)
        except asyncio.TimeoutError:
            logger.debug("Parse timed out after %ss", timeout)
            raise ParseTimeoutError(timeout) from None
        return _finish(result)

    async def parse_async(
        self,
        value: Any,
        *,
        error_map: ErrorMap | None = None,
        timeout: float | None = None,
    ) -> Any:
        result = await self.safe_parse_async(value, error_map=error_map, timeout=timeout)
        if isinstance(result, Err):
            raise result.error
        return result.value

    # -- wrappers ----------------------------------------------------------

    def optional(self) -> Schema:
        from .wrappers import OptionalSchema

        return OptionalSchema(self)

    def nullable(self) -> Schema:
        from .wrappers import NullableSchema

        return NullableSchema(self)

    def nullish(self) -> Schema:
        return self.nullable().optional()

    def default(self, value: Any = MISSING, *, factory: Callable[[], Any] | None = None) -> Schema:
        """
        Substitute a value when the key is missing.

        Usage:
            string().default("anonymous")
            array(string()).default(factory=list)
        """
        from .wrappers import DefaultSchema

        return DefaultSchema(self, _factory(value, factory, "default"))

    def catch(self, value: Any = MISSING, *, factory: Callable[[], Any] | None = None) -> Schema:
        """Return a fallback value instead of failing."""
        from .wrappers import CatchSchema

        return CatchSchema(self, _factory(value, factory, "catch"))

    def pipe(self, target: Schema) -> Schema:
        """Feed this schema's output into another schema."""
        from .wrappers import PipelineSchema

        return PipelineSchema(self, target)

    def array(self) -> Schema:
        from .composites import ArraySchema

        return ArraySchema(self)

    def or_(self, other: Any) -> Schema:
        from .composites import UnionSchema
        from .validators import to_schema

        return UnionSchema((self, to_schema(other)))

    def and_(self, other: Any) -> Schema:
        from .compose import intersection

        return intersection(self, other)

    def __or__(self, other: Any) -> Schema:
        """
        Union with `|`.

        Usage:
            string() | number()
        """
        return self.or_(other)

    def __ror__(self, other: Any) -> Schema:
        from .validators import to_schema

        return to_schema(other).or_(self)

    def __and__(self, other: Any) -> Schema:
        """Intersection with `&`: both sides must accept the value."""
        return self.and_(other)

    def __rand__(self, other: Any) -> Schema:
        from .validators import to_schema

        return to_schema(other).and_(self)

    # -- effects -----------------------------------------------------------

    def refine(
        self,
        check: Callable[[Any], Any],
        message: str | None = None,
        *,
        path: Path = (),
        **params: Any,
    ) -> Schema:
        """
        Add a predicate that runs once the value is structurally valid.

        A falsy result appends one CUSTOM issue at `path` (relative to this
        schema). `check` may be a coroutine function; such schemas must be
        parsed with parse_async()/safe_parse_async().

        Usage:
            string().refine(lambda s: s.isalpha(), "Letters only")
            obj.refine(lambda d: d["a"] == d["b"], "Must match", path=("b",))
        """
        from .effects import EffectsSchema, Refinement

        return EffectsSchema(self, Refinement(check, message, tuple(path), params))

    def super_refine(self, visitor: Callable[[Any, Any], Any]) -> Schema:
        """
        Add a visitor that may report any number of issues.

        The visitor receives the validated value and an IssueCollector. Its
        return value is ignored: it cannot replace the output.
        """
        from .effects import EffectsSchema, SuperRefinement

        return EffectsSchema(self, SuperRefinement(visitor))

    def transform(self, fn: Callable[[Any], Any]) -> Schema:
        """Replace the validated output with fn(output)."""
        from .effects import EffectsSchema, Transform

        return EffectsSchema(self, Transform(fn))


def _factory(
    value: Any, factory: Callable[[], Any] | None, name: str
) -> Callable[[], Any]:
    if factory is not None:
        if value is not MISSING:
            raise TypeError(f"{name}() takes a value or a factory, not both")
        return factory
    if value is MISSING:
        raise TypeError(f"{name}() requires a value or a factory")
    return lambda: copy.deepcopy(value)


# Functional entry points


def parse(schema: Schema, value: Any, *, error_map: ErrorMap | None = None) -> Any:
    return schema.parse(value, error_map=error_map)


def safe_parse(schema: Schema, value: Any, *, error_map: ErrorMap | None = None) -> ParseResult:
    return schema.safe_parse(value, error_map=error_map)


async def parse_async(
    schema: Schema,
    value: Any,
    *,
    error_map: ErrorMap | None = None,
    timeout: float | None = None,
) -> Any:
    return await schema.parse_async(value, error_map=error_map, timeout=timeout)


async def safe_parse_async(
    schema: Schema,
    value: Any,
    *,
    error_map: ErrorMap | None = None,
    timeout: float | None = None,
) -> ParseResult:
    return await schema.safe_parse_async(value, error_map=error_map, timeout=timeout)
