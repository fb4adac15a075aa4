"""
Wrapper nodes that change how a wrapped schema treats missing, null or
failing input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .core import ParseContext, Schema
from .types import MISSING, Err, Ok, ParseResult


@dataclass(frozen=True, slots=True, eq=False)
class OptionalSchema(Schema):
    """Accepts a missing key; anything else goes to the inner schema."""

    inner: Schema

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if value is MISSING:
            return Ok(MISSING)
        return self.inner._parse(value, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if value is MISSING:
            return Ok(MISSING)
        return await self.inner._parse_async(value, ctx)

    def is_optional(self) -> bool:
        return True

    def unwrap(self) -> Schema:
        return self.inner


@dataclass(frozen=True, slots=True, eq=False)
class NullableSchema(Schema):
    """Accepts None; anything else goes to the inner schema."""

    inner: Schema

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if value is None:
            return Ok(None)
        return self.inner._parse(value, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if value is None:
            return Ok(None)
        return await self.inner._parse_async(value, ctx)

    def is_optional(self) -> bool:
        return self.inner.is_optional()

    def unwrap(self) -> Schema:
        return self.inner


@dataclass(frozen=True, slots=True, eq=False)
class DefaultSchema(Schema):
    """Replaces a missing key with factory() before validating."""

    inner: Schema
    factory: Callable[[], Any]

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        if value is MISSING:
            value = self.factory()
        return self.inner._parse(value, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        if value is MISSING:
            value = self.factory()
        return await self.inner._parse_async(value, ctx)

    def is_optional(self) -> bool:
        return True

    def remove_default(self) -> Schema:
        return self.inner


@dataclass(frozen=True, slots=True, eq=False)
class CatchSchema(Schema):
    """Returns factory() instead of failing."""

    inner: Schema
    factory: Callable[[], Any]

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        result = self.inner._parse(value, ctx)
        if isinstance(result, Err):
            return Ok(self.factory())
        return result

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        result = await self.inner._parse_async(value, ctx)
        if isinstance(result, Err):
            return Ok(self.factory())
        return result

    def is_optional(self) -> bool:
        return True

    def remove_catch(self) -> Schema:
        return self.inner


@dataclass(frozen=True, slots=True, eq=False)
class PipelineSchema(Schema):
    """Validates with `source`, then validates its output with `target`."""

    source: Schema
    target: Schema

    def _parse(self, value: Any, ctx: ParseContext) -> ParseResult:
        result = self.source._parse(value, ctx)
        if isinstance(result, Err):
            return result
        return self.target._parse(result.value, ctx)

    async def _parse_async(self, value: Any, ctx: ParseContext) -> ParseResult:
        result = await self.source._parse_async(value, ctx)
        if isinstance(result, Err):
            return result
        return await self.target._parse_async(result.value, ctx)

    def is_optional(self) -> bool:
        return self.source.is_optional()
