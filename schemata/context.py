"""
Context manager for validation configuration (error map, unknown-key policy).
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Iterator

from .errors import SchemaDefinitionError
from .types import ErrorMap


class UnknownKeys(str, Enum):
    """What an object schema does with keys its shape does not declare."""

    STRIP = "strip"  # Drop them from the output
    STRICT = "strict"  # Report them as an issue
    PASSTHROUGH = "passthrough"  # Copy them through unvalidated

    @classmethod
    def coerce(cls, policy: UnknownKeys | str) -> UnknownKeys:
        try:
            return cls(policy)
        except ValueError:
            raise SchemaDefinitionError(
                f"Unknown-key policy must be one of "
                f"{[p.value for p in cls]}, got {policy!r}"
            ) from None


# Context variables for configuration
_error_map: ContextVar[ErrorMap | None] = ContextVar("error_map", default=None)
_unknown_keys: ContextVar[UnknownKeys] = ContextVar(
    "unknown_keys", default=UnknownKeys.STRIP
)


def current_error_map() -> ErrorMap | None:
    """Error map installed by the innermost validation_context, if any."""
    return _error_map.get()


def current_unknown_keys() -> UnknownKeys:
    """Policy for object schemas that did not choose one explicitly."""
    return _unknown_keys.get()


@contextmanager
def validation_context(
    *,
    error_map: ErrorMap | None = None,
    unknown_keys: UnknownKeys | str | None = None,
) -> Iterator[None]:
    """
    Context manager for validation configuration.

    Args:
        error_map: fn(code, context, default_message) -> str | None, used to
            word issues. Returning None keeps the default message. Messages set
            on a schema or constraint take precedence.
        unknown_keys: default policy for object schemas built without an
            explicit strict()/strip()/passthrough().

    Example:
        import schemata as s

        def french(code, context, default):
            if code == s.IssueCode.INVALID_TYPE and context["received"] == "missing":
                return "Obligatoire"
            return None

        with s.validation_context(error_map=french, unknown_keys="strict"):
            s.object({"name": s.string()}).safe_parse({"extra": 1})
    """
    tokens = []
    if error_map is not None:
        tokens.append((_error_map, _error_map.set(error_map)))
    if unknown_keys is not None:
        policy = UnknownKeys.coerce(unknown_keys)
        tokens.append((_unknown_keys, _unknown_keys.set(policy)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
