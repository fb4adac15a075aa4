"""
Issue records and the exceptions raised by schemata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from .types import Path


class IssueCode(str, Enum):
    """Machine-readable category of a validation issue."""

    INVALID_TYPE = "invalid_type"
    INVALID_LITERAL = "invalid_literal"
    CUSTOM = "custom"
    INVALID_UNION = "invalid_union"
    INVALID_DISCRIMINATOR = "invalid_discriminator"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    UNRECOGNIZED_KEYS = "unrecognized_keys"
    INVALID_STRING = "invalid_string"
    INVALID_DATE = "invalid_date"
    TOO_SMALL = "too_small"
    TOO_BIG = "too_big"
    INVALID_INTERSECTION_TYPES = "invalid_intersection_types"
    NOT_MULTIPLE_OF = "not_multiple_of"
    NOT_FINITE = "not_finite"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Issue:
    """
    One validation failure.

    `context` holds the code-specific fields, e.g. `expected` and `received`
    for INVALID_TYPE or `minimum`, `inclusive` and `type` for TOO_SMALL.
    """

    path: Path
    code: IssueCode
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": list(self.path),
            "code": self.code.value,
            "message": self.message,
            **{key: _plain(value) for key, value in self.context.items()},
        }


def _plain(value: Any) -> Any:
    if isinstance(value, Issue):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class SchemaError(ValueError):
    """
    Aggregated failure of one validation call.

    Carries every issue collected during the traversal, in the order the
    engine found them: object fields in declaration order, array items in
    index order.
    """

    def __init__(self, issues: Iterable[Issue]):
        self.issues: tuple[Issue, ...] = tuple(issues)
        if not self.issues:
            raise ValueError("SchemaError requires at least one issue")
        super().__init__(self._summary())

    def _summary(self) -> str:
        count = len(self.issues)
        lines = [f"{count} validation issue{'s' if count != 1 else ''}"]
        for issue in self.issues:
            where = ".".join(str(p) for p in issue.path) or "<root>"
            lines.append(f"  {where}: {issue.message} [{issue.code.value}]")
        return "\n".join(lines)

    @property
    def errors(self) -> list[dict[str, Any]]:
        return [issue.to_dict() for issue in self.issues]

    def flatten(self) -> dict[str, Any]:
        """
        Group messages by top-level field.

        Returns:
            {"form_errors": [...], "field_errors": {"name": [...], ...}}
            Root-level issues land in form_errors.
        """
        form_errors: list[str] = []
        field_errors: dict[str, list[str]] = {}
        for issue in self.issues:
            if issue.path:
                field_errors.setdefault(str(issue.path[0]), []).append(issue.message)
            else:
                form_errors.append(issue.message)
        return {"form_errors": form_errors, "field_errors": field_errors}

    def format(self) -> dict[str, Any]:
        """
        Nest messages along their paths.

        Usage:
            err.format()["user"]["email"]["_errors"]  # ["Invalid email"]
        """
        tree: dict[Any, Any] = {"_errors": []}
        for issue in self.issues:
            node = tree
            for key in issue.path:
                node = node.setdefault(key, {"_errors": []})
            node["_errors"].append(issue.message)
        return tree

    def __repr__(self) -> str:
        return f"SchemaError({list(self.issues)!r})"


class SchemaDefinitionError(TypeError):
    """A schema was built from incompatible parts."""


class AsyncRefinementError(RuntimeError):
    """A synchronous entry point reached an asynchronous effect."""


class ParseTimeoutError(TimeoutError):
    """An asynchronous parse did not finish before its deadline."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Parse did not complete within {timeout}s")
