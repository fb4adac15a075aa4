"""
schemata - runtime schema validation with a composable schema algebra.

Usage:
    import schemata as s

    user = s.object({
        "email": s.string().email(),
        "password": s.string().min(8),
        "tags": s.array(s.string()).optional(),
    })

    result = user.safe_parse(data)        # Ok(value) | Err(SchemaError)
    value = user.parse(data)              # raises SchemaError with every issue
    value = await user.parse_async(data)  # awaits async refinements

    admin = user.extend({"role": s.literal("admin")})
    patch = s.deep_partial(user)
"""

from . import coerce
from .composites import (
    ArraySchema,
    DiscriminatedUnionSchema,
    IntersectionSchema,
    LazySchema,
    ObjectSchema,
    RecordSchema,
    TupleSchema,
    UnionSchema,
)
from .compose import (
    deep_partial,
    extend,
    intersection,
    merge,
    omit,
    partial,
    pick,
    required,
)
from .context import UnknownKeys, validation_context
from .core import ParseContext, Schema, parse, parse_async, safe_parse, safe_parse_async
from .effects import EffectsSchema, IssueCollector, preprocess
from .errors import (
    AsyncRefinementError,
    Issue,
    IssueCode,
    ParseTimeoutError,
    SchemaDefinitionError,
    SchemaError,
)
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
from .schema import to_json_schema, to_pydantic
from .types import MISSING, Err, Ok, ParseResult, parsed_type
from .validators import (
    any,
    array,
    boolean,
    date,
    discriminated_union,
    enum,
    lazy,
    literal,
    native_enum,
    never,
    none,
    number,
    object,
    record,
    string,
    to_schema,
    tuple,
    union,
    unknown,
)
from .wrappers import (
    CatchSchema,
    DefaultSchema,
    NullableSchema,
    OptionalSchema,
    PipelineSchema,
)

# `any`, `object` and `tuple` are reachable as attributes but left out of
# __all__ so a star import does not shadow the builtins.
__all__ = [
    # Result types
    "Ok",
    "Err",
    "ParseResult",
    "MISSING",
    "parsed_type",
    # Errors
    "Issue",
    "IssueCode",
    "SchemaError",
    "SchemaDefinitionError",
    "AsyncRefinementError",
    "ParseTimeoutError",
    # Configuration
    "UnknownKeys",
    "validation_context",
    # Engine
    "Schema",
    "ParseContext",
    "parse",
    "safe_parse",
    "parse_async",
    "safe_parse_async",
    # Constructors
    "string",
    "number",
    "boolean",
    "date",
    "literal",
    "enum",
    "native_enum",
    "none",
    "unknown",
    "never",
    "array",
    "record",
    "union",
    "discriminated_union",
    "lazy",
    "preprocess",
    "to_schema",
    "coerce",
    # Composition
    "extend",
    "merge",
    "pick",
    "omit",
    "partial",
    "deep_partial",
    "required",
    "intersection",
    # Effects
    "IssueCollector",
    "EffectsSchema",
    # Schema nodes
    "StringSchema",
    "NumberSchema",
    "BooleanSchema",
    "DateSchema",
    "LiteralSchema",
    "EnumSchema",
    "NativeEnumSchema",
    "NoneSchema",
    "AnySchema",
    "UnknownSchema",
    "NeverSchema",
    "ObjectSchema",
    "ArraySchema",
    "TupleSchema",
    "RecordSchema",
    "UnionSchema",
    "DiscriminatedUnionSchema",
    "IntersectionSchema",
    "LazySchema",
    "OptionalSchema",
    "NullableSchema",
    "DefaultSchema",
    "CatchSchema",
    "PipelineSchema",
    # Export
    "to_json_schema",
    "to_pydantic",
]
