"""
Shape export for schemata.

Provides to_json_schema() and to_pydantic(), the structural descriptions of
a schema consumed by documentation, code generation and static tooling.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import ConfigDict, Field, create_model

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
from .context import UnknownKeys
from .core import Schema
from .effects import EffectsSchema, Preprocess
from .errors import SchemaDefinitionError
from .primitives import (
    AnySchema,
    BooleanSchema,
    Check,
    DateSchema,
    EnumSchema,
    LiteralSchema,
    NativeEnumSchema,
    NeverSchema,
    NoneSchema,
    NumberSchema,
    StringSchema,
)
from .wrappers import CatchSchema, DefaultSchema, NullableSchema, OptionalSchema, PipelineSchema

_STRING_FORMATS = {"email": "email", "url": "uri", "uuid": "uuid", "datetime": "date-time"}


def to_json_schema(schema: Schema) -> dict[str, Any]:
    """
    Describe the inputs a schema accepts as a JSON Schema dictionary.

    Object fields are listed in `required` unless they may be omitted
    (optional, default, catch). Recursive schemas built with lazy() are
    expressed through `$defs` and `$ref`.

    JSON has no date type. coerce.date() exports the ISO string and
    timestamp inputs it converts. A plain date() only accepts date objects,
    which no JSON value is; it exports the ISO date-time string those objects
    serialize to, so the descriptor states the wire form rather than an
    input parse() would take.

    Usage:
        to_json_schema(object({"name": string(), "age": number().int().optional()}))
        # {"type": "object", "properties": {...}, "required": ["name"]}
    """
    exporter = _JsonSchemaExporter()
    root = exporter.export(schema)
    if exporter.defs:
        root = {**root, "$defs": exporter.defs}
    return root


class _JsonSchemaExporter:
    def __init__(self) -> None:
        self.defs: dict[str, Any] = {}
        self.names: dict[int, str] = {}
        self.targets: list[Schema] = []  # keeps ids in `names` valid

    def export(self, schema: Schema) -> dict[str, Any]:
        match schema:
            case StringSchema():
                return self._string(schema)
            case NumberSchema():
                return self._number(schema)
            case BooleanSchema():
                return {"type": "boolean"}
            case DateSchema(coerce=True):
                return {"anyOf": [{"type": "string", "format": "date-time"}, {"type": "number"}]}
            case DateSchema():
                return {"type": "string", "format": "date-time"}
            case LiteralSchema(value=value):
                return {"const": value}
            case EnumSchema(options=options) | NativeEnumSchema(options=options):
                return {"enum": list(options)}
            case NoneSchema():
                return {"type": "null"}
            case NeverSchema():
                return {"not": {}}
            case AnySchema():
                return {}
            case ObjectSchema():
                return self._object(schema)
            case ArraySchema():
                return self._array(schema)
            case TupleSchema(items=items, rest=rest):
                node: dict[str, Any] = {
                    "type": "array",
                    "prefixItems": [self.export(item) for item in items],
                    "minItems": len(items),
                }
                if rest is None:
                    node["items"] = False
                else:
                    node["items"] = self.export(rest)
                return node
            case RecordSchema(values=values, keys=keys):
                node = {"type": "object", "additionalProperties": self.export(values)}
                if keys is not None:
                    node["propertyNames"] = self.export(keys)
                return node
            case UnionSchema(options=options):
                return {"anyOf": [self.export(option) for option in options]}
            case DiscriminatedUnionSchema(options=options):
                return {"oneOf": [self.export(option) for option in options]}
            case IntersectionSchema(left=left, right=right):
                return {"allOf": [self.export(left), self.export(right)]}
            case OptionalSchema(inner=inner):
                return self.export(inner)
            case NullableSchema(inner=inner):
                return {"anyOf": [self.export(inner), {"type": "null"}]}
            case DefaultSchema(inner=inner, factory=factory):
                return {**self.export(inner), "default": factory()}
            case CatchSchema():
                return {}
            case PipelineSchema(source=source):
                return self.export(source)
            case EffectsSchema(schema=inner, effect=effect):
                # Preprocess may turn any input into a valid one
                return {} if isinstance(effect, Preprocess) else self.export(inner)
            case LazySchema():
                return self._lazy(schema)
        raise SchemaDefinitionError(f"Cannot export {type(schema).__name__}")

    def _string(self, schema: StringSchema) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "string"}
        for check in schema.checks:
            if check.kind in ("min", "length"):
                node["minLength"] = max(node.get("minLength", 0), check.value)
            if check.kind in ("max", "length"):
                node["maxLength"] = min(node.get("maxLength", check.value), check.value)
            if check.kind in _STRING_FORMATS:
                node["format"] = _STRING_FORMATS[check.kind]
            if check.kind == "regex":
                node["pattern"] = check.value.pattern
        return node

    def _number(self, schema: NumberSchema) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "number"}
        for check in schema.checks:
            match check:
                case Check(kind="int"):
                    node["type"] = "integer"
                case Check(kind="min", inclusive=True):
                    node["minimum"] = check.value
                case Check(kind="min", inclusive=False):
                    node["exclusiveMinimum"] = check.value
                case Check(kind="max", inclusive=True):
                    node["maximum"] = check.value
                case Check(kind="max", inclusive=False):
                    node["exclusiveMaximum"] = check.value
                case Check(kind="multiple_of"):
                    node["multipleOf"] = check.value
        return node

    def _object(self, schema: ObjectSchema) -> dict[str, Any]:
        node: dict[str, Any] = {
            "type": "object",
            "properties": {key: self.export(value) for key, value in schema.fields.items()},
        }
        required = [key for key, value in schema.fields.items() if not value.is_optional()]
        if required:
            node["required"] = required
        if schema.catchall_schema is not None:
            node["additionalProperties"] = self.export(schema.catchall_schema)
        elif schema.unknown_keys is UnknownKeys.STRICT:
            node["additionalProperties"] = False
        return node

    def _array(self, schema: ArraySchema) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "array", "items": self.export(schema.element)}
        if schema.min_length is not None:
            node["minItems"] = schema.min_length
        if schema.max_length is not None:
            node["maxItems"] = schema.max_length
        return node

    def _lazy(self, schema: LazySchema) -> dict[str, Any]:
        target = schema.schema
        name = self.names.get(id(target))
        if name is None:
            name = f"Schema{len(self.names) + 1}"
            self.names[id(target)] = name
            self.targets.append(target)
            self.defs[name] = self.export(target)
        return {"$ref": f"#/$defs/{name}"}


def to_pydantic(name: str, schema: ObjectSchema) -> type:
    """
    Compile an object schema to a Pydantic model.

    Args:
        name: Name of the generated model class
        schema: object() schema; nested objects become nested models

    Returns:
        A Pydantic BaseModel subclass whose fields and optionality mirror the
        schema and whose `extra` setting follows its unknown-key policy.

    Usage:
        User = to_pydantic("User", object({
            "name": string(),
            "email": string().optional(),
        }))
        user = User(name="Alice")
    """
    if not isinstance(schema, ObjectSchema):
        raise SchemaDefinitionError("to_pydantic() requires an object schema")

    fields: dict[str, Any] = {}
    for key, field_schema in schema.fields.items():
        fields[key] = _extract_pydantic_field(f"{name}{_camel(key)}", field_schema)

    extra = {
        UnknownKeys.STRICT: "forbid",
        UnknownKeys.PASSTHROUGH: "allow",
    }.get(schema.unknown_keys, "ignore")
    if schema.catchall_schema is not None:
        extra = "allow"
    return create_model(name, __config__=ConfigDict(extra=extra), **fields)


def _camel(key: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in key.split("_"))


def _extract_pydantic_field(name: str, schema: Schema) -> tuple[Any, Any]:
    """Extract Pydantic field type and default from a field schema."""
    match schema:
        case DefaultSchema(inner=inner, factory=factory):
            return (_python_type(name, inner), Field(default_factory=factory))
        case CatchSchema(inner=inner, factory=factory):
            return (Optional[_python_type(name, inner)], Field(default_factory=factory))
    if schema.is_optional():
        return (Optional[_python_type(name, schema)], None)
    return (_python_type(name, schema), ...)


def _python_type(name: str, schema: Schema) -> Any:
    match schema:
        case StringSchema():
            return str
        case NumberSchema(checks=checks):
            return int if any(check.kind == "int" for check in checks) else float
        case BooleanSchema():
            return bool
        case DateSchema():
            return date
        case LiteralSchema(value=value):
            return Literal[value]
        case EnumSchema(options=options):
            return Literal[options]
        case NativeEnumSchema(enum_class=enum_class):
            return enum_class
        case NoneSchema():
            return type(None)
        case ObjectSchema():
            return to_pydantic(name, schema)
        case ArraySchema(element=element, non_empty=non_empty):
            item_type = _python_type(name, element)
            if non_empty:
                return Annotated[list[item_type], Field(min_length=1)]  # type: ignore[valid-type]
            return list[item_type]  # type: ignore[valid-type]
        case TupleSchema(items=items, rest=None):
            return tuple[tuple(_python_type(name, item) for item in items)]
        case RecordSchema(values=values):
            return dict[str, _python_type(name, values)]  # type: ignore[misc]
        case UnionSchema(options=options) | DiscriminatedUnionSchema(options=options):
            return Union[tuple(_python_type(f"{name}{i}", o) for i, o in enumerate(options))]
        case OptionalSchema(inner=inner) | DefaultSchema(inner=inner) | CatchSchema(inner=inner):
            return _python_type(name, inner)
        case NullableSchema(inner=inner):
            return Optional[_python_type(name, inner)]
        case PipelineSchema(source=source):
            return _python_type(name, source)
        case EffectsSchema():
            return _python_type(name, schema.inner_type())
    return Any
