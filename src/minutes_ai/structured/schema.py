"""Declarative schema descriptors for structured LLM output.

A descriptor is a small tree of tagged nodes (object, array, enum,
primitive) written by hand for each output shape. The same tree serves two
purposes:

- render_schema() turns it into the contract text embedded verbatim in the
  system prompt.
- check_schema() walks a parsed JSON value and reports every structural
  mismatch as a "path: problem" diagnostic.

StructuredSchema pairs a descriptor with an optional Pydantic model that
enforces value-level constraints (regex, bounds) and produces typed objects.

Exports:
    ObjectSchema, ArraySchema, EnumSchema, PrimitiveSchema, Field: Nodes.
    StructuredSchema: Descriptor + model used by StructuredOutputClient.
    render_schema: Descriptor -> prompt contract text.
    check_schema: Descriptor + value -> list of diagnostics.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ValidationError

T = TypeVar("T")

PrimitiveType = Literal["string", "number", "integer", "boolean"]

_INDENT = "  "


# ── Descriptor Nodes ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PrimitiveSchema:
    """A JSON scalar: string, number, integer or boolean."""

    kind: ClassVar[str] = "primitive"

    type: PrimitiveType


@dataclass(frozen=True)
class EnumSchema:
    """A closed set of literal values."""

    kind: ClassVar[str] = "enum"

    values: tuple[str, ...]


@dataclass(frozen=True)
class ArraySchema:
    """A homogeneous JSON array."""

    kind: ClassVar[str] = "array"

    items: SchemaNode


@dataclass(frozen=True)
class Field:
    """A named member of an ObjectSchema."""

    name: str
    schema: SchemaNode
    optional: bool = False
    description: str | None = None


@dataclass(frozen=True)
class ObjectSchema:
    """A JSON object with a fixed set of known fields.

    Keys not listed in ``fields`` are tolerated and ignored by check_schema.
    """

    kind: ClassVar[str] = "object"

    fields: tuple[Field, ...] = field(default_factory=tuple)


SchemaNode = Union[ObjectSchema, ArraySchema, EnumSchema, PrimitiveSchema]


def string() -> PrimitiveSchema:
    return PrimitiveSchema("string")


def integer() -> PrimitiveSchema:
    return PrimitiveSchema("integer")


def number() -> PrimitiveSchema:
    return PrimitiveSchema("number")


def boolean() -> PrimitiveSchema:
    return PrimitiveSchema("boolean")


# ── Rendering ────────────────────────────────────────────────────────────────


def render_schema(node: SchemaNode, depth: int = 0) -> str:
    """Render a descriptor as human-readable contract text.

    Objects render one field per line as ``"name": type``, suffixed with
    ``(optional)`` where applicable. Arrays render as ``Array<item>`` and
    enums as ``"a" | "b"``.
    """
    if isinstance(node, ObjectSchema):
        if not node.fields:
            return "{}"
        pad = _INDENT * (depth + 1)
        lines = []
        last = len(node.fields) - 1
        for i, f in enumerate(node.fields):
            line = f'{pad}"{f.name}": {render_schema(f.schema, depth + 1)}'
            if f.optional:
                line += " (optional)"
            if i < last:
                line += ","
            if f.description:
                line += f"  // {f.description}"
            lines.append(line)
        return "{\n" + "\n".join(lines) + "\n" + _INDENT * depth + "}"

    if isinstance(node, ArraySchema):
        return f"Array<{render_schema(node.items, depth)}>"

    if isinstance(node, EnumSchema):
        return " | ".join(json.dumps(v, ensure_ascii=False) for v in node.values)

    if isinstance(node, PrimitiveSchema):
        return node.type

    raise TypeError(f"Unsupported schema node: {node!r}")


# ── Structural Check ─────────────────────────────────────────────────────────


def check_schema(node: SchemaNode, value: Any, path: str = "$") -> list[str]:
    """Return every structural mismatch between ``value`` and ``node``.

    An empty list means the value conforms. Optional fields may be absent
    or null; required fields must be present and non-null.
    """
    if isinstance(node, ObjectSchema):
        if not isinstance(value, dict):
            return [f"{path}: expected object, got {_json_type(value)}"]
        issues: list[str] = []
        for f in node.fields:
            member = value.get(f.name)
            if member is None:
                if not f.optional:
                    issues.append(f"{path}.{f.name}: required field is missing")
                continue
            issues.extend(check_schema(f.schema, member, f"{path}.{f.name}"))
        return issues

    if isinstance(node, ArraySchema):
        if not isinstance(value, list):
            return [f"{path}: expected array, got {_json_type(value)}"]
        issues = []
        for i, item in enumerate(value):
            issues.extend(check_schema(node.items, item, f"{path}[{i}]"))
        return issues

    if isinstance(node, EnumSchema):
        if value not in node.values:
            allowed = ", ".join(node.values)
            return [f"{path}: expected one of [{allowed}], got {value!r}"]
        return []

    if isinstance(node, PrimitiveSchema):
        if not _matches_primitive(node.type, value):
            return [f"{path}: expected {node.type}, got {_json_type(value)}"]
        return []

    raise TypeError(f"Unsupported schema node: {node!r}")


def _matches_primitive(type_name: str, value: Any) -> bool:
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "boolean":
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if type_name == "number":
        return isinstance(value, (int, float))
    if type_name == "integer":
        return isinstance(value, int) or (
            isinstance(value, float) and value.is_integer()
        )
    return False


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


# ── StructuredSchema ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SchemaValidation(Generic[T]):
    """Outcome of StructuredSchema.validate."""

    value: T | None
    diagnostics: list[str]

    @property
    def ok(self) -> bool:
        return not self.diagnostics


@dataclass(frozen=True)
class StructuredSchema(Generic[T]):
    """An output contract: descriptor for the prompt, validators for the reply.

    Args:
        descriptor: Hand-written description of the expected JSON shape.
        model: Optional Pydantic model; when set, validated values are
            returned as instances of it.
        name: Label used in logs.
    """

    descriptor: SchemaNode
    model: type[BaseModel] | None = None
    name: str = "output"

    def render(self) -> str:
        return render_schema(self.descriptor)

    def validate(self, value: Any) -> SchemaValidation[T]:
        issues = check_schema(self.descriptor, value)
        if issues:
            return SchemaValidation(value=None, diagnostics=issues)

        if self.model is None:
            return SchemaValidation(value=value, diagnostics=[])

        try:
            return SchemaValidation(
                value=self.model.model_validate(value), diagnostics=[]
            )
        except ValidationError as exc:
            return SchemaValidation(
                value=None,
                diagnostics=[
                    "$." + ".".join(str(p) for p in err["loc"]) + f": {err['msg']}"
                    for err in exc.errors()
                ],
            )
