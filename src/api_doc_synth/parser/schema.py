"""Schema graph nodes shared by the declaration parsers.

Parsers build these fragments and render them with ``to_openapi()``; the
schema registry and the final document only hold the rendered dicts.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

REF_PREFIX = "#/components/schemas/"

STANDARD_TYPES = ("string", "number", "integer", "datetime", "date", "boolean", "any")


def ref(name: str) -> dict:
    return {"$ref": REF_PREFIX + name}


def ref_name(value: str) -> str:
    """``#/components/schemas/User`` -> ``User``."""
    return value.replace(REF_PREFIX, "")


def _compact(data: dict) -> dict:
    return {key: value for key, value in data.items() if value is not None}


class Reference(BaseModel):
    """Link to a named entry of the schema registry."""

    kind: Literal["ref"] = "ref"
    target: str
    overrides: dict = {}

    def to_openapi(self) -> dict:
        return {**ref(self.target), **self.overrides}


class Primitive(BaseModel):
    kind: Literal["primitive"] = "primitive"
    type: str  # string / number / integer / boolean / object
    format: str | None = None
    example: Any = None
    enum: list[str] | None = None
    nullable: bool | None = None
    overrides: dict = {}

    def to_openapi(self) -> dict:
        data = _compact({
            "type": self.type,
            "format": self.format or None,
            "example": self.example,
            "enum": self.enum,
            "nullable": self.nullable,
        })
        return {**data, **self.overrides}


class ObjectSchema(BaseModel):
    kind: Literal["object"] = "object"
    properties: dict[str, "SchemaFragment"] = {}
    required: list[str] = []
    description: str | None = None
    nullable: bool | None = None
    overrides: dict = {}

    def to_openapi(self) -> dict:
        data = {"type": "object", "properties": {k: v.to_openapi() for k, v in self.properties.items()}}
        if self.required:
            data["required"] = list(self.required)
        data.update(_compact({"description": self.description, "nullable": self.nullable}))
        return {**data, **self.overrides}


class ArraySchema(BaseModel):
    kind: Literal["array"] = "array"
    items: "SchemaFragment"
    nullable: bool | None = None
    overrides: dict = {}

    def to_openapi(self) -> dict:
        data = {"type": "array", "items": self.items.to_openapi()}
        data.update(_compact({"nullable": self.nullable}))
        return {**data, **self.overrides}


SchemaFragment = Annotated[
    Union[Reference, Primitive, ObjectSchema, ArraySchema],
    Field(discriminator="kind"),
]

ObjectSchema.model_rebuild()
ArraySchema.model_rebuild()


def resolve_type_name(type_name: str) -> Reference | Primitive:
    """Map a bare declared type name to a primitive or a registry reference.

    ``date``/``datetime`` become formatted strings, ``any`` points at the
    catch-all ``Any`` schema and unknown names are assumed to be schemas.
    """
    lowered = type_name.lower()
    if lowered == "datetime":
        return Primitive(type="string", format="date-time")
    if lowered == "date":
        return Primitive(type="string", format="date")
    if lowered == "any":
        return Reference(target="Any")
    if lowered in STANDARD_TYPES:
        return Primitive(type=lowered)
    return Reference(target=type_name)
