"""Model class parser.

Scans a model source file line by line and turns ``declare``/``public``
property declarations and getters into an object schema. Lines that do not
look like a declaration are skipped; the parser never raises.
"""

import json
import re

from pydantic import BaseModel

from api_doc_synth.example import DATETIME_EXAMPLE, coerce_example, example_for
from api_doc_synth.parser.schema import ArraySchema, Primitive, Reference, resolve_type_name
from api_doc_synth.text import get_between_brackets, snake_case, split_list

RELATION_MARKERS = ("HasMany", "ManyToMany", "HasManyThrough")
SOFT_DELETE_MARKERS = ("@swagger-softdelete", "SoftDeletes")
HIDDEN_MARKERS = ("serializeAs: null", "@no-swagger")
SKIP_PREFIXES = ("//", "/*", "*", "public static ", "private static ", "static ")
MARKER_PREFIXES = ("@", "//", "/*", "*")
FORCED_FORMATS = {"email": "email", "password": "password"}

_CLASS_RE = re.compile(r"^(?:export\s+)?(?:default\s+)?class\s+(\w+)")
_GETTER_RE = re.compile(r"^(?:public\s+)?get\s+(\w+)\s*\(\s*\)\s*(?::\s*([^{]+))?")
_FIELD_RE = re.compile(r"^(?:public\s+declare\s+|declare\s+public\s+|public\s+|declare\s+)(\w+)\s*[?!]?\s*(?::\s*(.*))?$")


class ParsedModel(BaseModel):
    name: str = ""
    properties: dict[str, dict] = {}
    required: list[str] = []


def _clean_type(type_text: str) -> str:
    type_text = type_text.split("//")[0]
    type_text = re.split(r"\s=\s|=(?!>)", type_text)[0]
    type_text = type_text.replace(";", "").replace("{", "").strip()
    if "|" in type_text and "typeof" not in type_text:
        options = [t.strip() for t in type_text.split("|")]
        options = [t for t in options if t not in ("null", "undefined", "")]
        type_text = options[0] if options else "string"
    return type_text or "string"


def _markers(lines: list[str], index: int) -> str:
    """The contiguous decorator/comment lines right above ``lines[index]``."""
    collected = []
    position = index - 1
    while position >= 0 and lines[position].startswith(MARKER_PREFIXES):
        collected.append(lines[position])
        position -= 1
    return "\n".join(reversed(collected))


def _declaration(line: str) -> tuple[str, str] | None:
    getter = _GETTER_RE.match(line)
    if getter:
        return getter.group(1), getter.group(2) or ""
    field = _FIELD_RE.match(line)
    if field:
        return field.group(1), field.group(2) or ""
    return None


def _example_override(markers: str, type_name: str):
    return coerce_example(get_between_brackets(markers, "example"), type_name)


def parse_model(source: str, make_snake_case: bool = True) -> ParsedModel:
    lines = [line.strip() for line in source.replace("\t", "").splitlines()]
    lines = [line for line in lines if line]

    name = ""
    soft_delete = False
    properties: dict[str, dict] = {}
    required: list[str] = []

    for index, line in enumerate(lines):
        header = _CLASS_RE.match(line)
        if header and not name:
            name = header.group(1)
        if any(marker in line for marker in SOFT_DELETE_MARKERS):
            soft_delete = True
        if line.startswith(SKIP_PREFIXES):
            continue

        declaration = _declaration(line)
        if declaration is None:
            continue
        field, type_text = declaration
        markers = _markers(lines, index)
        if any(marker in markers for marker in HIDDEN_MARKERS):
            continue

        if make_snake_case:
            field = snake_case(field)
        type_text = _clean_type(type_text)

        is_array = any(marker in line for marker in RELATION_MARKERS)
        typeof = re.search(r"typeof\s+(\w+)", type_text)
        if typeof:
            fragment = Reference(target=typeof.group(1))
        else:
            if type_text.endswith("[]"):
                is_array = True
                type_text = type_text[:-2]
            fragment = resolve_type_name(type_text)

        enums = split_list(get_between_brackets(markers, "enum")) if "@enum" in markers else []
        if field in FORCED_FORMATS:
            fragment = Primitive(type="string", format=FORCED_FORMATS[field])
        if enums:
            fragment = Primitive(type="string", enum=enums)
        if isinstance(fragment, Primitive):
            if "@format" in markers and get_between_brackets(markers, "format"):
                fragment.format = get_between_brackets(markers, "format")
            if enums:
                fragment.example = enums[0]
            elif "@example" in markers:
                fragment.example = _example_override(markers, fragment.type)
            else:
                fragment.example = example_for(field, fragment.format if fragment.format in ("date", "date-time") else fragment.type)

        schema = ArraySchema(items=fragment).to_openapi() if is_array else fragment.to_openapi()
        if "@props" in markers:
            raw = get_between_brackets(markers.replace("@props", "props"), "props")
            try:
                extra = json.loads(raw)
            except json.JSONDecodeError:
                extra = {}
            if isinstance(extra, dict):
                schema.update(extra)
        properties[field] = schema

        if "@required" in markers and field not in required:
            required.append(field)

    if soft_delete:
        properties["deleted_at" if make_snake_case else "deletedAt"] = {
            "type": "string",
            "format": "date-time",
            "example": DATETIME_EXAMPLE,
        }

    return ParsedModel(name=name, properties=properties, required=required)
