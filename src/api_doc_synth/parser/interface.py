"""Interface declaration parser.

A small line-scanning state machine: an interface header opens a body,
property lines accumulate into the innermost open body, ``}`` closes it.
Inline object members (``address: {``) open nested bodies. After scanning,
``extends`` lists are resolved against interfaces from the same source and
the schemas passed in by the caller.
"""

import re

from api_doc_synth.example import example_for
from api_doc_synth.parser.schema import (
    ArraySchema,
    ObjectSchema,
    Primitive,
    Reference,
    resolve_type_name,
)

_HEADER_RE = re.compile(r"^(?:export\s+)?(?:default\s+)?interface\s+(\w+)(?:\s+extends\s+([^{]+))?")
_PROPERTY_RE = re.compile(r"^(?:readonly\s+)?['\"]?([\w$]+)['\"]?\s*(\?)?\s*:\s*(.*?)\s*[;,]?$")
_COMMENT_PREFIXES = ("//", "/*", "*")


class _Body:
    """Accumulator for one (possibly nested) object body."""

    def __init__(self, name: str = "", extends: list[str] | None = None):
        self.name = name
        self.extends = extends or []
        self.properties: dict[str, object] = {}
        self.required: list[str] = []


def parse_extends(text: str | None) -> list[str]:
    """``Base<T>, models/User.ts`` -> ``["Base", "User"]``."""
    if not text:
        return []
    text = re.sub(r"<[^<>]*>", "", text)
    names = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        names.append(re.sub(r"\.ts$", "", item.split("/")[-1]))
    return names


def _clean_name(base: str) -> str:
    return re.sub(r"^[#@]", "", re.sub(r"\.ts$", "", base.split("/")[-1]))


def lookup_schema(base: str, schemas: dict) -> dict | None:
    """Find the registry entry an ``extends`` name refers to.

    Tries the exact name, then the name without path/extension decoration,
    then ``Model`` suffix and singular/plural variants. Only entries with
    properties count.
    """
    def usable(name):
        entry = schemas.get(name)
        return entry if entry and entry.get("properties") is not None else None

    found = usable(base)
    if found:
        return found
    clean = _clean_name(base)
    if not clean:
        return None
    variants = [
        clean,
        f"#models/{clean}",
        re.sub(r"Model$", "", clean),
        f"{clean}Model",
        clean[:-1] if clean.endswith("s") else f"{clean}s",
    ]
    for variant in variants:
        found = usable(variant)
        if found:
            return found
    return None


def _split_members(text: str) -> list[str]:
    members, depth, current = [], 0, ""
    for char in text:
        if char in "{<(":
            depth += 1
        elif char in "}>)":
            depth -= 1
        if char in ";," and depth == 0:
            members.append(current)
            current = ""
        else:
            current += char
    members.append(current)
    return [member.strip() for member in members if member.strip()]


def resolve_property(type_text: str, field: str):
    """Turn a property's declared type text into a schema fragment."""
    type_text = type_text.strip().rstrip(";,").strip()
    nullable = None

    if type_text.startswith("{") and type_text.endswith("}"):
        body = _Body()
        for member in _split_members(type_text[1:-1]):
            _add_property(body, member, required_marker=False)
        return _body_to_fragment(body)

    if "|" in type_text:
        options = [t.strip() for t in type_text.split("|")]
        if "null" in options:
            nullable = True
        options = [t for t in options if t not in ("null", "undefined", "")]
        literals = [t[1:-1] for t in options if len(t) > 1 and t[0] == t[-1] and t[0] in "'\""]
        if options and len(literals) == len(options):
            return Primitive(type="string", enum=literals, example=literals[0], nullable=nullable)
        type_text = options[0] if options else "string"

    is_array = False
    generic_array = re.match(r"^Array<(.+)>$", type_text)
    if generic_array:
        type_text, is_array = generic_array.group(1).strip(), True
    elif type_text.endswith("[]"):
        type_text, is_array = type_text[:-2].strip(), True

    typeof = re.search(r"typeof\s+(\w+)", type_text)
    if typeof:
        fragment = Reference(target=typeof.group(1))
    elif type_text.startswith("Record<"):
        fragment = ObjectSchema()
    else:
        fragment = resolve_type_name(type_text or "string")
        if isinstance(fragment, Primitive):
            fragment.example = example_for(field, fragment.format if fragment.format else fragment.type)
            fragment.nullable = nullable if not is_array else None

    if is_array:
        return ArraySchema(items=fragment, nullable=nullable)
    if nullable and isinstance(fragment, Reference):
        fragment.overrides = {"nullable": True}
    return fragment


def _add_property(body: _Body, line: str, required_marker: bool) -> bool:
    match = _PROPERTY_RE.match(line)
    if not match:
        return False
    name, optional, type_text = match.groups()
    if not type_text:
        return False
    body.properties[name] = resolve_property(type_text, name)
    if (required_marker or not optional) and name not in body.required:
        body.required.append(name)
    return True


def _body_to_fragment(body: _Body) -> ObjectSchema:
    return ObjectSchema(properties=body.properties, required=body.required)


def _scan(source: str) -> dict[str, _Body]:
    lines = [line.strip() for line in source.replace("\t", "").splitlines()]
    lines = [line for line in lines if line]

    definitions: dict[str, _Body] = {}
    stack: list[_Body] = []
    pending: list[tuple[_Body, str, bool]] = []  # (parent, member name, optional)

    for index, line in enumerate(lines):
        header = _HEADER_RE.match(line)
        if header and not stack:
            body = _Body(header.group(1), parse_extends(header.group(2)))
            definitions[body.name] = body
            rest = line[header.end():]
            if not line.rstrip(";").endswith("}"):
                stack.append(body)
            elif "{" in rest:
                # body opened and closed on the header line
                for member in _split_members(rest[rest.find("{") + 1:rest.rfind("}")]):
                    _add_property(body, member, required_marker=False)
            continue
        if not stack:
            continue

        if line.startswith("}"):
            closed = stack.pop()
            if pending and stack and pending[-1][0] is stack[-1]:
                parent, member, optional = pending.pop()
                parent.properties[member] = _body_to_fragment(closed)
                if not optional and member not in parent.required:
                    parent.required.append(member)
            continue
        if line.startswith(_COMMENT_PREFIXES):
            continue

        current = stack[-1]
        previous = lines[index - 1] if index > 0 else ""
        nested = re.match(r"^(?:readonly\s+)?['\"]?([\w$]+)['\"]?\s*(\?)?\s*:\s*\{$", line)
        if nested:
            pending.append((current, nested.group(1), bool(nested.group(2))))
            stack.append(_Body())
            continue
        _add_property(current, line, required_marker="@required" in previous)

    return definitions


def parse_interfaces(source: str, schemas: dict | None = None) -> dict[str, dict]:
    """Parse every interface in ``source`` into an object schema.

    Inherited properties are merged first and overridden by the interface's
    own ones; required sets are unioned. An ``extends`` name that resolves
    nowhere contributes nothing.
    """
    schemas = schemas or {}
    definitions = _scan(source)
    resolved: dict[str, dict] = {}

    def resolve(name: str, visiting: tuple) -> dict:
        if name in resolved:
            return resolved[name]
        body = definitions[name]
        properties: dict[str, dict] = {}
        required: list[str] = []
        for base in body.extends:
            if base in definitions and base not in visiting and base != name:
                base_schema = resolve(base, (*visiting, name))
            else:
                base_schema = lookup_schema(base, {**schemas, **resolved})
            if not base_schema:
                continue
            properties.update(base_schema.get("properties") or {})
            for field in base_schema.get("required") or []:
                if field not in required:
                    required.append(field)

        for field, fragment in body.properties.items():
            properties[field] = fragment.to_openapi()
        for field in body.required:
            if field not in required:
                required.append(field)

        extends = f" extends {', '.join(body.extends)}" if body.extends else ""
        schema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        schema["description"] = f"{name}{extends} (Interface)"
        resolved[name] = schema
        return schema

    for name in definitions:
        resolve(name, ())
    return {name: resolved[name] for name in definitions}
