"""Example value synthesis.

Produces plausible example literals from declared type names, field names
and validator rule names, and expands registry schemas into example
payloads. Everything here is deterministic.
"""

import copy
import json
import re

from api_doc_synth.parser.schema import STANDARD_TYPES, ref, ref_name, resolve_type_name
from api_doc_synth.text import get_between_brackets, snake_case, split_list

DATETIME_EXAMPLE = "2021-03-23T16:13:08.489+01:00"
DATE_EXAMPLE = "2021-03-23"
NUMBER_EXAMPLE = 42
GENERIC_EXAMPLE = "string"

FIELD_EXAMPLES = {
    "id": 1,
    "uuid": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
    "datetime": DATETIME_EXAMPLE,
    "date": DATE_EXAMPLE,
    "title": "Lorem Ipsum",
    "year": 2023,
    "description": "Lorem ipsum dolor sit amet",
    "name": "John Doe",
    "full_name": "John Doe",
    "first_name": "John",
    "last_name": "Doe",
    "username": "johndoe",
    "email": "johndoe@example.com",
    "phone": "+1-202-555-0143",
    "address": "1028 Farland Street",
    "street": "1028 Farland Street",
    "country": "United States of America",
    "country_code": "US",
    "zip": 60617,
    "city": "Chicago",
    "password": "S3cur3P4s5word!",
    "password_confirmation": "S3cur3P4s5word!",
    "lat": 41.745161,
    "long": -87.712784,
    "price": 9.99,
    "amount": 100,
    "quantity": 1,
    "slug": "lorem-ipsum",
    "url": "https://example.com",
    "token": "oat_MTA.c2VjcmV0",
}

# (predicate on the snake_cased field name, example); first hit wins
FIELD_PATTERNS = [
    (lambda f: f.startswith(("is_", "has_", "can_")), True),
    (lambda f: f.endswith("_at"), DATETIME_EXAMPLE),
    (lambda f: f.endswith("_date"), DATE_EXAMPLE),
    (lambda f: f.endswith("_id"), 1),
    (lambda f: "email" in f, "johndoe@example.com"),
    (lambda f: "url" in f, "https://example.com"),
    (lambda f: "price" in f or "amount" in f, 9.99),
]

VALIDATOR_RULE_EXAMPLES = {
    "email": "user@example.com",
    "url": "https://example.com",
    "uri": "https://example.com",
    "uuid": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
    "date-time": DATETIME_EXAMPLE,
    "date": DATE_EXAMPLE,
    "ip": "127.0.0.1",
    "ipv4": "127.0.0.1",
}


def example_by_type(type_name: str | None):
    """Example for a primitive type name, ``None`` for anything else."""
    t = (type_name or "").lower()
    if t == "string":
        return FIELD_EXAMPLES["title"]
    if t in ("number", "integer"):
        return NUMBER_EXAMPLE
    if t == "float":
        return 1.5
    if t == "boolean":
        return True
    if t in ("datetime", "date-time"):
        return DATETIME_EXAMPLE
    if t == "date":
        return DATE_EXAMPLE
    if t == "object":
        return {}
    if t == "array":
        return []
    return None


def lookup_field_example(field: str):
    """Heuristic example for a field name, ``None`` when nothing matches."""
    if not field:
        return None
    for key in (field, field.lower(), snake_case(field)):
        if key in FIELD_EXAMPLES:
            return FIELD_EXAMPLES[key]
    name = snake_case(field).lower()
    for predicate, example in FIELD_PATTERNS:
        if predicate(name):
            return example
    return None


def example_by_field(field: str):
    hit = lookup_field_example(field)
    return GENERIC_EXAMPLE if hit is None else hit


def example_by_validator_rule(rule: str):
    return VALIDATOR_RULE_EXAMPLES.get(rule, "Some string")


def coerce_example(raw: str, type_name: str | None):
    """Convert a textual ``@example(...)`` value to the declared type when it parses."""
    t = (type_name or "").lower()
    if t in ("number", "integer", "float"):
        try:
            return int(raw)
        except ValueError:
            try:
                return float(raw)
            except ValueError:
                return raw
    if t == "boolean" and raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    return raw


def _kind(value) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def example_for(field: str, type_name: str | None):
    """Example for a typed field.

    The declared type decides the kind of value; a field-name example of the
    same kind is more specific and wins.
    """
    typed = example_by_type(type_name)
    hit = lookup_field_example(field)
    if hit is not None and (typed is None or _kind(hit) == _kind(typed)):
        return hit
    return typed if typed is not None else example_by_field(field)


def pagination_interface() -> dict:
    """The built-in ``PaginationMeta`` schema used by ``.paginated()`` refs."""
    fields = {
        "total": 100,
        "perPage": 10,
        "currentPage": 3,
        "lastPage": 10,
        "firstPage": 1,
        "lastPageUrl": "/?page=10",
        "firstPageUrl": "/?page=1",
        "nextPageUrl": "/?page=4",
        "previousPageUrl": "/?page=2",
    }
    return {
        "PaginationMeta": {
            "type": "object",
            "properties": {
                name: {"type": "number" if isinstance(value, int) else "string", "example": value, "nullable": False}
                for name, value in fields.items()
            },
        }
    }


def _json_type(value) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return "string"


class ExampleGenerator:
    """Resolves ``<Type>`` references against a schema registry."""

    def __init__(self, schemas: dict | None = None):
        self.schemas = schemas if schemas is not None else {}

    # -- references -----------------------------------------------------------

    def parse_ref(self, line: str, example_only: bool = False):
        """Resolve the ``<Type>`` / ``<Type[]>`` token in ``line``.

        Returns a response/request content object, or just the example value
        when ``example_only`` is set. Lines without a token are plain text.
        """
        start, end = line.find("<"), line.rfind(">")
        raw_ref = line[start + 1:end] if start != -1 and end > start else ""
        if raw_ref == "":
            if example_only:
                return line
            return {"content": {"text/plain": {"example": line}}}

        tail = line[end + 1:]
        include = split_list(get_between_brackets(tail, "with"))
        exclude = split_list(get_between_brackets(tail, "exclude"))
        only = split_list(get_between_brackets(tail, "only"))
        appended = self._parse_append(get_between_brackets(tail, "append"))
        paginated = get_between_brackets(tail, "paginated") == "true"

        name = raw_ref.replace("[]", "").strip()
        is_array = "[]" in raw_ref

        if name.lower() in STANDARD_TYPES:
            item_schema = resolve_type_name(name).to_openapi()
            item_example = example_by_type(name)
        else:
            item_schema = ref(name)
            item_example = self.schema_example(name, include, exclude, only)
            if isinstance(item_example, dict):
                item_example = {**item_example, **appended}

        if is_array:
            data_name, meta_name = self._paginated_names(tail)
            if paginated:
                schema = {
                    "type": "object",
                    "properties": {
                        data_name: {"type": "array", "items": item_schema},
                        meta_name: ref("PaginationMeta"),
                    },
                }
                example = {data_name: [item_example], meta_name: self.schema_example("PaginationMeta")}
            else:
                schema = {"type": "array", "items": item_schema}
                example = [item_example]
        else:
            schema, example = item_schema, item_example

        if example_only:
            return example
        return {"content": {"application/json": {"schema": schema, "example": example}}}

    def json_to_ref(self, value):
        """Replace ``<Type>`` tokens inside a JSON example with examples."""
        if isinstance(value, list):
            out = []
            for item in value:
                resolved = self.json_to_ref(item)
                if isinstance(item, str) and isinstance(resolved, list):
                    out.extend(resolved)
                else:
                    out.append(resolved)
            return out
        if isinstance(value, dict):
            return {key: self.json_to_ref(item) for key, item in value.items()}
        if isinstance(value, str):
            return self.parse_ref(value, example_only=True)
        return value

    def _parse_append(self, raw: str) -> dict:
        if raw == "":
            return {}
        text = raw if raw.startswith("{") else "{" + raw + "}"
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def _paginated_names(self, tail: str) -> tuple[str, str]:
        match = re.search(r"paginated\(([^()]*)\)", tail)
        params = [p.strip() for p in match.group(1).split(",")] if match else []
        data_name = params[0] if params and params[0] else "data"
        meta_name = params[1] if len(params) > 1 and params[1] else "meta"
        return data_name, meta_name

    # -- schema expansion -----------------------------------------------------

    def _is_model(self, name: str) -> bool:
        return str(self.schemas.get(name, {}).get("description", "")).endswith("(Model)")

    def schema_example(self, name: str, include=(), exclude=(), only=(), parent: str = "", seen: tuple = ()):
        """Expand registry entry ``name`` into an example value.

        Model relations are expanded only when named in ``include`` (or with
        ``relations``); passwords only when included. Returns ``None`` for a
        schema already being expanded higher up.
        """
        schema = self.schemas.get(name)
        if schema is None:
            return {}
        if "example" in schema:
            return copy.deepcopy(schema["example"])
        if schema.get("enum"):
            return schema["enum"][0]
        properties = schema.get("properties")
        if properties is None:
            return {}
        if name in seen:
            return None
        seen = (*seen, name)

        example = {}
        for key, prop in properties.items():
            path = f"{parent}.{key}" if parent else key
            if key in exclude or path in exclude:
                continue
            if key in ("password", "password_confirmation") and key not in include and key not in only:
                continue
            if only and key not in only and path not in only:
                continue

            is_array = prop.get("type") == "array"
            item = prop.get("items", {}) if is_array else prop
            target = ref_name(item["$ref"]) if "$ref" in item else ""
            if target:
                if self._is_model(target) and not self._included(path, include):
                    continue
                value = self.schema_example(target, include, exclude, only, path, seen)
                if value is None:
                    continue
            else:
                value = self.example_for_schema(item, seen)
            example[key] = [value] if is_array else value
        return example

    def _included(self, path: str, include) -> bool:
        if "relations" in include or path in include:
            return True
        return any(item.startswith(path + ".") for item in include)

    def example_for_schema(self, schema: dict, seen: tuple = ()):
        """Example for a ``$ref`` or an inline schema dict."""
        if "$ref" in schema:
            return self.schema_example(ref_name(schema["$ref"]), seen=seen)
        if "example" in schema:
            return copy.deepcopy(schema["example"])
        if schema.get("enum"):
            return schema["enum"][0]
        kind = schema.get("type")
        if kind == "object":
            return {key: self.example_for_schema(value, seen) for key, value in schema.get("properties", {}).items()}
        if kind == "array":
            return [self.example_for_schema(schema.get("items", {}), seen)]
        return example_by_type(kind)

    # -- inline JSON bodies ---------------------------------------------------

    def json_schema(self, value) -> dict:
        """Schema for an inline JSON body, resolving ``<Type>`` strings."""
        if isinstance(value, dict):
            return {"type": "object", "properties": {key: self.json_schema(item) for key, item in value.items()}}
        if isinstance(value, list):
            return {"type": "array", "items": self.array_items(value)}
        if isinstance(value, str) and "<" in value and ">" in value:
            parsed = self.parse_ref(value)
            schema = parsed.get("content", {}).get("application/json", {}).get("schema", {})
            if "[]" in value:
                item = schema.get("items", schema)
                return {"type": "array", "items": {"$ref": item["$ref"]} if "$ref" in item else item}
            return {"$ref": schema["$ref"]} if "$ref" in schema else schema
        return {"type": _json_type(value), "example": value}

    def array_items(self, values: list) -> dict:
        """Items schema of an inline JSON array.

        A list of ``<Type>`` tokens becomes ``oneOf`` over the references.
        """
        if not values:
            return {}
        if all(isinstance(v, str) for v in values):
            one_of = []
            for value in values:
                schema = self.parse_ref(value).get("content", {}).get("application/json", {}).get("schema", {})
                if "$ref" in schema:
                    one_of.append({"$ref": schema["$ref"]})
            if one_of:
                return {"oneOf": one_of}
        first = values[0]
        if isinstance(first, (dict, list)) or (isinstance(first, str) and "<" in first):
            return self.json_schema(first)
        return {"type": _json_type(first)}
