"""Validator schema parser.

Validators are not parsed from text: they are live objects that describe
their field tree (``to_json``) and can validate a payload
(``try_validate``). The parser guesses a schema from the description,
builds an all-numeric trial payload from the guess, validates it once and
corrects types and formats from the error messages.
"""

import enum
import inspect
import types
import typing
from datetime import date, datetime
from typing import Any, Literal, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel, ValidationError

from api_doc_synth.example import example_by_type, example_by_validator_rule
from api_doc_synth.text import get_path, set_path, split_path

TRIAL_MESSAGES = {
    "required": "REQUIRED",
    "string": "TYPE",
    "object": "TYPE",
    "number": "TYPE",
    "boolean": "TYPE",
}


@runtime_checkable
class TrialValidator(Protocol):
    def to_json(self) -> dict: ...

    def try_validate(self, payload: Any, messages: dict[str, str]) -> list[dict] | None: ...


# -- schema guess -------------------------------------------------------------


def _rule_meta(validations: list[dict], refs: dict) -> dict:
    meta = {}
    for validation in validations:
        options = (refs.get(validation.get("ruleFnId")) or {}).get("options")
        if isinstance(options, str) and "/" in options:
            meta["pattern"] = options
            continue
        if not isinstance(options, dict):
            continue
        if options.get("min") is not None:
            meta["minimum"] = options["min"]
        if options.get("max") is not None:
            meta["maximum"] = options["max"]
        if options.get("choices"):
            meta["choices"] = list(options["choices"])
        if options.get("pattern"):
            meta["pattern"] = options["pattern"]
    return meta


def _leaf_schema(node: dict, refs: dict) -> dict:
    meta = _rule_meta(node.get("validations") or [], refs)
    choices = meta.pop("choices", None)
    if choices:
        return {"type": "string", "enum": choices, "example": choices[0]}
    if node.get("subtype"):
        subtype = node["subtype"]
        return {"type": "string", "format": subtype, "example": example_by_validator_rule(subtype), **meta}
    return {"type": "number", "example": meta.get("minimum") or example_by_type("number"), **meta}


def _object_schema(node: dict, refs: dict) -> dict:
    properties, required = parse_schema(node, refs)
    schema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _node_schema(node: dict, refs: dict) -> dict:
    if node.get("type") == "object":
        return _object_schema(node, refs)
    if node.get("type") == "array":
        each = node.get("each") or {}
        items = _object_schema(each, refs) if each.get("type") == "object" else _leaf_schema(each, refs)
        return {"type": "array", "items": items}
    return _leaf_schema(node, refs)


def parse_schema(node: dict, refs: dict) -> tuple[dict, list[str]]:
    """Guess ``(properties, required)`` for an object node of a validator tree.

    Leaves without a format hint or choices are assumed numeric.
    """
    properties: dict[str, dict] = {}
    required: list[str] = []
    for child in node.get("properties") or []:
        name = child["fieldName"]
        properties[name] = _node_schema(child, refs)
        if not child.get("isOptional"):
            required.append(name)
    return properties, required


def build_trial_payload(properties: dict) -> dict:
    """Payload mirroring ``properties``, filled with each leaf's example."""
    payload = {}
    for key, prop in properties.items():
        if prop.get("type") == "object":
            payload[key] = build_trial_payload(prop.get("properties", {}))
        elif prop.get("type") == "array":
            items = prop.get("items", {})
            if items.get("type") == "object":
                payload[key] = [build_trial_payload(items.get("properties", {}))]
            else:
                payload[key] = [items.get("example")]
        else:
            payload[key] = prop.get("example")
    return payload


# -- trial and correct --------------------------------------------------------


def schema_path(field: str) -> list[str]:
    """``items.0.name`` -> ``["items", "items", "properties", "name"]``."""
    parts = split_path(field)
    path = parts[:1]
    for part in parts[1:]:
        if part.isdigit():
            path.append("items")
        else:
            path.extend(["properties", part])
    return path


def _correct_type(properties: dict, path: list[str], rule: str) -> None:
    updated = {**(get_path(properties, path) or {}), "type": rule, "example": example_by_type(rule)}
    if rule == "string":
        if "minimum" in updated:
            updated["minLength"] = updated.pop("minimum")
        if "maximum" in updated:
            updated["maxLength"] = updated.pop("maximum")
    set_path(properties, path, updated)


def _correct_format(properties: dict, path: list[str], rule: str) -> None:
    updated = {
        **(get_path(properties, path) or {}),
        "format": rule,
        "type": "string",
        "example": example_by_validator_rule(rule),
    }
    set_path(properties, path, updated)


def run_trial(schema: dict, payload: dict, validator: TrialValidator) -> dict:
    """Validate ``payload`` once and correct ``schema`` from the errors.

    There is a single round: a correction that uncovers further errors
    (e.g. an object replacing a number) is not validated again.
    """
    errors = validator.try_validate(payload, TRIAL_MESSAGES)
    for error in errors or []:
        field, rule, message = error.get("field", ""), error.get("rule", ""), error.get("message")
        if not field:
            continue
        path = schema_path(field)
        if message == "TYPE":
            _correct_type(schema["properties"], path, rule)
            set_path(payload, field, example_by_type(rule))
        elif message == "FORMAT":
            _correct_format(schema["properties"], path, rule)
            set_path(payload, field, example_by_validator_rule(rule))
    schema["example"] = payload
    return schema


def validator_to_schema(validator: TrialValidator) -> dict:
    description = validator.to_json()
    root = description["schema"]["schema"]
    schema = _object_schema(root, description.get("refs") or {})
    payload = build_trial_payload(schema["properties"])
    return run_trial(schema, payload, validator)


# -- pydantic adapter ---------------------------------------------------------

FORMAT_HINTS = {datetime: "date-time", date: "date", UUID: "uuid"}

TYPE_ERRORS = {
    "string_type": "string",
    "int_type": "number",
    "int_parsing": "number",
    "float_type": "number",
    "float_parsing": "number",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "model_type": "object",
    "model_attributes_type": "object",
    "dict_type": "object",
    "list_type": "array",
}

FORMAT_ERRORS = {
    "url_parsing": "url",
    "url_type": "url",
    "url_scheme": "url",
    "uuid_parsing": "uuid",
    "uuid_type": "uuid",
    "datetime_parsing": "date-time",
    "datetime_type": "date-time",
    "date_parsing": "date",
    "date_type": "date",
}

CONSTRAINT_OPTIONS = {
    "min_length": "min",
    "ge": "min",
    "gt": "min",
    "max_length": "max",
    "le": "max",
    "lt": "max",
    "pattern": "pattern",
}


def _unwrap_optional(annotation):
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _is_model(annotation) -> bool:
    return inspect.isclass(annotation) and issubclass(annotation, BaseModel)


class PydanticValidator:
    """Trial-contract adapter for a pydantic model class."""

    def __init__(self, model: type[BaseModel]):
        self.model = model
        self.name = model.__name__

    def to_json(self) -> dict:
        refs: dict[str, dict] = {}
        root = {"type": "object", "properties": self._properties(self.model, refs)}
        return {"schema": {"schema": root}, "refs": refs}

    def _properties(self, model: type[BaseModel], refs: dict) -> list[dict]:
        nodes = []
        for name, field in model.model_fields.items():
            node = self._node(field.annotation, field.metadata, refs)
            node["fieldName"] = field.alias or name
            node["isOptional"] = not field.is_required()
            nodes.append(node)
        return nodes

    def _node(self, annotation, metadata: list, refs: dict) -> dict:
        annotation = _unwrap_optional(annotation)
        origin = typing.get_origin(annotation)
        if _is_model(annotation):
            return {"type": "object", "properties": self._properties(annotation, refs), "validations": []}
        if origin in (list, set, tuple, frozenset):
            args = typing.get_args(annotation)
            each = self._node(args[0] if args else Any, [], refs)
            return {"type": "array", "each": each, "validations": self._validations(metadata, refs)}

        options = self._constraints(metadata)
        if origin is Literal:
            options["choices"] = [str(arg) for arg in typing.get_args(annotation)]
        elif inspect.isclass(annotation) and issubclass(annotation, enum.Enum):
            options["choices"] = [str(member.value) for member in annotation]
        node = {"type": "literal", "validations": self._register(options, refs)}
        for kind, subtype in FORMAT_HINTS.items():
            if annotation is kind:
                node["subtype"] = subtype
        return node

    def _constraints(self, metadata: list) -> dict:
        options = {}
        for item in metadata:
            for attribute, option in CONSTRAINT_OPTIONS.items():
                value = getattr(item, attribute, None)
                if value is not None:
                    options[option] = value
        return options

    def _validations(self, metadata: list, refs: dict) -> list[dict]:
        return self._register(self._constraints(metadata), refs)

    def _register(self, options: dict, refs: dict) -> list[dict]:
        if not options:
            return []
        rule_id = f"ref://{len(refs) + 1}"
        refs[rule_id] = {"options": options}
        return [{"ruleFnId": rule_id}]

    def try_validate(self, payload: Any, messages: dict[str, str]) -> list[dict] | None:
        try:
            self.model.model_validate(payload)
        except ValidationError as exc:
            return [self._message(error, messages) for error in exc.errors()]
        return None

    def _message(self, error: dict, messages: dict[str, str]) -> dict:
        field = ".".join(str(part) for part in error["loc"])
        kind = error["type"]
        if kind == "missing":
            return {"field": field, "rule": "required", "message": messages.get("required", error["msg"])}
        if kind in TYPE_ERRORS:
            rule = TYPE_ERRORS[kind]
            return {"field": field, "rule": rule, "message": messages.get(rule, error["msg"])}
        if kind in FORMAT_ERRORS:
            return {"field": field, "rule": FORMAT_ERRORS[kind], "message": "FORMAT"}
        if kind == "value_error" and "email" in error["msg"].lower():
            return {"field": field, "rule": "email", "message": "FORMAT"}
        return {"field": field, "rule": kind, "message": error["msg"]}


def as_validator(value) -> TrialValidator | None:
    """Wrap ``value`` as a trial validator, or ``None`` when it is not one."""
    if _is_model(value):
        return PydanticValidator(value)
    if not inspect.isclass(value) and isinstance(value, TrialValidator):
        return value
    return None
