from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from api_doc_synth.example import DATETIME_EXAMPLE
from api_doc_synth.parser.validator import (
    TRIAL_MESSAGES,
    PydanticValidator,
    as_validator,
    build_trial_payload,
    parse_schema,
    schema_path,
    validator_to_schema,
)


class FakeValidator:
    """Hand-written trial validator returning canned errors."""

    def __init__(self, description: dict, errors=None):
        self.description = description
        self.errors = errors
        self.payloads = []

    def to_json(self) -> dict:
        return self.description

    def try_validate(self, payload, messages):
        self.payloads.append(payload)
        return self.errors


def _description(properties: list[dict], refs: dict | None = None) -> dict:
    return {"schema": {"schema": {"type": "object", "properties": properties}}, "refs": refs or {}}


def _literal(name: str, validations=(), optional=False) -> dict:
    return {"fieldName": name, "type": "literal", "isOptional": optional, "validations": list(validations)}


class Address(BaseModel):
    street: str
    zip: int = Field(ge=1000)


class CreateUser(BaseModel):
    full_name: str = Field(min_length=3, max_length=64)
    age: int = Field(ge=18)
    is_admin: bool = False
    role: Literal["admin", "member"]
    birthday: datetime | None = None
    address: Address
    tags: list[str] = []


class TestParseSchema:
    def test_leaves_default_to_number(self):
        properties, required = parse_schema(
            {"properties": [_literal("count"), _literal("note", optional=True)]}, {}
        )
        assert properties["count"] == {"type": "number", "example": 42}
        assert required == ["count"]

    def test_min_max_from_refs(self):
        refs = {"r1": {"options": {"min": 3, "max": 10}}}
        properties, _ = parse_schema({"properties": [_literal("code", [{"ruleFnId": "r1"}])]}, refs)
        assert properties["code"] == {"type": "number", "example": 3, "minimum": 3, "maximum": 10}

    def test_choices_become_enum(self):
        refs = {"r1": {"options": {"choices": ["a", "b"]}}}
        properties, _ = parse_schema({"properties": [_literal("kind", [{"ruleFnId": "r1"}])]}, refs)
        assert properties["kind"] == {"type": "string", "enum": ["a", "b"], "example": "a"}

    def test_nested_object_and_array(self):
        node = {
            "properties": [
                {"fieldName": "owner", "type": "object", "isOptional": False, "validations": [], "properties": [_literal("id")]},
                {"fieldName": "ids", "type": "array", "isOptional": True, "validations": [], "each": _literal("")},
            ]
        }
        properties, _ = parse_schema(node, {})
        assert properties["owner"]["properties"]["id"]["type"] == "number"
        assert properties["owner"]["required"] == ["id"]
        assert properties["ids"] == {"type": "array", "items": {"type": "number", "example": 42}}

    def test_trial_payload_mirrors_schema(self):
        properties = {
            "count": {"type": "number", "example": 42},
            "owner": {"type": "object", "properties": {"id": {"type": "number", "example": 1}}},
            "rows": {"type": "array", "items": {"type": "object", "properties": {"n": {"type": "number", "example": 2}}}},
            "ids": {"type": "array", "items": {"type": "number", "example": 42}},
        }
        assert build_trial_payload(properties) == {"count": 42, "owner": {"id": 1}, "rows": [{"n": 2}], "ids": [42]}


class TestSchemaPath:
    def test_nested(self):
        assert schema_path("address.street") == ["address", "properties", "street"]

    def test_array_index(self):
        assert schema_path("items.0.name") == ["items", "items", "properties", "name"]


class TestTrial:
    def test_no_errors_keeps_payload(self):
        validator = FakeValidator(_description([_literal("count"), _literal("total")]), errors=None)
        schema = validator_to_schema(validator)
        assert schema["example"] == {"count": 42, "total": 42}
        assert validator.payloads == [{"count": 42, "total": 42}]

    def test_trial_uses_message_overrides(self):
        validator = FakeValidator(_description([_literal("count")]))
        received = []
        validator.try_validate = lambda payload, messages: received.append(messages)
        validator_to_schema(validator)
        assert received == [TRIAL_MESSAGES]

    def test_type_correction_renames_bounds_for_strings(self):
        refs = {"r1": {"options": {"min": 3, "max": 10}}}
        errors = [{"field": "code", "rule": "string", "message": "TYPE"}]
        validator = FakeValidator(_description([_literal("code", [{"ruleFnId": "r1"}])], refs), errors)
        schema = validator_to_schema(validator)
        assert schema["properties"]["code"] == {"type": "string", "example": "Lorem Ipsum", "minLength": 3, "maxLength": 10}
        assert schema["example"] == {"code": "Lorem Ipsum"}

    def test_bounds_kept_for_non_strings(self):
        refs = {"r1": {"options": {"min": 1}}}
        errors = [{"field": "flag", "rule": "boolean", "message": "TYPE"}]
        validator = FakeValidator(_description([_literal("flag", [{"ruleFnId": "r1"}])], refs), errors)
        schema = validator_to_schema(validator)
        assert schema["properties"]["flag"]["minimum"] == 1
        assert "minLength" not in schema["properties"]["flag"]

    def test_format_correction(self):
        errors = [{"field": "email", "rule": "email", "message": "FORMAT"}]
        validator = FakeValidator(_description([_literal("email")]), errors)
        schema = validator_to_schema(validator)
        assert schema["properties"]["email"] == {"type": "string", "format": "email", "example": "user@example.com"}
        assert schema["example"] == {"email": "user@example.com"}

    def test_required_errors_are_ignored(self):
        errors = [{"field": "count", "rule": "required", "message": "REQUIRED"}]
        validator = FakeValidator(_description([_literal("count")]), errors)
        assert validator_to_schema(validator)["properties"]["count"]["type"] == "number"

    def test_single_pass_does_not_revalidate(self):
        # "profile" turns out to be an object; its own fields would only be
        # reported by a second validation, which never happens.
        errors = [{"field": "profile", "rule": "object", "message": "TYPE"}]
        validator = FakeValidator(_description([_literal("profile")]), errors)
        schema = validator_to_schema(validator)
        assert len(validator.payloads) == 1
        assert schema["properties"]["profile"] == {"type": "object", "example": {}}
        assert schema["example"] == {"profile": {}}


class TestPydanticValidator:
    def test_to_json_shape(self):
        description = PydanticValidator(CreateUser).to_json()
        nodes = {node["fieldName"]: node for node in description["schema"]["schema"]["properties"]}
        assert nodes["address"]["type"] == "object"
        assert nodes["tags"]["type"] == "array"
        assert nodes["birthday"]["subtype"] == "date-time"
        assert nodes["is_admin"]["isOptional"] is True
        assert nodes["full_name"]["isOptional"] is False
        rule = nodes["full_name"]["validations"][0]["ruleFnId"]
        assert description["refs"][rule]["options"] == {"min": 3, "max": 64}

    def test_schema_after_trial(self):
        schema = validator_to_schema(PydanticValidator(CreateUser))
        properties = schema["properties"]
        assert properties["full_name"] == {"type": "string", "example": "Lorem Ipsum", "minLength": 3, "maxLength": 64}
        assert properties["age"] == {"type": "number", "example": 18, "minimum": 18}
        assert properties["is_admin"]["type"] == "boolean"
        assert properties["role"]["enum"] == ["admin", "member"]
        assert properties["birthday"]["format"] == "date-time"
        assert properties["address"]["properties"]["street"]["type"] == "string"
        assert properties["address"]["properties"]["zip"]["type"] == "number"
        assert properties["tags"]["items"]["type"] == "string"
        assert schema["required"] == ["full_name", "age", "role", "address"]

    def test_example_is_valid_payload(self):
        schema = validator_to_schema(PydanticValidator(CreateUser))
        assert schema["example"]["birthday"] == DATETIME_EXAMPLE
        CreateUser.model_validate(schema["example"])

    def test_try_validate_messages(self):
        errors = PydanticValidator(Address).try_validate({"street": 1}, TRIAL_MESSAGES)
        by_field = {error["field"]: error for error in errors}
        assert by_field["street"] == {"field": "street", "rule": "string", "message": "TYPE"}
        assert by_field["zip"]["message"] == "REQUIRED"

    def test_try_validate_ok(self):
        assert PydanticValidator(Address).try_validate({"street": "Main", "zip": 1234}, TRIAL_MESSAGES) is None


class TestAsValidator:
    def test_wraps_models(self):
        assert isinstance(as_validator(Address), PydanticValidator)

    def test_accepts_trial_objects(self):
        fake = FakeValidator(_description([]))
        assert as_validator(fake) is fake

    def test_rejects_other_values(self):
        assert as_validator({"type": "object"}) is None
        assert as_validator(FakeValidator) is None
        assert as_validator(42) is None
