from api_doc_synth.example import (
    DATETIME_EXAMPLE,
    NUMBER_EXAMPLE,
    ExampleGenerator,
    coerce_example,
    example_by_field,
    example_by_type,
    example_by_validator_rule,
    example_for,
    pagination_interface,
)
from api_doc_synth.parser.schema import ref

SCHEMAS = {
    "User": {
        "type": "object",
        "description": "User (Model)",
        "properties": {
            "id": {"type": "number", "example": 1},
            "email": {"type": "string", "format": "email", "example": "johndoe@example.com"},
            "password": {"type": "string", "example": "secret"},
            "posts": {"type": "array", "items": ref("Post")},
        },
    },
    "Post": {
        "type": "object",
        "description": "Post (Model)",
        "properties": {
            "id": {"type": "number", "example": 7},
            "title": {"type": "string", "example": "Hello"},
            "author": ref("User"),
        },
    },
    "Node": {
        "type": "object",
        "description": "Node (Interface)",
        "properties": {"name": {"type": "string", "example": "root"}, "parent": ref("Node")},
    },
    "Status": {"type": "string", "enum": ["draft", "published"]},
    **pagination_interface(),
}


class TestExampleByType:
    def test_primitives(self):
        assert example_by_type("string") == "Lorem Ipsum"
        assert example_by_type("number") == NUMBER_EXAMPLE
        assert example_by_type("integer") == NUMBER_EXAMPLE
        assert example_by_type("boolean") is True
        assert example_by_type("datetime") == DATETIME_EXAMPLE

    def test_case_insensitive(self):
        assert example_by_type("Boolean") is True

    def test_unknown_is_none(self):
        assert example_by_type("User") is None
        assert example_by_type(None) is None


class TestExampleByField:
    def test_known_names(self):
        assert example_by_field("email") == "johndoe@example.com"
        assert example_by_field("id") == 1

    def test_case_insensitive_and_camel_case(self):
        assert example_by_field("EMAIL") == "johndoe@example.com"
        assert example_by_field("firstName") == "John"

    def test_patterns(self):
        assert example_by_field("is_published") is True
        assert example_by_field("updated_at") == DATETIME_EXAMPLE
        assert example_by_field("owner_id") == 1

    def test_upper_case_names(self):
        assert example_by_field("IS_ACTIVE") is True
        assert example_by_field("API_KEY") == example_by_field("api_key")
        assert example_by_field("OWNER_ID") == 1
        assert example_by_field("EMAIL_ADDRESS") == "johndoe@example.com"

    def test_never_none(self):
        assert example_by_field("zzz") == "string"

    def test_deterministic(self):
        assert example_by_field("price") == example_by_field("price")


class TestExampleFor:
    def test_field_example_of_same_kind_wins(self):
        assert example_for("email", "string") == "johndoe@example.com"

    def test_type_decides_kind(self):
        # "id" suggests a number; a string id keeps a string example
        assert example_for("id", "string") == "Lorem Ipsum"

    def test_falls_back_to_field(self):
        assert example_for("email", None) == "johndoe@example.com"


class TestCoerceExample:
    def test_numbers(self):
        assert coerce_example("2", "integer") == 2
        assert coerce_example("1.5", "number") == 1.5
        assert coerce_example("n/a", "number") == "n/a"

    def test_booleans(self):
        assert coerce_example("false", "boolean") is False
        assert coerce_example("maybe", "boolean") == "maybe"

    def test_strings_untouched(self):
        assert coerce_example("42", "string") == "42"
        assert coerce_example("", "integer") == ""


def test_example_by_validator_rule():
    assert example_by_validator_rule("email") == "user@example.com"
    assert example_by_validator_rule("unknown") == "Some string"


class TestParseRef:
    def test_single_reference(self):
        generator = ExampleGenerator(SCHEMAS)
        content = generator.parse_ref("<User>")["content"]["application/json"]
        assert content["schema"] == ref("User")
        assert content["example"] == {"id": 1, "email": "johndoe@example.com"}

    def test_array_reference(self):
        generator = ExampleGenerator(SCHEMAS)
        content = generator.parse_ref("<Post[]>")["content"]["application/json"]
        assert content["schema"] == {"type": "array", "items": ref("Post")}
        assert content["example"] == [{"id": 7, "title": "Hello"}]

    def test_with_expands_relation(self):
        generator = ExampleGenerator(SCHEMAS)
        example = generator.parse_ref("<User>.with(posts)", example_only=True)
        assert example["posts"] == [{"id": 7, "title": "Hello"}]

    def test_exclude_and_only(self):
        generator = ExampleGenerator(SCHEMAS)
        assert generator.parse_ref("<User>.exclude(email)", example_only=True) == {"id": 1}
        assert generator.parse_ref("<User>.only(email)", example_only=True) == {"email": "johndoe@example.com"}

    def test_password_only_when_requested(self):
        generator = ExampleGenerator(SCHEMAS)
        example = generator.parse_ref("<User>.with(password)", example_only=True)
        assert example["password"] == "secret"

    def test_append(self):
        generator = ExampleGenerator(SCHEMAS)
        example = generator.parse_ref('<User>.append("token": "abc")', example_only=True)
        assert example["token"] == "abc"

    def test_paginated(self):
        generator = ExampleGenerator(SCHEMAS)
        content = generator.parse_ref("<Post[]>.paginated(items, pagination)")["content"]["application/json"]
        assert set(content["schema"]["properties"]) == {"items", "pagination"}
        assert content["schema"]["properties"]["pagination"] == ref("PaginationMeta")
        assert content["example"]["pagination"]["total"] == 100

    def test_standard_type(self):
        generator = ExampleGenerator(SCHEMAS)
        content = generator.parse_ref("<number[]>")["content"]["application/json"]
        assert content["schema"] == {"type": "array", "items": {"type": "number"}}
        assert content["example"] == [NUMBER_EXAMPLE]

    def test_plain_text(self):
        generator = ExampleGenerator(SCHEMAS)
        assert generator.parse_ref("Deleted") == {"content": {"text/plain": {"example": "Deleted"}}}

    def test_enum_reference(self):
        generator = ExampleGenerator(SCHEMAS)
        assert generator.parse_ref("<Status>", example_only=True) == "draft"

    def test_recursive_interface_terminates(self):
        generator = ExampleGenerator(SCHEMAS)
        assert generator.parse_ref("<Node>", example_only=True) == {"name": "root"}

    def test_unknown_reference(self):
        generator = ExampleGenerator(SCHEMAS)
        content = generator.parse_ref("<Missing>")["content"]["application/json"]
        assert content["schema"] == ref("Missing")
        assert content["example"] == {}


class TestInlineJson:
    def test_json_to_ref(self):
        generator = ExampleGenerator(SCHEMAS)
        value = generator.json_to_ref({"post": "<Post>", "count": 2})
        assert value == {"post": {"id": 7, "title": "Hello"}, "count": 2}

    def test_json_schema(self):
        generator = ExampleGenerator(SCHEMAS)
        schema = generator.json_schema({"post": "<Post>", "posts": "<Post[]>", "count": 2})
        assert schema["properties"]["post"] == ref("Post")
        assert schema["properties"]["posts"] == {"type": "array", "items": ref("Post")}
        assert schema["properties"]["count"] == {"type": "number", "example": 2}

    def test_array_items_one_of(self):
        generator = ExampleGenerator(SCHEMAS)
        assert generator.array_items(["<User>", "<Post>"]) == {"oneOf": [ref("User"), ref("Post")]}
