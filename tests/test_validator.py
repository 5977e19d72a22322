from api_doc_synth.generator.validator import dangling_refs, unused_tags, validate_document
from api_doc_synth.parser.schema import ref


def _document(**overrides) -> dict:
    document = {
        "openapi": "3.0.0",
        "components": {"schemas": {"User": {"type": "object"}}},
        "paths": {
            "/users": {
                "get": {
                    "tags": ["USERS"],
                    "responses": {"200": {"content": {"application/json": {"schema": ref("User")}}}},
                }
            }
        },
        "tags": [{"name": "USERS"}],
    }
    document.update(overrides)
    return document


class TestDanglingRefs:
    def test_resolved(self):
        assert dangling_refs(_document()) == []

    def test_missing_schema(self):
        document = _document(components={"schemas": {}})
        assert dangling_refs(document) == ["User"]

    def test_reported_once(self):
        paths = {"/a": {"get": {"responses": {"200": ref("Ghost"), "404": ref("Ghost")}}}}
        assert dangling_refs(_document(paths=paths)) == ["Ghost"]

    def test_non_schema_refs_ignored(self):
        paths = {"/a": {"get": {"responses": {"403": {"$ref": "#/components/responses/Forbidden"}}}}}
        assert dangling_refs(_document(paths=paths)) == []


class TestUnusedTags:
    def test_all_used(self):
        assert unused_tags(_document()) == []

    def test_unused(self):
        document = _document(tags=[{"name": "USERS"}, {"name": "POSTS"}])
        assert unused_tags(document) == ["POSTS"]


class TestValidateDocument:
    def test_consistent(self):
        assert validate_document(_document()) == []

    def test_problems(self):
        paths = {"/a": {"post": {"tags": [], "responses": {}}}}
        problems = validate_document(_document(paths=paths))
        assert "Tag not used by any operation: USERS" in problems
        assert "POST /a has no responses" in problems

