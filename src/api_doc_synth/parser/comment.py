"""Controller doc-comment annotation parser.

A block comment documents an action when its first line is ``@<action>``.
The remaining lines are directives::

    /**
     * @index
     * @summary List users
     * @paramQuery page - Page number - @type(number) @example(1)
     * @responseBody 200 - <User[]>.paginated() - The users
     * @responseHeader 200 - X-Total - Total count - @type(integer)
     */
"""

import json
import re
from http import HTTPStatus

from api_doc_synth.config import CommonOptions
from api_doc_synth.example import ExampleGenerator, coerce_example
from api_doc_synth.parser.base import AnnotationBlock, AnnotationResult, Diagnostic
from api_doc_synth.text import get_between_brackets, is_json_string, split_list

_BLOCK_RE = re.compile(r"/\*(.*?)\*/", re.DOTALL)
_PARAM_RE = re.compile(r"^@param([a-zA-Z]*)")

HEADER_DEFAULT_EXAMPLES = {"string": "string", "integer": 1, "number": 1, "float": 1.5, "boolean": True}


def status_phrase(code) -> str:
    try:
        return HTTPStatus(int(code)).phrase
    except ValueError:
        return "Unknown"


def strip_decorators(source: str) -> str:
    """Drop ``@decorator`` lines that sit outside block comments; trims every line."""
    kept = []
    in_block = False
    for raw in source.splitlines():
        line = raw.strip()
        if in_block:
            kept.append(line)
            if "*/" in line:
                in_block = False
            continue
        if line.startswith("@"):
            continue
        kept.append(line)
        opened = line.rfind("/*")
        if opened != -1 and "*/" not in line[opened:]:
            in_block = True
    return "\n".join(kept) + "\n"


def block_comments(source: str) -> list[list[str]]:
    """Content lines of every block comment, leading ``*`` removed."""
    blocks = []
    for match in _BLOCK_RE.finditer(source):
        lines = []
        for line in match.group(1).splitlines():
            line = line.strip().lstrip("*").strip()
            if line:
                lines.append(line)
        blocks.append(lines)
    return blocks


def _strip_directive(line: str, directive: str) -> str:
    return line[len(directive):].strip()


class AnnotationParser:
    """Turns the doc comment of one controller action into an ``AnnotationBlock``."""

    def __init__(self, examples: ExampleGenerator, common: CommonOptions | None = None):
        self.examples = examples
        self.common = common or CommonOptions()

    def parse(self, source: str, action: str) -> AnnotationResult:
        lines = None
        for block in block_comments(strip_decorators(source)):
            if block and block[0] == f"@{action}":
                lines = block[1:]
        if lines is None:
            return AnnotationResult()
        diagnostics: list[Diagnostic] = []
        block = self.parse_lines(lines, diagnostics)
        return AnnotationResult(block=block, diagnostics=diagnostics)

    def parse_lines(self, lines: list[str], diagnostics: list[Diagnostic]) -> AnnotationBlock:
        block = AnnotationBlock()
        headers: dict[str, dict] = {}

        for line in lines:
            if line.startswith("@summary"):
                block.summary = _strip_directive(line, "@summary")
            elif line.startswith("@tag"):
                block.tag = _strip_directive(line, "@tag")
            elif line.startswith("@description"):
                block.description = _strip_directive(line, "@description")
            elif line.startswith("@operationId"):
                block.operation_id = _strip_directive(line, "@operationId")
            elif line.startswith("@responseBody"):
                status, response = self.parse_response_body(line)
                block.responses[status] = response
            elif line.startswith("@responseHeader"):
                parsed = self.parse_response_header(line)
                if parsed is None:
                    diagnostics.append(Diagnostic(level="error", message=f"Error with line: {line}"))
                    continue
                status, header = parsed
                headers[status] = {**headers.get(status, {}), **header}
            elif line.startswith("@requestFormDataBody"):
                body = self.parse_form_data_body(line, diagnostics)
                if body is not None:
                    block.request_body = body
            elif line.startswith("@requestBody"):
                block.request_body = self.parse_body(_strip_directive(line, "@requestBody"))
            elif line.startswith("@param"):
                block.parameters.update(self.parse_param(line))

        for status, header in headers.items():
            if status in block.responses:
                block.responses[status]["headers"] = header
            else:
                diagnostics.append(Diagnostic(
                    level="debug",
                    message=f"Dropped response headers for undeclared status {status}",
                ))

        for status, response in block.responses.items():
            if not response.get("description"):
                content_type = next(iter(response.get("content") or {"application/json": {}}))
                response["description"] = f"Returns **{status}** ({status_phrase(status)}) as **{content_type}**"
        return block

    # -- bodies ---------------------------------------------------------------

    def parse_body(self, line: str) -> dict:
        """Content object for an inline JSON or ``<Type>`` bodyspec."""
        if is_json_string(line):
            data = json.loads(line)
            if isinstance(data, (dict, list)):
                return {
                    "content": {
                        "application/json": {
                            "schema": self.examples.json_schema(data),
                            "example": self.examples.json_to_ref(data),
                        }
                    }
                }
        return self.examples.parse_ref(line)

    def parse_response_body(self, line: str) -> tuple[str, dict]:
        parts = _strip_directive(line, "@responseBody").split(" - ")
        status = parts[0].strip()
        response = self.parse_body(parts[1] if len(parts) > 1 else "")
        if len(parts) > 2:
            response["description"] = parts[2]
        return status, response

    def parse_form_data_body(self, line: str, diagnostics: list[Diagnostic]) -> dict | None:
        line = _strip_directive(line, "@requestFormDataBody")
        required: list[str] = []

        if is_json_string(line) and isinstance(json.loads(line), dict):
            properties = json.loads(line)
            for key, field in properties.items():
                if isinstance(field, dict) and str(field.pop("required", "")).lower() == "true":
                    required.append(key)
        else:
            start, end = line.find("<"), line.rfind(">")
            name = line[start + 1:end].replace("[]", "").strip() if start != -1 and end > start else ""
            if not name:
                return None
            schema = self.examples.schemas.get(name)
            if schema is None:
                diagnostics.append(Diagnostic(level="warning", message=f"Unknown form data reference <{name}>"))
                return None
            example = self.examples.parse_ref(line, example_only=True)
            example = example if isinstance(example, dict) else {}
            required.extend(schema.get("required") or [])
            properties = {}
            for key, value in (schema.get("properties") or {}).items():
                if key not in example:
                    continue
                field = {"type": value.get("type", "string")}
                if value.get("format"):
                    field["format"] = value["format"]
                properties[key] = field
            for key, value in example.items():
                if key not in properties:
                    properties[key] = self.examples.json_schema(value)
            required = [key for key in required if key in properties]

        schema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return {"content": {"multipart/form-data": {"schema": schema}}}

    # -- headers and parameters -----------------------------------------------

    def parse_response_header(self, line: str) -> tuple[str, dict] | None:
        parts = _strip_directive(line, "@responseHeader").split(" - ")
        if len(parts) < 2 or not parts[0].strip() or not parts[1].strip():
            return None
        status, name = parts[0].strip(), parts[1].strip()
        description = parts[2] if len(parts) > 2 else ""
        meta = parts[3] if len(parts) > 3 else ""

        if "@use" in name:
            merged = {}
            for group in split_list(get_between_brackets(name, "use")):
                merged.update(self.common.headers.get(group, {}))
            return status, merged

        type_name = get_between_brackets(meta, "type") or "string"
        example = coerce_example(get_between_brackets(meta, "example"), type_name)
        enums = split_list(get_between_brackets(meta, "enum"))
        if enums:
            example = enums[0]
        if example == "":
            example = HEADER_DEFAULT_EXAMPLES.get(type_name, "string")
        schema = {"type": type_name, "example": example}
        if len(enums) > 1:
            schema["enum"] = enums
        return status, {name: {"schema": schema, "description": description}}

    def parse_param(self, line: str) -> dict[str, dict]:
        """``@param<Location> name - description - meta`` into ``{name: parameter}``.

        Query parameters are optional unless marked ``@required``; every other
        location is required by default.
        """
        if line.startswith("@paramUse"):
            parameters = {}
            for group in split_list(get_between_brackets(line, "paramUse")):
                for index, parameter in enumerate(self.common.parameters.get(group, [])):
                    parameters[parameter.get("name") or f"{group}{index}"] = parameter
            return parameters

        match = _PARAM_RE.match(line)
        location = (match.group(1) or "path").lower()
        parts = line[match.end():].strip().split(" - ")
        name = parts[0].strip()
        if not name:
            return {}
        description = parts[1] if len(parts) > 1 else ""
        meta = parts[2] if len(parts) > 2 else ""

        required = location != "query" or "@required" in meta
        schema = {"type": get_between_brackets(meta, "type") or "string"}
        example = coerce_example(get_between_brackets(meta, "example"), schema["type"])
        enums = split_list(get_between_brackets(meta, "enum"))
        if enums:
            example = enums[0]
        if example != "":
            schema["example"] = example
        if len(enums) > 1:
            schema["enum"] = enums
        return {
            name: {
                "in": location,
                "name": name,
                "description": description,
                "schema": schema,
                "required": required,
            }
        }
