"""Route-to-operation compiler.

Walks the route table in order, resolves each route's handler to a
controller action, merges that action's doc-comment annotations with
structural defaults and assembles the OpenAPI document.
"""

import copy
from pathlib import PurePosixPath
from typing import Callable

from pydantic import BaseModel

from api_doc_synth.config import GeneratorOptions
from api_doc_synth.generator.context import GenerationContext
from api_doc_synth.generator.registry import build_registry
from api_doc_synth.generator.validator import validate_document
from api_doc_synth.parser.base import AnnotationBlock, Diagnostic, RouteRecord
from api_doc_synth.parser.comment import status_phrase
from api_doc_synth.parser.route import (
    HandlerTarget,
    RouteInfo,
    extract_route_infos,
    is_ignored,
    resolve_handler,
)

OPENAPI_VERSION = "3.0.0"

DEFAULT_STATUS = {"GET": "200", "POST": "201", "DELETE": "202", "PUT": "204"}

ACTION_SUMMARIES = {
    "index": "Get a list of {}",
    "show": "Get a single instance of {}",
    "update": "Update {}",
    "destroy": "Delete {}",
    "store": "Create {}",
    "create": "Create (Frontend) {}",
    "edit": "Update (Frontend) {}",
}

DEFAULT_AUTH_MIDDLEWARES = ("auth", "auth:api")

DEFAULT_SECURITY_SCHEMES = {
    "BearerAuth": {"type": "http", "scheme": "bearer"},
    "BasicAuth": {"type": "http", "scheme": "basic"},
    "ApiKeyAuth": {"type": "apiKey", "in": "header", "name": "X-API-Key"},
}

RESPONSE_TEMPLATES = {
    "Forbidden": {"description": "Access token is missing or invalid"},
    "Accepted": {"description": "The request was accepted"},
    "Created": {"description": "The resource has been created"},
    "NotFound": {"description": "The requested resource could not be found"},
    "NotAcceptable": {"description": "The requested representation is not acceptable"},
}

BODYLESS_METHODS = ("GET", "DELETE")


class GenerationResult(BaseModel):
    document: dict
    diagnostics: list[Diagnostic] = []
    routes_processed: int = 0


class OpenApiGenerator:
    """Builds an OpenAPI document from a route table.

    ``on_pre_generate`` receives the finished document and may return a
    replacement.
    """

    def __init__(self, options: GeneratorOptions, on_pre_generate: Callable[[dict], dict | None] | None = None):
        self.options = options
        self.on_pre_generate = on_pre_generate

    def generate(self, routes: list[RouteRecord]) -> GenerationResult:
        context = GenerationContext(self.options)
        context.load_custom_paths()
        build_registry(context)

        document = self._skeleton(context.schemas)
        paths: dict[str, dict] = {}
        tags: list[dict] = []
        processed = 0

        for route in routes:
            if is_ignored(route.pattern, self.options.ignore):
                context.trace(f"Ignoring route {route.pattern}")
                continue
            self._compile_route(context, route, paths, tags)
            processed += 1

        used = {tag for item in paths.values() for operation in item.values() for tag in operation["tags"]}
        document["paths"] = paths
        document["tags"] = [tag for tag in tags if tag["name"] in used]

        if self.on_pre_generate is not None:
            document = self.on_pre_generate(document) or document

        for problem in validate_document(document):
            context.report("warning", problem)
        return GenerationResult(document=document, diagnostics=context.diagnostics, routes_processed=processed)

    # -- document -------------------------------------------------------------

    def _info(self) -> dict:
        if self.options.info is not None:
            return self.options.info.model_dump(exclude_none=True)
        info = {
            "title": self.options.title or "API Documentation",
            "version": self.options.version or "1.0.0",
        }
        if self.options.description:
            info["description"] = self.options.description
        return info

    def _skeleton(self, schemas: dict) -> dict:
        return {
            "openapi": OPENAPI_VERSION,
            "info": self._info(),
            "components": {
                "responses": copy.deepcopy(RESPONSE_TEMPLATES),
                "securitySchemes": {**copy.deepcopy(DEFAULT_SECURITY_SCHEMES), **self.options.security_schemes},
                "schemas": schemas,
            },
            "paths": {},
            "tags": [],
        }

    def security_for(self, route: RouteRecord) -> list[dict]:
        auth = set(DEFAULT_AUTH_MIDDLEWARES) | set(self.options.auth_middlewares)
        requirement = {self.options.default_security_scheme: ["access"]}
        return [requirement] if any(name in auth for name in route.middleware_names) else []

    # -- routes ---------------------------------------------------------------

    def _compile_route(self, context: GenerationContext, route: RouteRecord, paths: dict, tags: list[dict]) -> None:
        info = extract_route_infos(route.pattern, self.options.tag_index)
        for tag in info.tags:
            _register_tag(tags, tag)

        target = resolve_handler(route, context.custom_paths)
        block = None
        if target.resolved:
            block = context.annotations(target.source_file, target.action)
            state = "FOUND" if block is not None else "MISSING"
            method = route.methods[0] if route.methods else ""
            context.trace(f"{state} for {target.action} {target.source_file} ({method} {route.pattern})")

        security = self.security_for(route)
        for method in route.methods:
            if method == "HEAD":
                continue
            if method in ("PUT", "PATCH") and {"PUT", "PATCH"} <= set(route.methods) and method != self.options.preferred_put_patch:
                continue
            operation = self.build_operation(method, info, target, block, security, tags)
            paths.setdefault(info.pattern, {})[method.lower()] = operation

    def build_operation(
        self,
        method: str,
        info: RouteInfo,
        target: HandlerTarget,
        block: AnnotationBlock | None,
        security: list[dict],
        tags: list[dict],
    ) -> dict:
        """One Operation object for ``method`` on a route."""
        responses: dict[str, dict] = {}
        if security:
            for code in ("401", "403"):
                responses[code] = {"description": f"Returns **{code}** ({status_phrase(code)})"}

        operation_tags = list(info.tags)
        parameters = copy.deepcopy(info.parameters)
        summary, description = "", ""
        operation_id = target.operation_id
        request_body = {"content": {"application/json": {}}}

        if block is not None:
            summary = block.summary or ""
            description = block.description or ""
            operation_id = block.operation_id or operation_id
            responses.update(copy.deepcopy(block.responses))
            request_body = copy.deepcopy(block.request_body)
            parameters.update(copy.deepcopy(block.parameters))
            if block.tag:
                tag = block.tag.upper()
                _register_tag(tags, tag)
                operation_tags = [tag]

        status = DEFAULT_STATUS.get(method, "200")
        if block is None or not block.responses:
            responses[status] = {"description": status_phrase(status), "content": {"application/json": {}}}
        elif status in responses:
            default = responses[status]
            if "summary" in default:
                backfill = default.pop("summary")
                summary = summary or backfill
            if not description and default.get("description"):
                description = default["description"]

        action = target.action
        if action and not summary and action in ACTION_SUMMARIES:
            primary = operation_tags[0].lower() if operation_tags else ""
            summary = ACTION_SUMMARIES[action].format(primary)

        if action:
            label = action
            if self.options.file_name_in_summary and target.source_file:
                label = f"{PurePosixPath(target.source_file).stem}::{action}"
            summary = f"{summary} ({label})".strip()
        if target.resolved:
            description = f"{description}\n\n _{target.source_file}_ - **{action}**".lstrip()

        operation = {}
        if summary:
            operation["summary"] = summary
        if description:
            operation["description"] = description
        if operation_id:
            operation["operationId"] = operation_id
        operation["parameters"] = list(parameters.values())
        operation["tags"] = operation_tags
        operation["responses"] = responses
        operation["security"] = security
        if method not in BODYLESS_METHODS and request_body is not None:
            operation["requestBody"] = request_body
        return operation


def _register_tag(tags: list[dict], name: str) -> None:
    if not name or any(tag["name"] == name for tag in tags):
        return
    tags.append({"name": name, "description": f"Everything related to {name}"})
