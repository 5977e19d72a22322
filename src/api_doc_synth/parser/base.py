"""Data models shared by the parsers and the generator.

Route records mirror the router's JSON dump (camelCase keys); annotation
blocks hold what a controller doc comment declares for one action.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts both camelCase (router dump, config files) and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Diagnostic(BaseModel):
    """A non-fatal message produced while generating."""

    level: str  # debug / warning / error
    message: str


class ResolvedHandler(CamelModel):
    type: str = ""
    namespace: str | None = None
    method: str | None = None


class RouteMeta(CamelModel):
    resolved_handler: ResolvedHandler | None = None


class HandlerRef(CamelModel):
    """Handler descriptor: a magic-string reference or a lazy import pair."""

    reference: str | list[Any] | None = None
    module_name_or_path: str | None = None
    method: str | None = None
    name: str = ""


class RouteRecord(CamelModel):
    """One entry of the framework's route table."""

    methods: list[str]
    pattern: str
    middleware: list[Any] = []
    name: str | None = None
    handler: str | HandlerRef | None = None
    meta: RouteMeta | None = None

    @field_validator("middleware", mode="before")
    @classmethod
    def _coerce_middleware(cls, value):
        if value is None:
            return []
        if isinstance(value, dict):
            return [item for items in value.values() if isinstance(items, list) for item in items]
        return value

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, value: list[str]) -> list[str]:
        return [method.upper() for method in value]

    @property
    def middleware_names(self) -> list[str]:
        names = []
        for item in self.middleware:
            if isinstance(item, str):
                names.append(item)
            elif isinstance(item, dict):
                names.append(item.get("name") or "closure")
        return names


class AnnotationBlock(BaseModel):
    """Directives parsed from the doc comment bound to one controller action."""

    summary: str | None = None
    description: str | None = None
    operation_id: str | None = None
    tag: str | None = None
    parameters: dict[str, dict] = {}
    request_body: dict | None = None
    responses: dict[str, dict] = {}


class AnnotationResult(BaseModel):
    block: AnnotationBlock | None = None
    diagnostics: list[Diagnostic] = []
