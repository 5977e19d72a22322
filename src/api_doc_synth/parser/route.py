"""Route pattern and handler reference helpers."""

import re

from pydantic import BaseModel

from api_doc_synth.parser.base import HandlerRef, RouteRecord
from api_doc_synth.text import pascal_case


class RouteInfo(BaseModel):
    tags: list[str] = []
    parameters: dict[str, dict] = {}
    pattern: str = "/"


class HandlerTarget(BaseModel):
    """Where a route's handler lives: a source file relative to the project root."""

    source_file: str = ""
    action: str = ""
    operation_id: str = ""

    @property
    def resolved(self) -> bool:
        return bool(self.source_file and self.action)


def extract_route_infos(pattern: str, tag_index: int = 2) -> RouteInfo:
    """Path parameters, default tag and the ``{param}`` form of a route pattern.

    ``/users/:id?`` yields an optional ``id`` path parameter and
    ``/users/{id}``. The segment at ``tag_index`` (split on ``/``, so index 0
    is the empty string before the leading slash) upper-cased is the tag.
    """
    parts = pattern.split("/")
    tags = [parts[tag_index].upper()] if len(parts) > tag_index else []
    parameters: dict[str, dict] = {}
    normalized = []
    for part in parts:
        if part.startswith(":"):
            name = part[1:].replace("?", "")
            parameters[name] = {
                "in": "path",
                "name": name,
                "schema": {"type": "string"},
                "required": not part.endswith("?"),
            }
            part = "{" + name + "}"
        normalized.append(part)
    path = "/".join(normalized)
    if path.endswith("/"):
        path = path[:-1]
    if not path.startswith("/"):
        path = "/" + path
    return RouteInfo(tags=tags, parameters=parameters, pattern=path)


def format_operation_id(reference: str) -> str:
    """``#controllers/users_controller.index`` -> ``controllersUsersControllerIndex``."""
    cleaned = re.sub(r"[^a-zA-Z0-9]", " ", reference)
    joined = "".join(pascal_case(word) for word in cleaned.split())
    return joined[:1].lower() + joined[1:]


def is_ignored(pattern: str, ignore: list[str]) -> bool:
    """Exact match, ``prefix*`` or ``*suffix``."""
    for item in ignore:
        if pattern == item:
            return True
        if item.endswith("*") and pattern.startswith(item[:-1]):
            return True
        if item.startswith("*") and pattern.endswith(item[1:]):
            return True
    return False


def _map_alias(module: str, custom_paths: dict[str, str], fallback_dir: str) -> str:
    head = module.split("/")[0]
    if "#" in head:
        return module.replace(head, custom_paths.get(head, head.lstrip("#")), 1)
    return f"{fallback_dir}/{module}"


def _lazy_pair(handler: HandlerRef) -> tuple[str, str]:
    reference = handler.reference
    if isinstance(reference, list) and len(reference) >= 2 and all(isinstance(r, str) for r in reference[:2]):
        return reference[0], reference[1]
    return handler.module_name_or_path or "", handler.method or ""


def resolve_handler(route: RouteRecord, custom_paths: dict[str, str], app_dir: str = "app") -> HandlerTarget:
    """Source file, action and default operationId for a route.

    Three handler shapes are understood: a resolved namespace/method in
    ``meta``, a magic string (``#controllers/users_controller.index``) and a
    lazy import pair (``["#controllers/users_controller", "index"]``).
    Routes bound to closures resolve to an empty target.
    """
    source_file, action, operation_id = "", "", ""

    resolved = route.meta.resolved_handler if route.meta else None
    if resolved and resolved.namespace and resolved.method != "handle":
        source_file = resolved.namespace
        action = resolved.method or ""
        if action and isinstance(route.handler, str):
            operation_id = format_operation_id(route.handler)

    handler = route.handler
    if isinstance(handler, str) and not source_file:
        handler = HandlerRef(reference=handler)

    if isinstance(handler, HandlerRef) and handler.reference:
        if isinstance(handler.reference, str):
            module, _, action = handler.reference.partition(".")
            source_file = _map_alias(module, custom_paths, f"{app_dir}/controllers")
            operation_id = format_operation_id(handler.reference)
        else:
            module, action = _lazy_pair(handler)
            operation_id = format_operation_id(f"{module}.{action}")
            source_file = _map_alias(module, custom_paths, app_dir) if module else ""

    if source_file and action:
        source_file = source_file.replace("App/", "app/").replace(".js", "")
        if not source_file.endswith(".ts"):
            source_file += ".ts"
    return HandlerTarget(source_file=source_file, action=action, operation_id=operation_id)
