"""Consistency checks for generated documents."""

from api_doc_synth.parser.schema import REF_PREFIX


def _refs(value):
    if isinstance(value, dict):
        for key, item in value.items():
            if key == "$ref" and isinstance(item, str):
                yield item
            else:
                yield from _refs(item)
    elif isinstance(value, list):
        for item in value:
            yield from _refs(item)


def dangling_refs(document: dict) -> list[str]:
    """Schema names referenced with ``$ref`` but missing from components."""
    schemas = document.get("components", {}).get("schemas", {})
    missing = []
    for target in _refs(document):
        if not target.startswith(REF_PREFIX):
            continue
        name = target[len(REF_PREFIX):]
        if name not in schemas and name not in missing:
            missing.append(name)
    return missing


def unused_tags(document: dict) -> list[str]:
    used = {
        tag
        for item in document.get("paths", {}).values()
        for operation in item.values()
        for tag in operation.get("tags", [])
    }
    return [tag["name"] for tag in document.get("tags", []) if tag["name"] not in used]


def validate_document(document: dict) -> list[str]:
    """Return human readable problems; an empty list means consistent."""
    problems = [f"Unresolved schema reference: {name}" for name in dangling_refs(document)]
    problems += [f"Tag not used by any operation: {name}" for name in unused_tags(document)]
    for path, item in document.get("paths", {}).items():
        for method, operation in item.items():
            if not operation.get("responses"):
                problems.append(f"{method.upper()} {path} has no responses")
    return problems

