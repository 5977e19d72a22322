"""String-shape helpers shared by the declaration and annotation parsers.

Pure functions only: case conversion, bracket-content extraction, JSON
probing and nested-path access on plain dicts/lists.
"""

import json
import re

from pydantic.alias_generators import to_camel, to_pascal, to_snake


def snake_case(value: str) -> str:
    """``fullName`` / ``IS_ACTIVE`` / ``user-id`` -> ``full_name`` / ``is_active`` / ``user_id``."""
    return to_snake(re.sub(r"[-\s]+", "_", (value or "").strip()))


def camel_case(value: str) -> str:
    return to_camel(snake_case(value))


def pascal_case(value: str) -> str:
    return to_pascal(snake_case(value))


def start_case(value: str) -> str:
    """``orderStatus`` / ``order_status`` -> ``Order Status``."""
    value = re.sub(r"([a-z])([A-Z])", r"\1 \2", value)
    value = re.sub(r"[_-]+", " ", value)
    value = re.sub(r"\s+", " ", value).strip()
    return re.sub(r"\w\S*", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), value)


def get_between_brackets(value: str, keyword: str) -> str:
    """Return the content of the first ``keyword(...)`` group in ``value``.

    Spaces are removed for every keyword except ``example``. A ``paginated``
    group always yields ``"true"``. Returns ``""`` when the keyword is absent.
    """
    match = re.search(rf"{re.escape(keyword)}\(([^()]*)\)", value)
    if match is None:
        return ""
    if keyword == "paginated":
        return "true"
    content = match.group(1)
    if keyword != "example":
        content = content.replace(" ", "")
    return content


def split_list(value: str) -> list[str]:
    """Split a comma separated bracket value, dropping empty items."""
    return [item for item in value.split(",") if item != ""]


def is_json_string(value: str) -> bool:
    try:
        json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return False
    return True


# -- nested path access -------------------------------------------------------


def split_path(path: str | list) -> list[str]:
    """``a.b[0].c`` -> ``["a", "b", "0", "c"]``."""
    if isinstance(path, (list, tuple)):
        return [str(part) for part in path]
    path = re.sub(r"\[(\w+)\]", r".\1", path)
    return [part for part in path.split(".") if part != ""]


def _step(current, part: str):
    if isinstance(current, dict):
        return current.get(part), part in current
    if isinstance(current, list) and part.isdigit() and int(part) < len(current):
        return current[int(part)], True
    return None, False


def has_path(obj, path: str | list) -> bool:
    current = obj
    for part in split_path(path):
        current, found = _step(current, part)
        if not found:
            return False
    return True


def get_path(obj, path: str | list, default=None):
    current = obj
    for part in split_path(path):
        current, found = _step(current, part)
        if not found:
            return default
    return current


def set_path(obj, path: str | list, value):
    """Set ``value`` at ``path``, creating intermediate dicts. Returns ``obj``."""
    parts = split_path(path)
    current = obj
    for index, part in enumerate(parts):
        last = index == len(parts) - 1
        if isinstance(current, list) and part.isdigit():
            position = int(part)
            while len(current) <= position:
                current.append({})
            if last:
                current[position] = value
            else:
                if not isinstance(current[position], (dict, list)):
                    current[position] = {}
                current = current[position]
            continue
        if last:
            current[part] = value
        else:
            if not isinstance(current.get(part), (dict, list)):
                current[part] = {}
            current = current[part]
    return obj


def unset_path(obj, path: str | list) -> bool:
    parts = split_path(path)
    if not parts:
        return False
    parent = get_path(obj, parts[:-1]) if len(parts) > 1 else obj
    last = parts[-1]
    if isinstance(parent, dict) and last in parent:
        del parent[last]
        return True
    return False
