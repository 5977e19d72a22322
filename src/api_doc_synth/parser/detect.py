"""Load the router's route table dump."""

import json
from pathlib import Path

import yaml

from api_doc_synth.parser.base import RouteRecord


def _load_data(text: str):
    # Try YAML first (a superset of most JSON dumps)
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        pass

    # JSON with tabs or other constructs YAML rejects
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        pass
    return None


def load_route_table(file_path: Path) -> list[RouteRecord]:
    """Parse a route dump into route records, preserving table order.

    The dump is either a list of routes or a mapping of domain to routes
    (``{"root": [...]}``); domains are concatenated in file order.
    """
    data = _load_data(file_path.read_text(encoding="utf-8"))

    if isinstance(data, dict):
        entries = [route for routes in data.values() if isinstance(routes, list) for route in routes]
    elif isinstance(data, list):
        entries = data
    else:
        raise ValueError(f"{file_path}: expected a list of routes or a mapping of domain to routes")

    return [RouteRecord.model_validate(entry) for entry in entries]
