"""Serialize, write and read OpenAPI documents."""

import json
import os
from pathlib import Path

import yaml

from api_doc_synth.config import GeneratorOptions
from api_doc_synth.generator.openapi import GenerationResult, OpenApiGenerator
from api_doc_synth.parser.base import RouteRecord

OUTPUT_FILES = {"yaml": "openapi.yml", "json": "openapi.json"}

ENV_VAR = "APP_ENV"


def to_yaml(document: dict) -> str:
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)


def to_json(document: dict) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def output_formats(extensions: str) -> list[str]:
    return ["yaml", "json"] if extensions == "both" else [extensions]


def write_document(document: dict, output_dir: Path, extensions: str = "both") -> list[Path]:
    """Write ``openapi.yml`` and/or ``openapi.json``; returns the written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for fmt in output_formats(extensions):
        path = output_dir / OUTPUT_FILES[fmt]
        content = to_yaml(document) if fmt == "yaml" else to_json(document)
        path.write_text(content, encoding="utf-8")
        written.append(path)
    return written


def read_document(file_path: Path) -> dict:
    """Parse a previously written document (YAML or JSON)."""
    data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "openapi" not in data:
        raise ValueError(f"{file_path}: not an OpenAPI document")
    return data


def is_production(options: GeneratorOptions, env: str | None = None) -> bool:
    env = env if env is not None else os.environ.get(ENV_VAR, "")
    return env == options.production_env


def load_document(
    routes: list[RouteRecord],
    options: GeneratorOptions,
    env: str | None = None,
    fmt: str = "yaml",
    output_dir: Path | None = None,
) -> dict:
    """The document for ``routes``.

    In the production environment the file written earlier under
    ``output_dir`` (default: the project root) is returned without
    generating.
    """
    if is_production(options, env):
        return read_document((output_dir or options.root) / OUTPUT_FILES[fmt])
    return generate(routes, options).document


def generate(routes: list[RouteRecord], options: GeneratorOptions) -> GenerationResult:
    return OpenApiGenerator(options).generate(routes)
