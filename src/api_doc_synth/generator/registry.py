"""Schema registry discovery.

Each category lives in its own directory under ``app/`` (or wherever a
``package.json`` import alias points). Declarations are parsed from
TypeScript sources; serializers and validators are Python modules that are
imported and introspected.
"""

import importlib.util
import inspect
import sys
from pathlib import Path

from pydantic import BaseModel

from api_doc_synth.example import pagination_interface
from api_doc_synth.generator.context import GenerationContext
from api_doc_synth.parser.enums import parse_enums
from api_doc_synth.parser.interface import parse_interfaces
from api_doc_synth.parser.model import parse_model
from api_doc_synth.parser.schema import REF_PREFIX
from api_doc_synth.parser.validator import as_validator, validator_to_schema

# category -> (alias, directory names; the first is the current layout)
CATEGORIES = {
    "interfaces": ("#interfaces", ("interfaces", "Interfaces")),
    "serializers": ("#serializers", ("serializers",)),
    "models": ("#models", ("models", "Models")),
    "validators": ("#validators", ("validators",)),
    "enums": ("#types", ("types", "Types")),
}


def builtin_schemas() -> dict[str, dict]:
    return {
        "Any": {"description": "Any JSON object not defined as schema"},
        **pagination_interface(),
    }


def category_dir(context: GenerationContext, category: str) -> Path | None:
    """Directory holding ``category`` sources, ``None`` when there is none."""
    alias, names = CATEGORIES[category]
    candidates = [context.options.app_path / name for name in names]
    if alias in context.custom_paths:
        candidates[0] = context.options.root / context.custom_paths[alias]
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    context.trace(f"{category.capitalize()} paths don't exist: {', '.join(str(c) for c in candidates)}")
    return None


def category_files(context: GenerationContext, category: str, suffix: str) -> list[Path]:
    directory = category_dir(context, category)
    if directory is None:
        return []
    files = sorted(path for path in directory.rglob(f"*{suffix}") if path.is_file())
    context.trace(f"Found {category} files {[str(f) for f in files]}")
    return files


def import_module_file(path: Path, category: str):
    """Execute a Python source file as a fresh module."""
    name = f"api_doc_synth_{category}_{path.stem}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot import {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


def _exports(module):
    for name, value in vars(module).items():
        if name.startswith("_"):
            continue
        if inspect.isclass(value) and getattr(value, "__module__", None) != module.__name__:
            continue
        yield name, value


# -- categories ---------------------------------------------------------------


def get_models(context: GenerationContext) -> dict[str, dict]:
    models = {}
    for path in category_files(context, "models", ".ts"):
        source = context.read_file(path)
        if source is None:
            continue
        parsed = parse_model(source, context.options.snake_case)
        name = parsed.name or path.stem
        schema = {"type": "object", "properties": parsed.properties, "description": f"{name} (Model)"}
        if parsed.required:
            schema["required"] = parsed.required
        models[name] = schema
    return models


def get_interfaces(context: GenerationContext, known: dict[str, dict]) -> dict[str, dict]:
    """Interfaces, with ``extends`` resolved against ``known`` and earlier files."""
    interfaces = {}
    for path in category_files(context, "interfaces", ".ts"):
        source = context.read_file(path)
        if source is None:
            continue
        interfaces.update(parse_interfaces(source, {**known, **interfaces}))
    return interfaces


def _serializer_schema(name: str, value) -> dict[str, dict]:
    if isinstance(value, dict):
        return {name: value}
    if inspect.isclass(value) and issubclass(value, BaseModel):
        schema = value.model_json_schema(ref_template=REF_PREFIX + "{model}")
        definitions = schema.pop("$defs", {})
        schema.pop("title", None)
        schema.setdefault("description", f"{name} (Serializer)")
        return {name: schema, **definitions}
    return {}


def get_serializers(context: GenerationContext) -> dict[str, dict]:
    serializers = {}
    for path in category_files(context, "serializers", ".py"):
        try:
            module = import_module_file(path, "serializers")
            for name, value in _exports(module):
                if "Serializer" in name:
                    for key, schema in _serializer_schema(name, value).items():
                        serializers.setdefault(key, schema)
        except Exception as exc:  # user code may raise anything
            context.report("error", f"Could not load serializers from {path}: {exc}")
    return serializers


def get_validators(context: GenerationContext) -> dict[str, dict]:
    validators = {}
    for path in category_files(context, "validators", ".py"):
        try:
            module = import_module_file(path, "validators")
            for name, value in _exports(module):
                validator = as_validator(value)
                if validator is None:
                    continue
                schema = validator_to_schema(validator)
                schema["description"] = f"{name} (Validator)"
                validators[name] = schema
        except Exception as exc:  # user code may raise anything
            context.report(
                "error",
                f"Could not load validators from {path}: {exc}. "
                "Validator modules are imported on their own and must not depend on a running application.",
            )
    return validators


def get_enums(context: GenerationContext) -> dict[str, dict]:
    enums = {}
    for path in category_files(context, "enums", ".ts"):
        source = context.read_file(path)
        if source is not None:
            enums.update(parse_enums(source))
    return enums


def build_registry(context: GenerationContext) -> dict[str, dict]:
    """Populate ``context.schemas``.

    Precedence, first write wins: built-ins, interfaces, serializers, models,
    validators, enums. Models are parsed before interfaces so an interface
    may extend a model, but they are merged in precedence order.
    """
    builtins = builtin_schemas()
    models = get_models(context)
    interfaces = get_interfaces(context, {**builtins, **models})
    sources = [
        ("built-in", builtins),
        ("interface", interfaces),
        ("serializer", get_serializers(context)),
        ("model", models),
        ("validator", get_validators(context)),
        ("enum", get_enums(context)),
    ]

    registry = context.schemas
    for label, schemas in sources:
        for name, schema in schemas.items():
            if name in registry:
                context.trace(f"Ignoring {label} schema {name}: already defined")
                continue
            registry[name] = schema
    context.trace(f"Found schemas {list(registry)}")
    return registry
