"""Generator options and their loader.

Options are written with camelCase keys (``tagIndex``, ``authMiddlewares``)
in a YAML or JSON file; snake_case keys are accepted as well.
"""

from pathlib import Path
from typing import Literal

import yaml

from api_doc_synth.parser.base import CamelModel


class OpenapiInfo(CamelModel):
    title: str | None = None
    version: str | None = None
    description: str | None = None


class CommonOptions(CamelModel):
    """Named header/parameter groups referenced by ``@use`` / ``@paramUse``."""

    headers: dict[str, dict] = {}
    parameters: dict[str, list[dict]] = {}


class GeneratorOptions(CamelModel):
    path: str = "."
    tag_index: int = 2
    snake_case: bool = True
    preferred_put_patch: Literal["PUT", "PATCH"] = "PUT"
    ignore: list[str] = []
    auth_middlewares: list[str] = []
    default_security_scheme: str = "BearerAuth"
    security_schemes: dict[str, dict] = {}
    common: CommonOptions = CommonOptions()
    production_env: str = "production"
    output_file_extensions: Literal["both", "json", "yaml"] = "both"
    info: OpenapiInfo | None = None
    title: str | None = None
    version: str | None = None
    description: str | None = None
    debug: bool = False
    file_name_in_summary: bool = False

    @property
    def root(self) -> Path:
        return Path(self.path)

    @property
    def app_path(self) -> Path:
        return self.root / "app"


def load_options(file_path: Path, **overrides) -> GeneratorOptions:
    """Load options from a YAML/JSON file; ``overrides`` that are not None win.

    A relative ``path`` in the file is resolved against the file's directory.
    """
    data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{file_path}: expected a mapping of options")
    options = GeneratorOptions.model_validate(data)
    if not Path(options.path).is_absolute():
        options.path = str((file_path.parent / options.path).resolve())
    for key, value in overrides.items():
        if value is not None:
            setattr(options, key, value)
    return options
