"""Per-run generation state.

One ``GenerationContext`` is created for each ``generate()`` call and
dropped afterwards, so file contents and parsed annotations never outlive a
run.
"""

import json
from pathlib import Path

from api_doc_synth.config import GeneratorOptions
from api_doc_synth.example import ExampleGenerator
from api_doc_synth.parser.base import AnnotationBlock, Diagnostic
from api_doc_synth.parser.comment import AnnotationParser


class GenerationContext:
    def __init__(self, options: GeneratorOptions):
        self.options = options
        self.custom_paths: dict[str, str] = {}
        self.schemas: dict[str, dict] = {}
        self.diagnostics: list[Diagnostic] = []
        self._files: dict[Path, str | None] = {}
        self._annotations: dict[tuple[Path, str], AnnotationBlock | None] = {}
        self._parser: AnnotationParser | None = None

    # -- diagnostics ----------------------------------------------------------

    def report(self, level: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(level=level, message=message))

    def trace(self, message: str) -> None:
        self.report("debug", message)

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)

    # -- project files --------------------------------------------------------

    def load_custom_paths(self) -> dict[str, str]:
        """Subpath import aliases from ``package.json``.

        ``"#models/*": "./app/models/*.js"`` becomes ``{"#models": "app/models"}``.
        """
        package_file = self.options.root / "package.json"
        if not package_file.exists():
            self.trace(f"No package.json in {self.options.root}")
            return self.custom_paths
        try:
            package = json.loads(package_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            self.report("warning", f"Could not read {package_file}: {exc}")
            return self.custom_paths

        for key, value in (package.get("imports") or {}).items():
            if not isinstance(value, str):
                continue
            self.custom_paths[key.replace("/*", "")] = value.replace("/*.js", "").replace("./", "")
        self.trace(f"Using custom paths {self.custom_paths}")
        return self.custom_paths

    def read_file(self, path: Path) -> str | None:
        """File text, cached by absolute path; ``None`` when unreadable."""
        path = path.resolve()
        if path not in self._files:
            try:
                self._files[path] = path.read_text(encoding="utf-8")
            except OSError:
                self.report("warning", f"File not found: {path}")
                self._files[path] = None
        return self._files[path]

    # -- annotations ----------------------------------------------------------

    @property
    def annotation_parser(self) -> AnnotationParser:
        # built lazily: the registry must be complete before annotations resolve
        if self._parser is None:
            self._parser = AnnotationParser(ExampleGenerator(self.schemas), self.options.common)
        return self._parser

    def annotations(self, source_file: str, action: str) -> AnnotationBlock | None:
        path = (self.options.root / source_file).resolve()
        key = (path, action)
        if key not in self._annotations:
            source = self.read_file(path)
            block = None
            if source is not None:
                result = self.annotation_parser.parse(source, action)
                self.extend(result.diagnostics)
                block = result.block
            self._annotations[key] = block
        return self._annotations[key]
