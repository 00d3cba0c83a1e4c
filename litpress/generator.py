"""Theme generator: translates every component and writes a complete theme, or nothing."""

from __future__ import annotations

import json
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .config import ConfigError, ProjectConfig
from .emitter import ComponentEmitter, ensure_escape_declarations
from .logging import get_logger
from .metadata import MetadataStore
from .models import Parameter
from .pages import PageTemplateBuilder
from .rendering import create_environment
from .translator import EscapePolicy, Translator, clean_css, extract, extract_properties, extract_styles
from .translator.context import UNDECLARED_PROPERTY, TranslationDiagnostic

_LOGGER = get_logger("generator")

TRANSLATION_REPORT = "translation-report.json"
THEME_VERSION = "1.0.0"
_SCAFFOLD_FILES = (
    "style.css",
    "functions.php",
    "index.php",
    "header.php",
    "footer.php",
    "404.php",
    "search.php",
)
_SCAFFOLD_DIRS = ("assets", "assets/css", "assets/js", "assets/img", "components", "inc")

GenerationStep = Callable[[Path], None]
ComponentLinter = Callable[[str], Optional[str]]


class GenerationError(RuntimeError):
    """Raised after a failed generation run has been rolled back."""


@dataclass
class ComponentArtifact:
    """One emitted component file and the translator's notes about it."""

    name: str
    path: Path
    diagnostics: List[TranslationDiagnostic] = field(default_factory=list)


@dataclass
class GenerationResult:
    theme_dir: Path
    components: List[ComponentArtifact]
    pages: List[Path]
    skipped: List[str]


class ThemeGenerator:
    """Builds the theme directory from Lit sources, metadata and page templates."""

    def __init__(
        self,
        config: ProjectConfig,
        store: MetadataStore,
        *,
        translator: Translator | None = None,
        emitter: ComponentEmitter | None = None,
        post_steps: Sequence[GenerationStep] = (),
        lint: Optional[ComponentLinter] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.translator = translator or Translator()
        self._env = create_environment()
        self.emitter = emitter or ComponentEmitter(self._env)
        self.post_steps = list(post_steps)
        self.lint = lint
        self.max_workers = max_workers

    @property
    def theme_dir(self) -> Path:
        return self.config.theme.theme_dir

    def generate(self) -> GenerationResult:
        theme_dir = self.theme_dir
        _LOGGER.info("Generating theme '%s' into %s", self.config.theme.name, theme_dir)
        try:
            if theme_dir.exists():
                shutil.rmtree(theme_dir)
            self._scaffold(theme_dir)
            sources = self._component_sources()
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(
                    executor.map(lambda item: self._generate_component(theme_dir, *item), sources)
                )
            artifacts = [artifact for artifact in outcomes if artifact is not None]
            skipped = [name for (name, _), artifact in zip(sources, outcomes) if artifact is None]
            self._write_functions(theme_dir, [artifact.name for artifact in artifacts])
            pages = self._write_pages(theme_dir)
            self._write_translation_report(theme_dir, artifacts)
            for step in self.post_steps:
                _LOGGER.debug("Running post-generation step %s", getattr(step, "__name__", step))
                step(theme_dir)
        except (ConfigError, GenerationError):
            self.rollback()
            raise
        except Exception as exc:
            self.rollback()
            raise GenerationError(f"Theme generation failed: {exc}") from exc

        _LOGGER.info(
            "Generated %d components and %d page templates", len(artifacts), len(pages)
        )
        return GenerationResult(theme_dir=theme_dir, components=artifacts, pages=pages, skipped=skipped)

    def rollback(self) -> None:
        """Delete the whole theme directory so no partial theme survives a failure."""
        if self.theme_dir.exists():
            _LOGGER.warning("Rolling back: removing %s", self.theme_dir)
            shutil.rmtree(self.theme_dir)

    def _component_sources(self) -> List[tuple[str, Path]]:
        components_dir = self.config.theme.components_dir
        if not components_dir.is_dir():
            raise ConfigError(f"FAIL FAST: components directory not found: {components_dir}")
        sources = []
        for directory in sorted(path for path in components_dir.iterdir() if path.is_dir()):
            source = directory / f"{directory.name}.js"
            if source.exists():
                sources.append((directory.name, source))
            else:
                _LOGGER.warning("No %s found; skipping", source)
        return sources

    def _generate_component(self, theme_dir: Path, name: str, source_path: Path) -> Optional[ComponentArtifact]:
        source = source_path.read_text(encoding="utf-8")
        template = extract(source)
        if template is None:
            _LOGGER.warning("%s has no render() template; nothing to translate", name)
            return None

        metadata = self.store.require(name)
        ensure_escape_declarations(metadata)
        outcome = self.translator.translate_unit(
            template,
            policy=EscapePolicy.from_metadata(metadata),
            text_domain=self.config.theme.domain,
            component=name,
        )
        outcome.diagnostics.extend(_undeclared_properties(source, metadata.parameters))
        php = self.emitter.emit(
            name,
            outcome.markup,
            metadata.parameters,
            css=clean_css(extract_styles(source)),
        )
        if self.lint is not None:
            error = self.lint(php)
            if error:
                raise GenerationError(f"Generated PHP for '{name}' does not lint: {error}")
        target = theme_dir / "components" / name / f"{name}.php"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(php, encoding="utf-8")
        _LOGGER.info("Converted %s", name)
        return ComponentArtifact(name=name, path=target, diagnostics=outcome.diagnostics)

    def _scaffold(self, theme_dir: Path) -> None:
        for directory in _SCAFFOLD_DIRS:
            (theme_dir / directory).mkdir(parents=True, exist_ok=True)
        for filename in _SCAFFOLD_FILES:
            if filename == "functions.php":
                continue
            self._render_to(theme_dir / filename, f"{filename}.j2")

    def _write_functions(self, theme_dir: Path, components: List[str]) -> None:
        self._render_to(theme_dir / "functions.php", "functions.php.j2", components=sorted(components))

    def _write_pages(self, theme_dir: Path) -> List[Path]:
        builder = PageTemplateBuilder(self.store, self._env)
        written = []
        for page in self.store.pages.values():
            target = theme_dir / page.filename
            target.write_text(builder.build(page, self.config.theme.domain), encoding="utf-8")
            written.append(target)
        return written

    def _write_translation_report(self, theme_dir: Path, artifacts: List[ComponentArtifact]) -> None:
        payload: Dict[str, object] = {
            "generatedAt": datetime.now(UTC).isoformat(),
            "components": {
                artifact.name: [diagnostic.to_dict() for diagnostic in artifact.diagnostics]
                for artifact in sorted(artifacts, key=lambda item: item.name)
            },
        }
        (theme_dir / TRANSLATION_REPORT).write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _render_to(self, target: Path, template_name: str, **extra: object) -> None:
        template = self._env.get_template(template_name)
        content = template.render(theme=self.config.theme, version=THEME_VERSION, **extra)
        target.write_text(content, encoding="utf-8")


def _undeclared_properties(source: str, parameters: Sequence[Parameter]) -> List[TranslationDiagnostic]:
    declared = {parameter.name for parameter in parameters}
    return [
        TranslationDiagnostic(
            kind=UNDECLARED_PROPERTY,
            expression=f"this.{prop.name}",
            detail=f"Lit property '{prop.name}' ({prop.type}) has no parameter in metadata.json",
        )
        for prop in extract_properties(source)
        if prop.name not in declared
    ]


__all__ = [
    "ComponentArtifact",
    "ComponentLinter",
    "GenerationError",
    "GenerationResult",
    "GenerationStep",
    "TRANSLATION_REPORT",
    "ThemeGenerator",
]
