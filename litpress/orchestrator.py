"""Coordinates generation and validation runs for a project directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .config import ProjectConfig, load_config
from .generator import ComponentLinter, GenerationResult, GenerationStep, ThemeGenerator
from .logging import get_logger
from .metadata import MetadataStore, load_page_templates
from .translator import TranslationOutcome, Translator, extract
from .translator.escaping import EscapePolicy
from .validators import (
    LIVE_VALIDATORS,
    OFFLINE_VALIDATORS,
    ConfigSource,
    HTMLSource,
    LoggingMiddleware,
    PHPSyntaxValidator,
    ThemeSource,
    ValidationContext,
    ValidationEngine,
    ValidationReport,
    consolidate,
    discover_validators,
)

OFFLINE_REPORT = "offline-validation-report.json"
LIVE_REPORT = "live-validation-report.json"


@dataclass
class LiveOutcome:
    """Per-URL reports, their consolidation, and URLs that could not be reached."""

    reports: List[ValidationReport]
    consolidated: ValidationReport
    connection_errors: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.consolidated.failed or bool(self.connection_errors)


class Orchestrator:
    """Entry point shared by the CLI and the HTTP service."""

    def __init__(
        self,
        *,
        translator: Translator | None = None,
        post_steps: Sequence[GenerationStep] = (),
        lint_components: bool = False,
        html_opener: Callable[..., Any] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.translator = translator or Translator()
        self.post_steps = list(post_steps)
        self.lint_components = lint_components
        self._html_opener = html_opener
        self._sleep = sleep
        self.logger = get_logger("orchestrator")

    def load_config(self, path: str | Path) -> ProjectConfig:
        return load_config(Path(path).expanduser())

    def load_store(self, config: ProjectConfig) -> MetadataStore:
        page_templates = config.theme.page_templates_path
        return MetadataStore.load(
            config.theme.metadata_path, page_templates if page_templates.exists() else None
        )

    def run_generate(self, path: str | Path) -> GenerationResult:
        config = self.load_config(path)
        self.logger.info("Loading metadata from %s", config.theme.metadata_path)
        store = self.load_store(config)
        generator = ThemeGenerator(
            config,
            store,
            translator=self.translator,
            post_steps=self.post_steps,
            lint=self.component_linter(config),
        )
        return generator.generate()

    def component_linter(self, config: ProjectConfig) -> Optional[ComponentLinter]:
        """Return a ``php -l`` check for emitted components, or None when linting is off or PHP is missing."""
        if not self.lint_components:
            return None
        php = config.validation.php_executable
        if PHPSyntaxValidator.php_version(php) is None:
            self.logger.warning("PHP not available (%s); generated components will not be linted", php)
            return None
        return lambda content: PHPSyntaxValidator.lint_content(content, php)

    def run_offline(
        self,
        path: str | Path,
        validators: Optional[Sequence[str]] = None,
        *,
        json_output: Optional[Path] = None,
    ) -> ValidationReport:
        config = self.load_config(path)
        engine = (
            ValidationEngine.builder("Offline Validation Report")
            .validators(discover_validators(list(validators) if validators is not None else OFFLINE_VALIDATORS))
            .source(ConfigSource())
            .source(ThemeSource())
            .middleware(LoggingMiddleware())
            .build()
        )
        context = ValidationContext(config=config, options={"mode": "offline"})
        report = engine.run(context)
        report.metadata.update({"mode": "offline", "theme": str(config.theme.theme_dir)})
        if json_output is not None:
            report.write_json(json_output)
        return report

    def run_live(
        self,
        path: str | Path,
        base_url: Optional[str] = None,
        *,
        json_output: Optional[Path] = None,
    ) -> LiveOutcome:
        config = self.load_config(path)
        base = base_url or config.validation.base_url
        pages = {}
        if config.theme.page_templates_path.exists():
            pages = load_page_templates(config.theme.page_templates_path)
        urls = ConfigSource.test_urls(base, pages)
        self.logger.info("Validating %d URLs under %s", len(urls), base)

        reports: List[ValidationReport] = []
        connection_errors: List[str] = []
        for test_url in urls:
            html_source = HTMLSource(opener=self._html_opener, sleep=self._sleep)
            engine = (
                ValidationEngine.builder(f"Live Validation: {test_url.url}")
                .validators(discover_validators(LIVE_VALIDATORS))
                .source(html_source)
                .build()
            )
            context = ValidationContext(config=config, urls=[test_url], options={"mode": "live"})
            report = engine.run(context)
            report.metadata.update({"url": test_url.url, "page": test_url.page})
            page = html_source.last_fetched.get(test_url.url)
            if page is not None and not page.ok:
                connection_errors.append(f"{test_url.url}: {page.error}")
            reports.append(report)

        consolidated = consolidate("Live Validation Report", reports)
        consolidated.metadata.update({"mode": "live", "base_url": base, "connection_errors": connection_errors})
        if json_output is not None:
            consolidated.write_json(json_output)
        return LiveOutcome(reports=reports, consolidated=consolidated, connection_errors=connection_errors)

    def translate_source(
        self,
        source: str,
        field_types: Mapping[str, str] | None = None,
        theme_name: str = "theme",
        escapes: Mapping[str, str] | None = None,
    ) -> Optional[TranslationOutcome]:
        """Translate the render() template of a Lit source, or ``None`` if it has none."""
        template = extract(source)
        if template is None:
            return None
        policy = EscapePolicy(escapes=escapes, field_types=field_types)
        return self.translator.translate_unit(template, policy=policy, text_domain=theme_name)


__all__ = ["LIVE_REPORT", "LiveOutcome", "OFFLINE_REPORT", "Orchestrator"]
