"""Data sources prepared once per validation run and shared by validators."""

from __future__ import annotations

import gzip
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..logging import get_logger
from ..metadata import load_page_templates, parse_component, read_json_file
from ..models import ComponentMetadata, PageTemplate
from .base import TestUrl, ValidationContext

_LOGGER = get_logger("validators.sources")

_MAIN_FILES = ("style.css", "functions.php", "index.php", "header.php", "footer.php", "404.php", "search.php")
_HOMEPAGE_TEMPLATES = ("front-page", "home", "index")


class DataSource(ABC):
    """Named input prepared once per engine run."""

    name: str = ""

    @abstractmethod
    def prepare(self, context: ValidationContext) -> Any:
        """Load and return the data shared with validators."""


@dataclass
class ProjectData:
    """Metadata and page templates for one project."""

    raw_metadata: Dict[str, Any]
    components: Dict[str, ComponentMetadata]
    pages: Dict[str, PageTemplate] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def used_components(self) -> Dict[str, List[str]]:
        """Map each component name to the pages that use it."""
        used: Dict[str, List[str]] = {}
        for page in self.pages.values():
            for usage in page.components:
                used.setdefault(usage.name, []).append(page.name)
        return used


class ConfigSource(DataSource):
    """Loads metadata.json and page-templates.json, failing fast on bad input."""

    name = "config"

    def prepare(self, context: ValidationContext) -> ProjectData:
        theme = context.config.theme
        raw = read_json_file(theme.metadata_path, "metadata.json")
        components = {
            name: parse_component(name, entry) for name, entry in raw.items() if isinstance(entry, dict)
        }
        pages: Dict[str, PageTemplate] = {}
        if theme.page_templates_path.exists():
            pages = load_page_templates(theme.page_templates_path)
        else:
            _LOGGER.debug("No page templates at %s", theme.page_templates_path)

        data = ProjectData(raw_metadata=raw, components=components, pages=pages)
        used = data.used_components()
        for name in sorted(set(used) - set(components)):
            data.warnings.append(f"Component '{name}' is used in page templates but has no metadata")
        for name in sorted(set(components) - set(used)):
            data.warnings.append(f"Component '{name}' has metadata but is not used by any page template")
        for warning in data.warnings:
            _LOGGER.warning(warning)
        return data

    @staticmethod
    def test_urls(base_url: str, pages: Mapping[str, PageTemplate]) -> List[TestUrl]:
        """Return the homepage plus one URL per page template, with expected components."""
        base = base_url.rstrip("/")
        homepage: Tuple[str, ...] = ()
        urls: List[TestUrl] = []
        for name, page in pages.items():
            expected = tuple(usage.name for usage in page.components)
            if name in _HOMEPAGE_TEMPLATES:
                homepage = homepage + expected
                continue
            if name.startswith("single-"):
                continue
            urls.append(TestUrl(url=f"{base}/{page.slug}/", page=name, expected_components=expected))
        return [TestUrl(url=f"{base}/", page="home", expected_components=homepage)] + urls


@dataclass
class FetchedPage:
    """Result of fetching one URL. A failed fetch carries ``error`` and no HTML."""

    url: str
    html: str
    status_code: int
    error: Optional[str] = None
    page: str = ""
    expected_components: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 400


class HTMLSource(DataSource):
    """Fetches the rendered HTML for every URL in the context."""

    name = "html"

    def __init__(
        self,
        *,
        opener: Callable[..., Any] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._opener = opener
        self._sleep = sleep or time.sleep
        self.last_fetched: Dict[str, FetchedPage] = {}

    def prepare(self, context: ValidationContext) -> Dict[str, FetchedPage]:
        self.last_fetched = {test_url.url: self.fetch(test_url, context) for test_url in context.urls}
        return dict(self.last_fetched)

    def fetch(self, test_url: TestUrl, context: ValidationContext) -> FetchedPage:
        settings = context.config.validation
        attempts = max(1, settings.retries + 1)
        last_error = ""
        status_code = 0
        for attempt in range(1, attempts + 1):
            try:
                html, status_code = self._get(test_url.url, settings.user_agent, settings.timeout)
                _LOGGER.debug("Fetched %s (%d)", test_url.url, status_code)
                return FetchedPage(
                    url=test_url.url,
                    html=html,
                    status_code=status_code,
                    page=test_url.page,
                    expected_components=test_url.expected_components,
                )
            except HTTPError as exc:
                status_code = exc.code
                last_error = f"HTTP {exc.code}: {exc.reason}"
            except (URLError, OSError) as exc:
                reason = getattr(exc, "reason", exc)
                last_error = f"Connection failed: {reason}"
            if attempt < attempts:
                delay = settings.retry_delay * attempt
                _LOGGER.debug("Retrying %s in %.1fs (%s)", test_url.url, delay, last_error)
                self._sleep(delay)

        _LOGGER.warning("Could not fetch %s: %s", test_url.url, last_error)
        return FetchedPage(
            url=test_url.url,
            html="",
            status_code=0,
            error=last_error,
            page=test_url.page,
            expected_components=test_url.expected_components,
        )

    def _get(self, url: str, user_agent: str, timeout: float) -> Tuple[str, int]:
        request = Request(
            url,
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml",
                "Accept-Encoding": "gzip",
            },
        )
        opener = self._opener or urlopen
        with opener(request, timeout=timeout) as response:
            raw = response.read()
            encoding = response.headers.get("Content-Encoding", "") if response.headers else ""
            status = getattr(response, "status", 200)
        if "gzip" in encoding.lower():
            raw = gzip.decompress(raw)
        return raw.decode("utf-8", errors="replace"), int(status)


@dataclass
class ThemeFiles:
    """Index of the PHP and CSS files in a generated theme."""

    root: Path
    main: Dict[str, Path] = field(default_factory=dict)
    pages: List[Path] = field(default_factory=list)
    components: List[Path] = field(default_factory=list)
    includes: List[Path] = field(default_factory=list)

    def php_files(self) -> List[Path]:
        main = [path for path in self.main.values() if path.suffix == ".php"]
        return main + self.pages + self.components + self.includes

    def read(self, path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="replace")

    def relative(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.root))
        except ValueError:
            return str(path)


class ThemeSource(DataSource):
    """Resolves the theme directory and indexes its files."""

    name = "theme"

    def prepare(self, context: ValidationContext) -> ThemeFiles:
        root = context.resolved_theme_dir
        if not root.is_dir():
            raise FileNotFoundError(f"Theme directory not found: {root}")
        files = ThemeFiles(root=root)
        for filename in _MAIN_FILES:
            path = root / filename
            if path.exists():
                files.main[filename] = path
        files.pages = sorted(
            path for pattern in ("page-*.php", "single-*.php", "front-page.php") for path in root.glob(pattern)
        )
        components = root / "components"
        if components.is_dir():
            files.components = sorted(components.rglob("*.php"))
        includes = root / "inc"
        if includes.is_dir():
            files.includes = sorted(includes.rglob("*.php"))
        _LOGGER.debug("Indexed %d PHP files under %s", len(files.php_files()), root)
        return files


__all__ = [
    "ConfigSource",
    "DataSource",
    "FetchedPage",
    "HTMLSource",
    "ProjectData",
    "ThemeFiles",
    "ThemeSource",
]
