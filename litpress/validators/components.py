"""Generated component checks, offline against PHP files and live against rendered HTML."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Sequence

from ..generator import TRANSLATION_REPORT
from ..phpcode import function_name_for, snake_case
from ..translator.context import DROPPED_BINDING, HEURISTIC_ESCAPE, UNDECLARED_PROPERTY
from .base import ValidationContext, Validator, extract_context
from .sources import FetchedPage, ProjectData, ThemeFiles

MANUAL_MARKER = "MANUAL IMPLEMENTATION REQUIRED"
LIT_RESIDUE = ("${", "this.", "`", ":host", "lit-html", "LitElement", "@property")
JS_METHODS = (".map(", ".forEach(", ".filter(", ".reduce(", ".find(", "Array.from(", "Object.keys(", "JSON.stringify(")
EVENT_BINDINGS = ("@click=", "@change=", "@submit=", "@input=")
DEBUG_COMMENTS = ("<!-- DEBUG", "<!-- TODO", "<!-- FIXME", "<!-- HACK", "<!-- XXX")
_RENDERED_RESIDUE = ("${", "this.", ":host", "lit-html", "LitElement")
_UNESCAPED_ECHO = re.compile(r"echo\s+\$\w+")
_FALLBACK_PATTERNS = (
    (re.compile(r"\$\w+\s*\|\|\s*['\"]"), "variable OR fallback"),
    (re.compile(r"\?\?"), "nullish coalescing"),
    (re.compile(r"fallback", re.IGNORECASE), "fallback keyword"),
)
_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)


def read_translation_report(theme: ThemeFiles) -> Dict[str, List[Dict[str, Any]]]:
    path = theme.root / TRANSLATION_REPORT
    if not path.exists():
        return {}
    payload = json.loads(path.read_text(encoding="utf-8"))
    components = payload.get("components") if isinstance(payload, dict) else None
    return components if isinstance(components, dict) else {}


class ComponentValidator(Validator):
    """Checks every generated component file against its metadata."""

    name = "components"
    description = "Generated component PHP: render functions, Lit residue, escaping"
    required_sources = ("config", "theme")

    def validate(self, sources: Mapping[str, Any], context: ValidationContext) -> None:
        data: ProjectData = sources["config"]
        theme: ThemeFiles = sources["theme"]
        diagnostics = read_translation_report(theme)

        for name, metadata in sorted(data.components.items()):
            self.check(bool(metadata.type), f"'{name}' metadata declares a type")
            self.check(bool(metadata.php_function), f"'{name}' metadata declares phpFunction")

            path = theme.root / "components" / name / f"{name}.php"
            if not self.check_file_exists(path, f"'{name}' has a generated component file"):
                continue
            content = theme.read(path)
            function = function_name_for(name)
            self.check_pattern(
                content,
                rf"function\s+{re.escape(function)}\s*\(",
                f"'{name}' defines {function}()",
            )
            self._check_php(name, content)

            for entry in diagnostics.get(name, []):
                if entry.get("kind") in (HEURISTIC_ESCAPE, DROPPED_BINDING, UNDECLARED_PROPERTY):
                    self.result.add_warning(
                        f"'{name}': {entry.get('detail')} ({entry.get('expression')})",
                        {"component": name, "kind": entry.get("kind")},
                    )

    def _check_php(self, name: str, content: str) -> None:
        meta = {"component": name}
        for pattern in LIT_RESIDUE:
            index = content.find(pattern)
            self.check(
                index < 0,
                f"'{name}' has no unconverted Lit syntax '{pattern}'",
                metadata={**meta, "context": extract_context(content, index)} if index >= 0 else meta,
            )
        markers = content.count(MANUAL_MARKER)
        self.check(
            markers == 0,
            f"'{name}' has {markers} expression(s) needing manual implementation"
            if markers
            else f"'{name}' needs no manual implementation",
            metadata=meta,
        )
        for method in JS_METHODS:
            if method in content:
                self.result.add_warning(f"'{name}' contains unconverted JavaScript '{method}'", meta)
        self.check("document.write(" not in content, f"'{name}' does not use document.write()", metadata=meta)

        unescaped = _UNESCAPED_ECHO.findall(content)
        self.check(
            not unescaped,
            f"'{name}' echoes variables without escaping: {', '.join(unescaped)}"
            if unescaped
            else f"'{name}' escapes all echoed variables",
            metadata=meta,
        )
        for pattern, label in _FALLBACK_PATTERNS:
            matches = pattern.findall(content)
            if matches:
                self.result.add_warning(
                    f"'{name}' generated PHP contains {label} ({len(matches)}x)", {**meta, "pattern": label}
                )


def component_variations(name: str) -> Sequence[str]:
    return (name, snake_case(name), function_name_for(name))


class RenderedComponentValidator(Validator):
    """Checks rendered pages for expected components and leftover template syntax."""

    name = "rendered-components"
    description = "Rendered HTML: expected components present, no Lit residue"
    required_sources = ("html",)

    def validate(self, sources: Mapping[str, Any], context: ValidationContext) -> None:
        pages: Mapping[str, FetchedPage] = sources["html"]
        for url, page in pages.items():
            if not page.ok:
                self.result.add_warning(f"{url}: page could not be fetched ({page.error})", {"url": url})
                continue
            self.validate_html(url, page.html, page.expected_components)

    def validate_html(self, url: str, html: str, expected: Sequence[str] = ()) -> None:
        lowered = html.lower()
        for component in expected:
            found = any(variation.lower() in lowered for variation in component_variations(component))
            self.check(
                found,
                f"{url}: component '{component}' is rendered",
                severity="warning",
                metadata={"url": url, "component": component},
            )

        markup = _SCRIPT_BLOCK.sub("", html)
        for pattern in _RENDERED_RESIDUE:
            index = markup.find(pattern)
            self.check(
                index < 0,
                f"{url}: no unconverted template syntax '{pattern}'",
                metadata={"url": url, "context": extract_context(markup, index)} if index >= 0 else {"url": url},
            )
        for binding in EVENT_BINDINGS:
            if binding in markup:
                self.result.add_warning(f"{url}: unconverted event binding '{binding}'", {"url": url})
        for comment in DEBUG_COMMENTS:
            if comment in html:
                self.result.add_warning(f"{url}: debug comment '{comment}' in output", {"url": url})


__all__ = [
    "ComponentValidator",
    "RenderedComponentValidator",
    "component_variations",
    "read_translation_report",
]
