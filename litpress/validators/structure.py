"""Theme directory layout checks."""

from __future__ import annotations

from typing import Any, Mapping

from .base import ValidationContext, Validator
from .sources import ThemeFiles

REQUIRED_DIRS = ("assets", "components")
OPTIONAL_DIRS = ("inc", "assets/css", "assets/js", "assets/img")
CRITICAL_FILES = ("style.css", "functions.php", "index.php")
RECOMMENDED_FILES = ("header.php", "footer.php", "404.php", "search.php")


class StructureValidator(Validator):
    name = "structure"
    description = "Required theme directories, files and the style.css header"
    required_sources = ("theme",)

    def validate(self, sources: Mapping[str, Any], context: ValidationContext) -> None:
        theme: ThemeFiles = sources["theme"]
        root = theme.root
        strict = bool(context.options.get("strict_structure", context.config.validation.strict_structure))

        for directory in REQUIRED_DIRS:
            self.check((root / directory).is_dir(), f"Required directory '{directory}/'")
        if strict:
            for directory in OPTIONAL_DIRS:
                self.check(
                    (root / directory).is_dir(), f"Optional directory '{directory}/'", severity="warning"
                )

        for filename in CRITICAL_FILES:
            self.check_file_exists(root / filename, f"Critical file '{filename}'")
        for filename in RECOMMENDED_FILES:
            self.check_file_exists(root / filename, f"Recommended file '{filename}'", severity="warning")

        style = root / "style.css"
        if style.exists():
            self.check_contains(
                style.read_text(encoding="utf-8", errors="replace"),
                "Theme Name:",
                "style.css declares a 'Theme Name:' header",
            )

        components = root / "components"
        if components.is_dir():
            count = sum(1 for _ in components.rglob("*.php"))
            self.check(count > 0, f"components/ contains {count} PHP files", severity="warning")
            self.result.metadata["components"] = count


__all__ = ["CRITICAL_FILES", "RECOMMENDED_FILES", "REQUIRED_DIRS", "StructureValidator"]
