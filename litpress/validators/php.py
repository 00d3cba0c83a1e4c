"""PHP syntax validation via ``php -l`` plus a static pre-scan."""

from __future__ import annotations

import re
import subprocess
import tempfile
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ..logging import get_logger
from .base import ValidationContext, Validator
from .sources import ThemeFiles

_LOGGER = get_logger("validators.php")

_PHP_ERROR = re.compile(r"PHP (?:Parse|Fatal) error:\s*(.+?) in (.+?) on line (\d+)")
_PHP_ERROR_PREFIX = re.compile(r"PHP (?:Parse|Fatal) error:\s*")
_NO_ERRORS = "No syntax errors detected"


def parse_php_error(output: str) -> str:
    """Reduce ``php -l`` output to ``Line N: message``."""
    for line in output.splitlines():
        if "PHP Parse error:" in line or "PHP Fatal error:" in line:
            match = _PHP_ERROR.search(line)
            if match:
                return f"Line {match.group(3)}: {match.group(1)}"
            return _PHP_ERROR_PREFIX.sub("", line).strip()
    return output.strip()


def detect_common_issues(content: str) -> List[str]:
    """Line-based heuristics for problems ``php -l`` cannot see or reports poorly."""
    issues: List[str] = []
    lines = content.splitlines()
    for index, raw in enumerate(lines):
        line = raw.strip()
        number = index + 1
        if "echo " in line and not line.endswith(";"):
            if line.count("'") % 2 or line.count('"') % 2:
                issues.append(f"Line {number}: possibly unbalanced quotes in echo")
        if "${" in line and "}" in line and "php echo" in line:
            issues.append(f"Line {number}: template string left inside a PHP echo")
        if "<?php" in line and "?>" not in line and len(line) > 50:
            following = " ".join(lines[index + 1 : index + 4])
            if "?>" not in following:
                issues.append(f"Line {number}: PHP tag opened without a nearby close")
        if "echo $" in line and "esc_" not in line:
            issues.append(f"Line {number}: variable echoed without escaping")
    return issues


class PHPSyntaxValidator(Validator):
    """Lints every PHP file of the generated theme."""

    name = "php"
    description = "PHP syntax (php -l) and unsafe output patterns"
    required_sources = ("theme",)

    def __init__(self, php_executable: Optional[str] = None) -> None:
        super().__init__()
        self._php = php_executable

    def validate(self, sources: Mapping[str, Any], context: ValidationContext) -> None:
        theme: ThemeFiles = sources["theme"]
        php = self._php or context.config.validation.php_executable
        version = self.php_version(php)
        if version is None:
            self.check(
                False,
                "PHP is not available; only the static pre-scan was run",
                severity="warning",
                metadata={"executable": php},
            )
        else:
            _LOGGER.debug("Using %s", version)

        files = theme.php_files()
        for path in files:
            relative = theme.relative(path)
            for issue in detect_common_issues(theme.read(path)):
                self.result.add_warning(f"Pre-scan {relative}: {issue}", {"file": relative})
            if version is None:
                continue
            error = self.lint_file(path, php)
            self.check(
                error is None,
                f"{relative}: {error}" if error else f"{relative}: no syntax errors",
                metadata={"file": relative},
            )
        self.result.metadata["files"] = len(files)

    @staticmethod
    def php_version(php: str = "php") -> Optional[str]:
        try:
            completed = subprocess.run(
                [php, "--version"], check=True, capture_output=True, text=True
            )
        except (FileNotFoundError, subprocess.CalledProcessError):
            return None
        lines = completed.stdout.strip().splitlines()
        return lines[0] if lines else php

    @staticmethod
    def lint_file(path: Path, php: str = "php") -> Optional[str]:
        """Return a readable syntax error for ``path``, or ``None`` when it lints cleanly."""
        try:
            completed = subprocess.run(
                [php, "-l", str(path)], check=True, capture_output=True, text=True
            )
        except FileNotFoundError as exc:
            raise RuntimeError(f"PHP executable not found: {php}") from exc
        except subprocess.CalledProcessError as exc:
            return parse_php_error(exc.stderr or exc.stdout or str(exc))
        if _NO_ERRORS in completed.stdout:
            return None
        return parse_php_error(completed.stdout)

    @classmethod
    def lint_content(cls, content: str, php: str = "php") -> Optional[str]:
        """Lint a PHP string before it is written to the theme."""
        with tempfile.TemporaryDirectory(prefix="litpress-lint-") as tmp:
            target = Path(tmp) / "snippet.php"
            target.write_text(content, encoding="utf-8")
            return cls.lint_file(target, php)


__all__ = ["PHPSyntaxValidator", "detect_common_issues", "parse_php_error"]
