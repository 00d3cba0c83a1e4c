"""Core validation data structures and the validator contract."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import ProjectConfig


class Status(str, Enum):
    PENDING = "PENDING"
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"
    ERROR = "ERROR"


class SourceError(RuntimeError):
    """Raised when a validator's required data source is missing or failed to prepare."""


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class Check:
    """A single recorded error, warning, or passed check."""

    message: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "metadata": dict(self.metadata), "timestamp": self.timestamp}


class ValidationResult:
    """Findings from one validator run.

    The status is always derived from the recorded findings: FAIL if any
    error, else WARN if any warning, else PASS if any check passed, else
    PENDING. ERROR is reserved for results synthesised by the engine when the
    validator itself raised.
    """

    def __init__(self, validator: str, metadata: Mapping[str, Any] | None = None) -> None:
        self.validator = validator
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self.timestamp = _now()
        self.duration = 0.0
        self._errors: List[Check] = []
        self._warnings: List[Check] = []
        self._passed: List[Check] = []
        self._errored = False

    @classmethod
    def from_exception(cls, validator: str, exc: BaseException) -> "ValidationResult":
        result = cls(validator)
        result._errors.append(
            Check(f"Error running validator: {exc}", {"exception": type(exc).__name__})
        )
        result._errored = True
        return result

    @classmethod
    def combine(cls, validator: str, results: Iterable["ValidationResult"]) -> "ValidationResult":
        """Merge several results, e.g. the same validator run against many URLs."""
        combined = cls(validator)
        for result in results:
            combined._errors.extend(result._errors)
            combined._warnings.extend(result._warnings)
            combined._passed.extend(result._passed)
            combined._errored = combined._errored or result._errored
            combined.duration += result.duration
        return combined

    @property
    def errors(self) -> Tuple[Check, ...]:
        return tuple(self._errors)

    @property
    def warnings(self) -> Tuple[Check, ...]:
        return tuple(self._warnings)

    @property
    def passed(self) -> Tuple[Check, ...]:
        return tuple(self._passed)

    @property
    def status(self) -> Status:
        if self._errored:
            return Status.ERROR
        if self._errors:
            return Status.FAIL
        if self._warnings:
            return Status.WARN
        if self._passed:
            return Status.PASS
        return Status.PENDING

    def add_error(self, message: str, metadata: Mapping[str, Any] | None = None) -> None:
        self._errors.append(Check(message, dict(metadata or {})))

    def add_warning(self, message: str, metadata: Mapping[str, Any] | None = None) -> None:
        self._warnings.append(Check(message, dict(metadata or {})))

    def add_pass(self, message: str, metadata: Mapping[str, Any] | None = None) -> None:
        self._passed.append(Check(message, dict(metadata or {})))

    def summary(self) -> Dict[str, Any]:
        return {
            "validator": self.validator,
            "status": self.status.value,
            "total": len(self._errors) + len(self._warnings) + len(self._passed),
            "errors": len(self._errors),
            "warnings": len(self._warnings),
            "passed": len(self._passed),
            "duration": round(self.duration, 4),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validator": self.validator,
            "status": self.status.value,
            "errors": [check.to_dict() for check in self._errors],
            "warnings": [check.to_dict() for check in self._warnings],
            "passed": [check.to_dict() for check in self._passed],
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp,
            "duration": round(self.duration, 4),
            "summary": self.summary(),
        }


@dataclass(frozen=True)
class TestUrl:
    """A live page to fetch and the components expected on it."""

    __test__ = False

    url: str
    page: str
    expected_components: Tuple[str, ...] = ()


@dataclass
class ValidationContext:
    """Inputs shared by all validators in one engine run."""

    config: ProjectConfig
    theme_dir: Optional[Path] = None
    urls: List[TestUrl] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def resolved_theme_dir(self) -> Path:
        return self.theme_dir or self.config.theme.theme_dir


class Validator(ABC):
    """Contract implemented by every validator.

    Subclasses declare the names of the sources they consume; the engine
    prepares those sources and hands them to :meth:`validate`, which records
    findings on :attr:`result` through :meth:`check`.
    """

    name: str = ""
    description: str = ""
    required_sources: Sequence[str] = ()

    def __init__(self) -> None:
        self.result = ValidationResult(self.name)

    def reset(self) -> None:
        self.result = ValidationResult(self.name)

    @abstractmethod
    def validate(self, sources: Mapping[str, Any], context: ValidationContext) -> None:
        """Inspect sources and record errors, warnings, and passed checks."""

    def check(
        self,
        condition: bool,
        message: str,
        *,
        severity: str = "error",
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        """Record ``message`` as passed when ``condition`` holds, else as an error or warning."""
        if condition:
            self.result.add_pass(message, metadata)
        elif severity == "warning":
            self.result.add_warning(message, metadata)
        else:
            self.result.add_error(message, metadata)
        return bool(condition)

    def check_contains(
        self, text: str, needle: str, message: str, *, severity: str = "error"
    ) -> bool:
        return self.check(needle in text, message, severity=severity, metadata={"expected": needle})

    def check_file_exists(self, path: Path, message: str, *, severity: str = "error") -> bool:
        return self.check(path.exists(), message, severity=severity, metadata={"path": str(path)})

    def check_pattern(
        self,
        text: str,
        pattern: str | re.Pattern[str],
        message: str,
        *,
        should_match: bool = True,
        severity: str = "error",
    ) -> bool:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        found = compiled.search(text) is not None
        return self.check(
            found == should_match, message, severity=severity, metadata={"pattern": compiled.pattern}
        )


def extract_context(text: str, index: int, radius: int = 100) -> str:
    """Return the text surrounding ``index`` for error messages."""
    start = max(0, index - radius)
    end = min(len(text), index + radius)
    return text[start:end].strip()


__all__ = [
    "Check",
    "SourceError",
    "Status",
    "TestUrl",
    "ValidationContext",
    "ValidationResult",
    "Validator",
    "extract_context",
]
