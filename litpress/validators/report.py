"""Report aggregation for validator results."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from jinja2 import Environment

from ..rendering import create_environment
from .base import Status, ValidationResult

_TEMPLATE_NAME = "report.txt.j2"
DEFAULT_MAX_ERRORS = 5
DEFAULT_MAX_WARNINGS = 3


class ValidationReport:
    """Every result from one engine run, keyed by validator name, plus the aggregate status."""

    def __init__(self, name: str, metadata: Mapping[str, Any] | None = None) -> None:
        self.name = name
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self._results: Dict[str, ValidationResult] = {}
        self.start_time = datetime.now(UTC)
        self.end_time: Optional[datetime] = None

    @property
    def results(self) -> List[ValidationResult]:
        return list(self._results.values())

    def add(self, result: ValidationResult) -> None:
        self._results[result.validator] = result

    def finish(self) -> None:
        self.end_time = datetime.now(UTC)

    def result_for(self, validator: str) -> Optional[ValidationResult]:
        return self._results.get(validator)

    @property
    def overall_status(self) -> Status:
        statuses = {result.status for result in self.results}
        if Status.FAIL in statuses or Status.ERROR in statuses:
            return Status.FAIL
        if Status.WARN in statuses:
            return Status.WARN
        return Status.PASS

    @property
    def failed(self) -> bool:
        return self.overall_status is Status.FAIL

    def stats(self) -> Dict[str, Any]:
        statuses = [result.status for result in self.results]
        total_errors = sum(len(result.errors) for result in self.results)
        total_warnings = sum(len(result.warnings) for result in self.results)
        total_passed = sum(len(result.passed) for result in self.results)
        if self.end_time is not None:
            duration = (self.end_time - self.start_time).total_seconds()
        else:
            duration = sum(result.duration for result in self.results)
        return {
            "total_validators": len(self.results),
            "passed": statuses.count(Status.PASS),
            "warnings": statuses.count(Status.WARN),
            "failed": statuses.count(Status.FAIL),
            "errors": statuses.count(Status.ERROR),
            "total_checks": total_errors + total_warnings + total_passed,
            "total_errors": total_errors,
            "total_warnings": total_warnings,
            "total_passed": total_passed,
            "duration": round(duration, 4),
        }

    def render_text(
        self,
        *,
        max_errors: int = DEFAULT_MAX_ERRORS,
        max_warnings: int = DEFAULT_MAX_WARNINGS,
        env: Environment | None = None,
    ) -> str:
        """Render the human-readable report, listing only the first N errors and warnings."""
        template = (env or create_environment()).get_template(_TEMPLATE_NAME)
        return template.render(
            report=self,
            status=self.overall_status.value,
            stats=self.stats(),
            results=sorted(self.results, key=lambda result: result.validator),
            max_errors=max_errors,
            max_warnings=max_warnings,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "overallStatus": self.overall_status.value,
            "stats": self.stats(),
            "results": {result.validator: result.to_dict() for result in self.results},
            "metadata": dict(self.metadata),
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat() if self.end_time else None,
        }

    def write_json(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        return path


def aggregate(
    name: str,
    results: Union[Mapping[str, ValidationResult], Iterable[ValidationResult]],
    metadata: Mapping[str, Any] | None = None,
) -> ValidationReport:
    """Build a finished report from results given by validator name or as a sequence."""
    if isinstance(results, Mapping):
        results = results.values()
    report = ValidationReport(name, metadata)
    for result in results:
        report.add(result)
    report.finish()
    return report


def consolidate(name: str, reports: Iterable[ValidationReport]) -> ValidationReport:
    """Merge per-URL reports into one report with a combined result per validator."""
    grouped: Dict[str, List[ValidationResult]] = {}
    pages: Dict[str, str] = {}
    for report in reports:
        for result in report.results:
            grouped.setdefault(result.validator, []).append(result)
        if "url" in report.metadata:
            pages[str(report.metadata["url"])] = report.overall_status.value
    combined = [ValidationResult.combine(validator, results) for validator, results in grouped.items()]
    return aggregate(name, combined, {"pages": pages})


__all__ = ["ValidationReport", "aggregate", "consolidate"]
