"""Tests for litpress.validators.report."""

from __future__ import annotations

import json
from pathlib import Path

from litpress.validators import Status, ValidationReport, ValidationResult, aggregate, consolidate


def _result(name: str, *, errors: int = 0, warnings: int = 0, passed: int = 0) -> ValidationResult:
    result = ValidationResult(name)
    for index in range(errors):
        result.add_error(f"error {index}")
    for index in range(warnings):
        result.add_warning(f"warning {index}")
    for index in range(passed):
        result.add_pass(f"passed {index}")
    return result


def test_overall_status_law() -> None:
    assert aggregate("r", [_result("a", passed=1)]).overall_status is Status.PASS
    assert aggregate("r", [_result("a", passed=1), _result("b", warnings=1)]).overall_status is Status.WARN
    assert aggregate("r", [_result("a", warnings=1), _result("b", errors=1)]).overall_status is Status.FAIL
    errored = ValidationResult.from_exception("c", RuntimeError("boom"))
    report = aggregate("r", [_result("a", passed=1), errored])
    assert report.overall_status is Status.FAIL
    assert report.failed


def test_stats_count_validators_and_checks() -> None:
    report = aggregate(
        "r",
        [
            _result("a", passed=2),
            _result("b", warnings=1, passed=1),
            _result("c", errors=2),
            ValidationResult.from_exception("d", RuntimeError("boom")),
        ],
    )

    stats = report.stats()

    assert stats["total_validators"] == 4
    assert (stats["passed"], stats["warnings"], stats["failed"], stats["errors"]) == (1, 1, 1, 1)
    assert stats["total_checks"] == 7
    assert stats["total_errors"] == 3
    assert stats["total_warnings"] == 1
    assert stats["total_passed"] == 3


def test_render_text_truncates_long_lists() -> None:
    report = aggregate("Offline Validation Report", [_result("php", errors=7, warnings=4), _result("assets", passed=1)])

    text = report.render_text(max_errors=5, max_warnings=3)

    assert "Offline Validation Report" in text
    assert "Overall status: FAIL" in text
    assert "[FAIL] php (0 passed, 4 warnings, 7 errors)" in text
    assert "  ERROR: error 4" in text
    assert "ERROR: error 5" not in text
    assert "  ... and 2 more errors" in text
    assert "  WARN: warning 2" in text
    assert "WARN: warning 3" not in text
    assert "  ... and 1 more warnings" in text
    assert text.index("[PASS] assets") < text.index("[FAIL] php")


def test_to_dict_and_write_json(tmp_path: Path) -> None:
    report = aggregate("r", [_result("a", passed=1)], {"mode": "offline"})

    target = report.write_json(tmp_path / "reports" / "offline.json")
    payload = json.loads(target.read_text(encoding="utf-8"))

    assert set(payload) == {"name", "overallStatus", "stats", "results", "metadata", "startTime", "endTime"}
    assert payload["overallStatus"] == "PASS"
    assert payload["metadata"] == {"mode": "offline"}
    assert list(payload["results"]) == ["a"]
    assert payload["results"]["a"]["validator"] == "a"
    assert payload["results"]["a"]["summary"]["passed"] == 1
    assert payload["endTime"] is not None


def test_unfinished_report_has_no_end_time() -> None:
    report = ValidationReport("r")
    report.add(_result("a", passed=1))

    assert report.to_dict()["endTime"] is None


def test_consolidate_merges_results_per_validator() -> None:
    home = aggregate("home", [_result("seo", passed=3), _result("assets", warnings=1)], {"url": "http://x/"})
    about = aggregate("about", [_result("seo", errors=1, passed=2), _result("assets", passed=1)], {"url": "http://x/about/"})

    merged = consolidate("Live Validation Report", [home, about])

    seo = merged.result_for("seo")
    assert seo is not None
    assert len(seo.passed) == 5
    assert len(seo.errors) == 1
    assert seo.status is Status.FAIL
    assert merged.result_for("assets").status is Status.WARN
    assert merged.metadata == {"pages": {"http://x/": "WARN", "http://x/about/": "FAIL"}}
    assert merged.overall_status is Status.FAIL


def test_aggregate_accepts_results_by_validator_name() -> None:
    report = aggregate("r", {"php": _result("php", passed=1), "seo": _result("seo", warnings=1)})

    assert [result.validator for result in report.results] == ["php", "seo"]
    assert report.result_for("seo").status is Status.WARN
    assert set(report.to_dict()["results"]) == {"php", "seo"}


def test_report_keeps_one_result_per_validator() -> None:
    report = ValidationReport("r")
    report.add(_result("php", errors=1))
    report.add(_result("php", passed=1))

    assert len(report.results) == 1
    assert report.overall_status is Status.PASS
