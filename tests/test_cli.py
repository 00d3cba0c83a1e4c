"""CLI parser behaviour tests."""

from __future__ import annotations

import subprocess

import pytest

from litpress.cli import _build_parser, main, offline_validators
from tests._fixtures.project_builder import ProjectBuilder


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "generate"])
    assert args.verbose is True
    assert args.command == "generate"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["validate", "offline", "site", "--debug"])
    assert args.verbose is True
    assert args.mode == "offline"
    assert args.path == "site"


def test_cli_defaults_verbose_to_false() -> None:
    args = _build_parser().parse_args(["validate", "live", "http://example.test"])
    assert args.verbose is False
    assert args.base_url == "http://example.test"
    assert args.project == "."
    assert args.json is False


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ([], ["structure", "metadata", "components", "php"]),
        (["--no-structure"], ["metadata", "components", "php"]),
        (["--components-only"], ["metadata", "components", "php"]),
        (["--no-components"], ["structure", "php"]),
        (["--no-security"], ["structure", "metadata", "components"]),
        (["--no-structure", "--no-components", "--no-security"], []),
    ],
)
def test_offline_validator_selection(flags: list[str], expected: list[str]) -> None:
    args = _build_parser().parse_args(["validate", "offline", *flags])
    assert offline_validators(args) == expected


def test_generate_command_prints_summary(sample_project: ProjectBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    main(["generate", str(sample_project.root)])

    output = capsys.readouterr().out
    assert "Theme generated at" in output
    assert "2 components, 2 page templates" in output


def test_generate_failure_exits_with_hint(project_builder: ProjectBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    project_builder.config()

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(project_builder.root)])

    assert excinfo.value.code == 1
    error = capsys.readouterr().err
    assert "litpress generate failed: FAIL FAST" in error
    assert "Run with --verbose for more details." in error


def test_validate_offline_prints_report(sample_project: ProjectBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    main(["generate", str(sample_project.root)])
    capsys.readouterr()

    main(["validate", "offline", str(sample_project.root), "--no-security"])

    output = capsys.readouterr().out
    assert "Offline Validation Report" in output
    assert "Overall status: PASS" in output
    assert "[PASS] structure" in output


def test_validate_offline_exits_non_zero_on_failure(
    sample_project: ProjectBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", "offline", str(sample_project.root), "--no-security"])

    assert excinfo.value.code == 1
    assert "Overall status: FAIL" in capsys.readouterr().out


def test_validate_offline_without_validators_exits(sample_project: ProjectBuilder) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", "offline", str(sample_project.root), "--no-structure", "--no-components", "--no-security"])

    assert excinfo.value.code == 1


def test_validate_offline_runs_php_lint(
    sample_project: ProjectBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    calls: list[list[str]] = []

    def _fake_run(args, **kwargs) -> subprocess.CompletedProcess:
        calls.append(list(args))
        if args[1] == "--version":
            return subprocess.CompletedProcess(args, 0, stdout="PHP 8.3.0 (cli)\n", stderr="")
        return subprocess.CompletedProcess(args, 0, stdout="No syntax errors detected\n", stderr="")

    monkeypatch.setattr("litpress.validators.php.subprocess.run", _fake_run)
    main(["generate", str(sample_project.root)])

    main(["validate", "offline", str(sample_project.root)])

    assert "[PASS] php" in capsys.readouterr().out
    assert any(call[1] == "-l" for call in calls)


def test_generate_accepts_lint_flag() -> None:
    parser = _build_parser()

    assert parser.parse_args(["generate", "--lint"]).lint is True
    assert parser.parse_args(["generate"]).lint is False
