"""CLI entrypoints for litpress commands."""

from __future__ import annotations

import argparse
import sys
import traceback
from pathlib import Path
from typing import List, NoReturn

from .config import ValidationSettings
from .logging import configure_logging
from .orchestrator import LIVE_REPORT, OFFLINE_REPORT, Orchestrator
from .validators import ValidationReport


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        "--debug",
        dest="verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity and show stack traces for troubleshooting.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root containing .litpress.yml (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="litpress",
        description="Generate and validate WordPress themes from Lit components.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Translate every component and write the theme.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    generate_parser.add_argument(
        "--lint",
        action="store_true",
        help="Run php -l on every component before it is written (skipped when PHP is missing).",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a generated theme offline or against a running site.",
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    modes = validate_parser.add_subparsers(dest="mode", required=True)

    offline_parser = modes.add_parser(
        "offline",
        help="Run filesystem and metadata validators against the generated theme.",
    )
    _add_verbose_option(offline_parser, suppress_default=True)
    _add_path_argument(offline_parser)
    offline_parser.add_argument(
        "--json",
        action="store_true",
        help=f"Also write the full report to {OFFLINE_REPORT}.",
    )
    offline_parser.add_argument("--no-structure", action="store_true", help="Skip theme structure checks.")
    offline_parser.add_argument(
        "--no-security", action="store_true", help="Skip PHP syntax and escaping checks."
    )
    offline_parser.add_argument(
        "--no-components", action="store_true", help="Skip metadata and component checks."
    )
    offline_parser.add_argument(
        "--components-only", action="store_true", help="Skip structure checks, keep component checks."
    )

    live_parser = modes.add_parser(
        "live",
        help="Fetch pages from a running WordPress site and validate the HTML.",
    )
    _add_verbose_option(live_parser, suppress_default=True)
    live_parser.add_argument(
        "base_url",
        nargs="?",
        default=None,
        help="Site URL (defaults to validation.base_url in .litpress.yml).",
    )
    live_parser.add_argument(
        "--project",
        default=".",
        help="Project root containing .litpress.yml (defaults to current directory).",
    )
    live_parser.add_argument(
        "--json",
        action="store_true",
        help=f"Also write the consolidated report to {LIVE_REPORT}.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def offline_validators(args: argparse.Namespace) -> List[str]:
    """Map the offline selection flags to validator names."""
    selected: List[str] = []
    if not (args.no_structure or args.components_only):
        selected.append("structure")
    if not args.no_components:
        selected.extend(["metadata", "components"])
    if not args.no_security:
        selected.append("php")
    return selected


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for litpress commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    verbose = bool(getattr(args, "verbose", False))

    configure_logging(verbose=verbose)
    orchestrator = Orchestrator(lint_components=bool(getattr(args, "lint", False)))

    if args.command == "generate":
        try:
            result = orchestrator.run_generate(args.path)
        except RuntimeError as exc:
            _fail(parser, "litpress generate", exc, verbose)
        print(f"Theme generated at {_relativize(result.theme_dir)}")
        print(f"{len(result.components)} components, {len(result.pages)} page templates")
        for name in result.skipped:
            print(f"Skipped {name}: no render() template")
    elif args.command == "validate" and args.mode == "offline":
        selected = offline_validators(args)
        if not selected:
            parser.exit(1, "No validators selected.\n")
        json_output = Path(OFFLINE_REPORT) if args.json else None
        try:
            report = orchestrator.run_offline(args.path, selected, json_output=json_output)
        except RuntimeError as exc:
            _fail(parser, "litpress validate offline", exc, verbose)
        _print_report(report, orchestrator.load_config(args.path).validation)
        if json_output is not None:
            print(f"JSON report written to {json_output}")
        if report.failed:
            sys.exit(1)
    elif args.command == "validate" and args.mode == "live":
        json_output = Path(LIVE_REPORT) if args.json else None
        try:
            outcome = orchestrator.run_live(args.project, args.base_url, json_output=json_output)
        except RuntimeError as exc:
            _fail(parser, "litpress validate live", exc, verbose)
        settings = orchestrator.load_config(args.project).validation
        for page_report in outcome.reports:
            _print_report(page_report, settings)
        _print_report(outcome.consolidated, settings)
        for error in outcome.connection_errors:
            print(f"Connection error: {error}")
        if json_output is not None:
            print(f"JSON report written to {json_output}")
        if outcome.failed:
            sys.exit(1)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_report(report: ValidationReport, settings: ValidationSettings) -> None:
    print(
        report.render_text(
            max_errors=settings.max_listed_errors,
            max_warnings=settings.max_listed_warnings,
        )
    )


def _fail(parser: argparse.ArgumentParser, command: str, exc: Exception, verbose: bool) -> NoReturn:
    if verbose:
        traceback.print_exception(exc)
        parser.exit(1, f"{command} failed: {exc}\n")
    parser.exit(1, f"{command} failed: {exc}\nRun with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
