"""Jinja2 environment shared by the PHP emitters and the text report."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATES_DIR = Path(__file__).with_name("templates")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return an environment that renders PHP and plain text without HTML autoescaping."""
    directories = [str(templates_dir)] if templates_dir else []
    directories.append(str(TEMPLATES_DIR))
    loader = FileSystemLoader(directories)
    return Environment(
        loader=loader,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


__all__ = ["TEMPLATES_DIR", "create_environment"]
