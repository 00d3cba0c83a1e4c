"""Extract render templates, styles and properties from Lit component sources."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from ..logging import get_logger
from .tokens import TemplateSyntaxError, find_expression_end, find_template_end

_LOGGER = get_logger("translator.extractor")

_RENDER_METHOD = re.compile(r"^\s*(?:async\s+)?render\s*\(\s*\)\s*\{", re.MULTILINE)
_RETURN_HTML = re.compile(r"\breturn\s+html\s*`")
_STYLES = re.compile(r"static\s+(?:get\s+)?styles\s*(?:=|\(\s*\)\s*\{\s*return)\s*css\s*`")
_PROPERTIES = re.compile(r"static\s+(?:get\s+)?properties\s*(?:=|\(\s*\)\s*\{\s*return)\s*\{")
_PROPERTY_ENTRY = re.compile(r"(\w+)\s*:\s*\{\s*type\s*:\s*(\w+)")
_HOST_RULE = re.compile(r"(?P<selectors>[^{};]*:host[^{};]*)\{(?P<body>[^{}]*)\}")
_BLANK_RUNS = re.compile(r"\n\s*\n(\s*\n)+")


@dataclass(frozen=True)
class LitProperty:
    """A reactive property declared in ``static properties``."""

    name: str
    type: str


def extract(source: str) -> Optional[str]:
    """Return the tagged-template body returned by ``render()``, or None when absent."""
    method = _RENDER_METHOD.search(source)
    if method is None:
        return None
    try:
        body_end = find_expression_end(source, method.end())
    except TemplateSyntaxError as exc:
        _LOGGER.warning("Unable to delimit render() body: %s", exc)
        return None
    body = source[method.end() : body_end]
    match = _RETURN_HTML.search(body)
    if match is None:
        return None
    try:
        end = find_template_end(body, match.end())
    except TemplateSyntaxError as exc:
        _LOGGER.warning("Unterminated render template: %s", exc)
        return None
    return body[match.end() : end]


def extract_styles(source: str) -> str:
    """Return the raw ``css`...` `` body from ``static styles``, or an empty string."""
    match = _STYLES.search(source)
    if match is None:
        return ""
    try:
        end = find_template_end(source, match.end())
    except TemplateSyntaxError:
        return ""
    return source[match.end() : end]


def extract_properties(source: str) -> List[LitProperty]:
    match = _PROPERTIES.search(source)
    if match is None:
        return []
    try:
        end = find_expression_end(source, match.end())
    except TemplateSyntaxError:
        return []
    block = source[match.end() : end]
    return [
        LitProperty(name=name, type=type_name.lower())
        for name, type_name in _PROPERTY_ENTRY.findall(block)
    ]


def _strip_host_selectors(match: re.Match) -> str:
    selectors = match.group("selectors")
    prefix = selectors[: len(selectors) - len(selectors.lstrip())]
    kept = [selector.strip() for selector in selectors.split(",") if ":host" not in selector]
    if not kept:
        return prefix
    return f"{prefix}{', '.join(kept)} {{{match.group('body')}}}"


def clean_css(css: str) -> str:
    """Drop ``:host`` selectors and normalise whitespace so the CSS can live in a page head.

    A rule whose selectors all target the host is removed; in a mixed selector
    list only the host selectors go.
    """
    cleaned = _HOST_RULE.sub(_strip_host_selectors, css)
    lines = [line.rstrip() for line in cleaned.splitlines()]
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    margin = min(indents) if indents else 0
    cleaned = "\n".join(line[margin:] for line in lines)
    cleaned = _BLANK_RUNS.sub("\n\n", cleaned)
    return cleaned.strip()


__all__ = ["LitProperty", "clean_css", "extract", "extract_properties", "extract_styles"]
