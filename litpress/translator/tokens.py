"""Lightweight tokenizer for Lit tagged-template text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Union


class TemplateSyntaxError(ValueError):
    """Raised when template or expression delimiters are unbalanced."""


@dataclass(frozen=True)
class Markup:
    """Literal markup between expressions."""

    text: str


@dataclass(frozen=True)
class Expression:
    """A ``${...}`` placeholder with its inner JavaScript source."""

    source: str


Segment = Union[Markup, Expression]
TranslationUnit = List[Segment]

_OPENERS = "([{"
_CLOSERS = ")]}"

IDENT = r"[A-Za-z_$][\w$]*"
PATH = rf"(?:this\.)?{IDENT}(?:\.{IDENT})*"
STRING = r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""
_STRING_LITERAL = re.compile(rf"^(?:{STRING})$", re.DOTALL)


def skip_string(text: str, start: int) -> int:
    """Return the index just past the quoted string starting at ``start``."""
    quote = text[start]
    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        index += 1
    raise TemplateSyntaxError(f"Unterminated string literal at offset {start}")


def skip_comment(text: str, start: int) -> int:
    """Return the index just past a ``//`` or ``/* */`` comment at ``start``, or ``start`` if none begins there."""
    if text.startswith("//", start):
        end = text.find("\n", start)
        return len(text) if end < 0 else end + 1
    if text.startswith("/*", start):
        end = text.find("*/", start + 2)
        if end < 0:
            raise TemplateSyntaxError(f"Unterminated comment at offset {start}")
        return end + 2
    return start


def find_template_end(text: str, start: int) -> int:
    """Return the index of the backtick closing a template that opens just before ``start``."""
    index = start
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == "`":
            return index
        if text.startswith("${", index):
            index = find_expression_end(text, index + 2) + 1
            continue
        index += 1
    raise TemplateSyntaxError(f"Unterminated template literal at offset {start}")


def find_expression_end(text: str, start: int) -> int:
    """Return the index of the ``}`` closing an expression whose body starts at ``start``."""
    depth = 0
    index = start
    while index < len(text):
        char = text[index]
        if char == "/":
            skipped = skip_comment(text, index)
            if skipped != index:
                index = skipped
                continue
        if char in "'\"":
            index = skip_string(text, index)
            continue
        if char == "`":
            index = find_template_end(text, index + 1) + 1
            continue
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            if depth == 0:
                if char == "}":
                    return index
                raise TemplateSyntaxError(f"Unbalanced '{char}' at offset {index}")
            depth -= 1
        index += 1
    raise TemplateSyntaxError(f"Unterminated expression at offset {start}")


def find_top_level(text: str, target: str, start: int = 0) -> int:
    """Return the first index of ``target`` outside brackets, strings and templates, or -1."""
    depth = 0
    index = start
    while index < len(text):
        char = text[index]
        if char == "/":
            skipped = skip_comment(text, index)
            if skipped != index:
                index = skipped
                continue
        if char in "'\"":
            index = skip_string(text, index)
            continue
        if char == "`":
            index = find_template_end(text, index + 1) + 1
            continue
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        elif depth == 0 and text.startswith(target, index):
            if target == "?" and text[index + 1 : index + 2] in {"?", "."}:
                index += 2
                continue
            return index
        index += 1
    return -1


def is_balanced(text: str) -> bool:
    """Return True when brackets in ``text`` never close below depth zero and end balanced."""
    depth = 0
    index = 0
    try:
        while index < len(text):
            char = text[index]
            if char == "/":
                skipped = skip_comment(text, index)
                if skipped != index:
                    index = skipped
                    continue
            if char in "'\"":
                index = skip_string(text, index)
                continue
            if char == "`":
                index = find_template_end(text, index + 1) + 1
                continue
            if char in _OPENERS:
                depth += 1
            elif char in _CLOSERS:
                depth -= 1
                if depth < 0:
                    return False
            index += 1
    except TemplateSyntaxError:
        return False
    return depth == 0


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split ``text`` on top-level occurrences of ``separator``."""
    parts: List[str] = []
    start = 0
    while True:
        position = find_top_level(text, separator, start)
        if position < 0:
            break
        parts.append(text[start:position].strip())
        start = position + len(separator)
    tail = text[start:].strip()
    if tail or parts:
        parts.append(tail)
    return parts


def html_template_body(expression: str) -> Optional[str]:
    """Return the body of ``html`...` `` when it spans the whole expression."""
    stripped = expression.strip()
    if not stripped.startswith("html"):
        return None
    rest = stripped[4:].lstrip()
    if not rest.startswith("`"):
        return None
    offset = len(stripped) - len(rest)
    end = find_template_end(stripped, offset + 1)
    if stripped[end + 1 :].strip():
        return None
    return stripped[offset + 1 : end]


def is_string_literal(text: str) -> bool:
    return bool(_STRING_LITERAL.match(text))


def unquote(text: str) -> str:
    """Return the value of a quoted JavaScript string literal; other text is returned as-is."""
    if is_string_literal(text):
        quote = text[0]
        return text[1:-1].replace(f"\\{quote}", quote).replace("\\\\", "\\")
    return text


def tokenize(template: str) -> TranslationUnit:
    """Split template text into markup segments and expression nodes."""
    unit: TranslationUnit = []
    buffer: List[str] = []
    index = 0
    while index < len(template):
        if template[index] == "\\" and index + 1 < len(template):
            buffer.append(template[index + 1])
            index += 2
            continue
        if template.startswith("${", index):
            end = find_expression_end(template, index + 2)
            if buffer:
                unit.append(Markup("".join(buffer)))
                buffer = []
            unit.append(Expression(template[index + 2 : end].strip()))
            index = end + 1
            continue
        buffer.append(template[index])
        index += 1
    if buffer:
        unit.append(Markup("".join(buffer)))
    return unit


__all__ = [
    "IDENT",
    "PATH",
    "STRING",
    "Expression",
    "Markup",
    "Segment",
    "TemplateSyntaxError",
    "TranslationUnit",
    "find_expression_end",
    "find_template_end",
    "find_top_level",
    "html_template_body",
    "is_balanced",
    "is_string_literal",
    "skip_comment",
    "skip_string",
    "split_top_level",
    "tokenize",
    "unquote",
]
