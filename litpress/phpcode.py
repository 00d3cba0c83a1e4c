"""Helpers for emitting PHP identifiers and literals."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_IDENTIFIER = re.compile(r"[^0-9a-zA-Z_]+")


def snake_case(name: str) -> str:
    """Convert ``camelCase`` or ``kebab-case`` names to PHP ``snake_case``."""
    converted = _CAMEL_BOUNDARY.sub("_", name)
    converted = _NON_IDENTIFIER.sub("_", converted)
    return converted.strip("_").lower()


def php_variable(name: str) -> str:
    return f"${snake_case(name)}"


def function_name_for(component: str) -> str:
    """Return the render function name for a component, e.g. ``render_hero_section``."""
    return f"render_{snake_case(component)}"


def php_string(value: str) -> str:
    """Return a single-quoted PHP string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def value_to_php_literal(value: Any) -> str:
    """Convert an arbitrary JSON value to a PHP literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "array(" + ", ".join(value_to_php_literal(item) for item in value) + ")"
    if isinstance(value, dict):
        pairs = ", ".join(
            f"{php_string(str(key))} => {value_to_php_literal(item)}" for key, item in value.items()
        )
        return f"array({pairs})"
    return php_string(str(value))


def to_php_literal(value: Any, type_name: Optional[str] = "string") -> str:
    """Convert a metadata default to a PHP literal that matches the declared type."""
    type_name = (type_name or "string").lower()
    if value is None:
        return _empty_for_type(type_name)
    if type_name in {"array", "object"}:
        return _structured_to_php(value, type_name)
    if type_name == "boolean":
        if isinstance(value, str):
            return "true" if value.strip().lower() == "true" else "false"
        return "true" if value else "false"
    if type_name == "number":
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return repr(value)
        try:
            number = float(str(value))
        except ValueError:
            return "0"
        return repr(int(number)) if number.is_integer() else repr(number)
    return php_string(str(value))


def _structured_to_php(value: Any, type_name: str) -> str:
    if isinstance(value, str):
        text = value.strip()
        if text in {"", "[]", "{}", "array()"}:
            return "array()"
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            return "array()"
    if isinstance(value, (list, tuple, dict)):
        return value_to_php_literal(value)
    return "array()"


def _empty_for_type(type_name: str) -> str:
    if type_name in {"array", "object"}:
        return "array()"
    if type_name == "boolean":
        return "false"
    if type_name == "number":
        return "0"
    return "''"


__all__ = [
    "function_name_for",
    "php_string",
    "php_variable",
    "snake_case",
    "to_php_literal",
    "value_to_php_literal",
]
