"""Ordered matcher/rewriter rules for Lit template expressions.

Rules are tried in list order against each ``${...}`` expression and the first
match wins. Map loops come before ternaries, ternaries before method calls and
method calls before plain interpolation: the general patterns would otherwise
consume the nested templates that the specific ones need to see.
"""

from __future__ import annotations

import html
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..phpcode import php_string, php_variable
from .context import MANUAL_IMPLEMENTATION, LoopScope, TranslationContext
from .escaping import image_output, wrap
from .tokens import (
    IDENT,
    PATH,
    STRING,
    find_template_end,
    find_top_level,
    html_template_body,
    is_balanced,
    is_string_literal,
    split_top_level,
    unquote,
)

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .compiler import Translator


_MAP_HEAD = re.compile(
    rf"^(?P<target>{PATH})\.map\(\s*"
    rf"(?:\(\s*(?P<item>{IDENT})\s*(?:,\s*(?P<index>{IDENT})\s*)?\)|(?P<bare>{IDENT}))"
    r"\s*=>\s*html\s*`",
    re.DOTALL,
)
_MAP_TAIL = re.compile(r"^\s*\)\s*(?:\.join\(\s*(?:''|\"\")\s*\))?\s*$")
_METHOD_CALL = re.compile(rf"^this\.(?P<method>{IDENT})\((?P<args>.*)\)$", re.DOTALL)
_LOGICAL_DEFAULT = re.compile(
    rf"^(?P<path>{PATH})\s*(?:\|\||\?\?)\s*(?P<literal>{STRING})$", re.DOTALL
)
_INTERPOLATION = re.compile(
    rf"^(?P<path>{PATH}?)"
    r"(?P<suffix>\.charAt\(0\)\.toUpperCase\(\)|\.toUpperCase\(\)|\.toLowerCase\(\)|\.trim\(\))?$"
)
_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$")
_EMPTY_BRANCHES = {"", "''", '""', "``", "null", "undefined", "nothing"}

_SUFFIXES: Dict[str, Callable[[str], str]] = {
    ".charAt(0).toUpperCase()": lambda value: f"mb_strtoupper(mb_substr({value}, 0, 1))",
    ".toUpperCase()": lambda value: f"mb_strtoupper({value})",
    ".toLowerCase()": lambda value: f"mb_strtolower({value})",
    ".trim()": lambda value: f"trim({value})",
}

MethodHandler = Callable[[List[str], TranslationContext], str]


class Rule(ABC):
    """A matcher paired with the rewriter that turns its match into PHP."""

    name: str = ""

    @abstractmethod
    def match(
        self, expression: str, context: TranslationContext, translator: "Translator"
    ) -> Optional[Dict[str, Any]]:
        """Return captured parts when the rule applies, else None."""

    @abstractmethod
    def rewrite(
        self, match: Dict[str, Any], context: TranslationContext, translator: "Translator"
    ) -> str:
        """Produce PHP markup for a previous match."""


class MapLoopRule(Rule):
    """``this.items.map((item, index) => html`...`)`` becomes a guarded foreach."""

    name = "map-loop"

    def match(self, expression, context, translator):
        head = _MAP_HEAD.match(expression)
        if head is None:
            return None
        end = find_template_end(expression, head.end())
        if not _MAP_TAIL.match(expression[end + 1 :]):
            return None
        reference = context.resolve(head.group("target"))
        if reference is None:
            return None
        return {
            "target": head.group("target"),
            "php": reference.php,
            "item": head.group("item") or head.group("bare"),
            "index": head.group("index"),
            "body": expression[head.end() : end],
        }

    def rewrite(self, match, context, translator):
        array_name = match["target"].split(".")[-1]
        item_var = php_variable(match["item"])
        index_var = php_variable(match["index"]) if match["index"] else None
        binding = f"{index_var} => {item_var}" if index_var else item_var
        with context.loop(LoopScope(match["item"], match["index"], array_name)):
            inner = translator.translate_template(match["body"], context)
        fallback = f"No {array_name.replace('_', ' ')} available."
        collection = match["php"]
        return (
            f"<?php if (!empty({collection})) : ?>\n"
            f"<?php foreach ({collection} as {binding}) : ?>{inner}<?php endforeach; ?>\n"
            f"<?php else : ?>\n"
            f'<p class="no-items"><?php esc_html_e({php_string(fallback)}, '
            f"{php_string(context.text_domain)}); ?></p>\n"
            f"<?php endif; ?>"
        )


class TernaryRule(Rule):
    """``cond ? html`A` : html`B``` and the empty/string-literal variants."""

    name = "ternary"

    def match(self, expression, context, translator):
        question = find_top_level(expression, "?")
        if question < 0:
            return None
        colon = find_top_level(expression, ":", question + 1)
        if colon < 0:
            return None
        condition = translator.condition(expression[:question].strip(), context)
        if condition is None:
            return None
        return {
            "condition": condition,
            "when_true": expression[question + 1 : colon].strip(),
            "when_false": expression[colon + 1 :].strip(),
        }

    def rewrite(self, match, context, translator):
        condition = match["condition"]
        when_true = match["when_true"]
        when_false = match["when_false"]
        if is_string_literal(when_true) and is_string_literal(when_false):
            return (
                f"<?php echo esc_html({condition} ? {php_string(unquote(when_true))} "
                f": {php_string(unquote(when_false))}); ?>"
            )
        parts = [f"<?php if ({condition}) : ?>", self._branch(when_true, context, translator)]
        if when_false not in _EMPTY_BRANCHES:
            parts.append("<?php else : ?>")
            parts.append(self._branch(when_false, context, translator))
        parts.append("<?php endif; ?>")
        return "".join(parts)

    @staticmethod
    def _branch(branch: str, context: TranslationContext, translator: "Translator") -> str:
        if branch in _EMPTY_BRANCHES:
            return ""
        body = html_template_body(branch)
        if body is not None:
            return translator.translate_template(body, context)
        if is_string_literal(branch):
            return html.escape(unquote(branch))
        return translator.translate_expression(branch, context)


class MethodCallRule(Rule):
    """``this.method(args)`` resolved against the known-method table."""

    name = "method-call"

    def match(self, expression, context, translator):
        call = _METHOD_CALL.match(expression)
        if call is None or not is_balanced(call.group("args")):
            return None
        return {"method": call.group("method"), "args": split_top_level(call.group("args"))}

    def rewrite(self, match, context, translator):
        handler = translator.methods.get(match["method"])
        expression = f"this.{match['method']}({', '.join(match['args'])})"
        if handler is None:
            context.flag(
                MANUAL_IMPLEMENTATION,
                expression,
                f"Method '{match['method']}' has no PHP equivalent",
            )
            return manual_marker(expression)
        values = [translator.value(arg, context) for arg in match["args"]]
        if any(value is None for value in values):
            context.flag(MANUAL_IMPLEMENTATION, expression, "Unsupported method arguments")
            return manual_marker(expression)
        return handler([value for value in values if value is not None], context)


class LogicalDefaultRule(Rule):
    """``item.icon || '*'`` becomes an escaped ``?:`` expression."""

    name = "logical-default"

    def match(self, expression, context, translator):
        found = _LOGICAL_DEFAULT.match(expression)
        if found is None:
            return None
        reference = context.resolve(found.group("path"))
        if reference is None:
            return None
        return {"reference": reference, "literal": unquote(found.group("literal"))}

    def rewrite(self, match, context, translator):
        reference = match["reference"]
        decision = context.escape_for(reference, reference.name)
        value = f"({reference.php} ?: {php_string(match['literal'])})"
        output = image_output(value) if decision.is_image else wrap(value, decision.escape)
        return f"<?php echo {output}; ?>"


class InterpolationRule(Rule):
    """``this.prop`` or ``item.field`` echoed through its escape function."""

    name = "interpolation"

    def match(self, expression, context, translator):
        found = _INTERPOLATION.match(expression)
        if found is None:
            return None
        reference = context.resolve(found.group("path"))
        if reference is None:
            return None
        return {"reference": reference, "suffix": found.group("suffix"), "expression": expression}

    def rewrite(self, match, context, translator):
        reference = match["reference"]
        decision = context.escape_for(reference, match["expression"])
        value = reference.php
        suffix = match["suffix"]
        if suffix:
            value = _SUFFIXES[suffix](value)
        if decision.is_image and not suffix:
            output = image_output(value)
        else:
            output = wrap(value, decision.escape)
        return f"<?php echo {output}; ?>"


class LiteralRule(Rule):
    """Plain string or number literals are inlined as static markup."""

    name = "literal"

    def match(self, expression, context, translator):
        if is_string_literal(expression):
            return {"text": unquote(expression)}
        if _NUMBER.match(expression):
            return {"text": expression}
        if expression in _EMPTY_BRANCHES:
            return {"text": ""}
        return None

    def rewrite(self, match, context, translator):
        return html.escape(match["text"])


def default_rules() -> List[Rule]:
    """Return the rule table in precedence order."""
    return [
        MapLoopRule(),
        TernaryRule(),
        MethodCallRule(),
        LogicalDefaultRule(),
        InterpolationRule(),
        LiteralRule(),
    ]


def render_stars(args: List[str], context: TranslationContext) -> str:
    rating = args[0] if args else "0"
    return (
        "<?php for ($i = 1; $i <= 5; $i++) : ?>"
        f"<span class=\"star\"><?php echo esc_html($i <= (int) {rating} ? '★' : '☆'); ?></span>"
        "<?php endfor; ?>"
    )


def current_year(args: List[str], context: TranslationContext) -> str:
    return "<?php echo esc_html(date('Y')); ?>"


def format_result_count(args: List[str], context: TranslationContext) -> str:
    count = f"(int) {args[0]}" if args else "0"
    domain = php_string(context.text_domain)
    return (
        f"<?php echo esc_html(sprintf(_n('%d result', '%d results', {count}, {domain}), "
        f"{count})); ?>"
    )


KNOWN_METHODS: Dict[str, MethodHandler] = {
    "renderStars": render_stars,
    "getCurrentYear": current_year,
    "formatResultCount": format_result_count,
}


def manual_marker(expression: str) -> str:
    """Visible PHP comment for a construct that could not be translated."""
    cleaned = " ".join(expression.split())
    cleaned = cleaned.replace("this.", "").replace("${", "").replace("`", "'").replace("*/", "* /")
    if len(cleaned) > 120:
        cleaned = cleaned[:117] + "..."
    return f"<?php /* MANUAL IMPLEMENTATION REQUIRED: {cleaned} */ ?>"


__all__ = [
    "InterpolationRule",
    "KNOWN_METHODS",
    "LiteralRule",
    "LogicalDefaultRule",
    "MapLoopRule",
    "MethodCallRule",
    "Rule",
    "TernaryRule",
    "default_rules",
    "manual_marker",
]
