"""Translate extracted Lit templates into escaped PHP markup."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..phpcode import php_string
from .context import (
    DROPPED_BINDING,
    MANUAL_IMPLEMENTATION,
    TranslationContext,
    TranslationDiagnostic,
)
from .escaping import EscapePolicy
from .rules import KNOWN_METHODS, MethodHandler, Rule, default_rules, manual_marker
from .tokens import (
    PATH,
    STRING,
    Expression,
    Markup,
    TemplateSyntaxError,
    is_string_literal,
    tokenize,
    unquote,
)

_LOGGER = get_logger("translator")

_BINDING = re.compile(r"\s(?P<kind>[@?.])(?P<attr>[\w:-]+)=(?P<quote>[\"']?)$")
_CONDITION_TOKEN = re.compile(
    rf"(?P<space>\s+)|(?P<string>{STRING})|(?P<number>\d+(?:\.\d+)?)|(?P<path>{PATH})"
    r"|(?P<op>===|!==|==|!=|<=|>=|&&|\|\||[!<>()+\-*/%])"
)
_PHP_KEYWORDS = {"true": "true", "false": "false", "null": "null", "undefined": "null"}


@dataclass
class TranslationOutcome:
    """Translated markup plus anything the validators should be told about."""

    markup: str
    diagnostics: List[TranslationDiagnostic] = field(default_factory=list)

    @property
    def heuristic(self) -> bool:
        return any(d.kind == "heuristic-escape" for d in self.diagnostics)


class Translator:
    """Applies the rule table to every expression of a template."""

    def __init__(
        self,
        rules: Sequence[Rule] | None = None,
        methods: Mapping[str, MethodHandler] | None = None,
    ) -> None:
        self.rules: List[Rule] = list(rules) if rules is not None else default_rules()
        self.methods = dict(KNOWN_METHODS)
        if methods:
            self.methods.update(methods)

    def translate(
        self,
        template: str,
        field_types: Mapping[str, str] | None = None,
        theme_name: str = "theme",
        *,
        escapes: Mapping[str, str] | None = None,
    ) -> str:
        policy = EscapePolicy(escapes=escapes, field_types=field_types)
        return self.translate_unit(template, policy=policy, text_domain=theme_name).markup

    def translate_unit(
        self,
        template: str,
        *,
        policy: EscapePolicy,
        text_domain: str = "theme",
        component: str | None = None,
    ) -> TranslationOutcome:
        context = TranslationContext(policy=policy, text_domain=text_domain, component=component)
        markup = self.translate_template(template, context)
        if context.diagnostics:
            _LOGGER.debug(
                "Translated %s with %d diagnostics", component or "template", len(context.diagnostics)
            )
        return TranslationOutcome(markup=markup, diagnostics=list(context.diagnostics))

    def translate_template(self, template: str, context: TranslationContext) -> str:
        try:
            unit = tokenize(template)
        except TemplateSyntaxError as exc:
            context.flag(MANUAL_IMPLEMENTATION, template[:80], str(exc))
            return manual_marker(template)

        parts: List[str] = []
        strip_quote = ""
        for segment in unit:
            if isinstance(segment, Markup):
                text = segment.text
                if strip_quote and text.startswith(strip_quote):
                    text = text[1:]
                strip_quote = ""
                parts.append(text)
                continue
            assert isinstance(segment, Expression)
            binding = _BINDING.search(parts[-1]) if parts else None
            if binding is None:
                parts.append(self.translate_expression(segment.source, context))
                continue
            parts[-1] = parts[-1][: binding.start()]
            strip_quote = binding.group("quote")
            parts.append(self._binding(binding, segment.source, context))
        return "".join(parts)

    def translate_expression(self, expression: str, context: TranslationContext) -> str:
        for rule in self.rules:
            try:
                match = rule.match(expression, context, self)
            except TemplateSyntaxError as exc:
                _LOGGER.debug("Rule %s could not parse %r: %s", rule.name, expression, exc)
                continue
            if match is not None:
                _LOGGER.debug("Rule %s matched %r", rule.name, expression[:60])
                return rule.rewrite(match, context, self)
        context.flag(MANUAL_IMPLEMENTATION, expression, "No translation rule matched")
        return manual_marker(expression)

    def condition(self, expression: str, context: TranslationContext) -> Optional[str]:
        """Convert a JavaScript boolean expression to PHP, or None if unsupported."""
        output: List[str] = []
        references = []
        position = 0
        while position < len(expression):
            token = _CONDITION_TOKEN.match(expression, position)
            if token is None:
                return None
            position = token.end()
            if token.group("space"):
                output.append(" ")
            elif token.group("string"):
                output.append(php_string(unquote(token.group("string"))))
            elif token.group("number"):
                output.append(token.group("number"))
            elif token.group("path"):
                path = token.group("path")
                if expression[position:].lstrip().startswith("("):
                    return None
                if path in _PHP_KEYWORDS:
                    output.append(_PHP_KEYWORDS[path])
                    continue
                reference = context.resolve(path)
                if reference is None:
                    return None
                references.append(reference)
                output.append(reference.php)
            else:
                output.append(token.group("op"))
        result = " ".join("".join(output).split())
        if len(references) == 1 and references[0].array and result == references[0].php:
            return f"!empty({result})"
        return result or None

    def value(self, expression: str, context: TranslationContext) -> Optional[str]:
        """Convert a single argument to a PHP value expression."""
        expression = expression.strip()
        if is_string_literal(expression):
            return php_string(unquote(expression))
        if re.fullmatch(r"-?\d+(?:\.\d+)?", expression):
            return expression
        if expression in _PHP_KEYWORDS:
            return _PHP_KEYWORDS[expression]
        reference = context.resolve(expression)
        return reference.php if reference else None

    def _binding(self, binding: re.Match, source: str, context: TranslationContext) -> str:
        kind = binding.group("kind")
        attribute = binding.group("attr")
        if kind == "@":
            context.flag(
                DROPPED_BINDING,
                f"@{attribute}",
                "Event listeners have no server-side equivalent and were dropped",
            )
            return ""
        if kind == "?":
            condition = self.condition(source, context)
            if condition is None:
                context.flag(MANUAL_IMPLEMENTATION, source, f"Unsupported ?{attribute} binding")
                return manual_marker(source)
            return f"<?php if ({condition}) : ?> {attribute}<?php endif; ?>"
        quote = binding.group("quote") or '"'
        value = self.translate_expression(source, context)
        # Property bindings are rendered as plain attributes; the quote is re-added here.
        return f' {attribute}={quote}{value}{quote}'


def translate(
    template: str,
    field_types: Mapping[str, str] | None = None,
    theme_name: str = "theme",
) -> str:
    """Translate a template with the default rule table."""
    return Translator().translate(template, field_types, theme_name)


__all__ = ["TranslationOutcome", "Translator", "translate"]
