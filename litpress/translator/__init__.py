"""Lit template to PHP translation."""

from .compiler import TranslationOutcome, Translator, translate
from .context import TranslationContext, TranslationDiagnostic
from .escaping import EscapeDecision, EscapePolicy
from .extractor import LitProperty, clean_css, extract, extract_properties, extract_styles
from .rules import KNOWN_METHODS, Rule, default_rules
from .tokens import Expression, Markup, TemplateSyntaxError, tokenize

__all__ = [
    "EscapeDecision",
    "EscapePolicy",
    "Expression",
    "KNOWN_METHODS",
    "LitProperty",
    "Markup",
    "Rule",
    "TemplateSyntaxError",
    "TranslationContext",
    "TranslationDiagnostic",
    "TranslationOutcome",
    "Translator",
    "clean_css",
    "default_rules",
    "extract",
    "extract_properties",
    "extract_styles",
    "tokenize",
    "translate",
]
