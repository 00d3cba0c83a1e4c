"""Tests for litpress.translator.tokens."""

from __future__ import annotations

import pytest

from litpress.translator.tokens import (
    Expression,
    Markup,
    TemplateSyntaxError,
    find_expression_end,
    find_top_level,
    html_template_body,
    is_balanced,
    split_top_level,
    tokenize,
    unquote,
)


def test_tokenize_splits_markup_and_expressions() -> None:
    unit = tokenize("<p>${ this.title }</p>")

    assert unit == [Markup("<p>"), Expression("this.title"), Markup("</p>")]


def test_tokenize_keeps_nested_templates_inside_one_expression() -> None:
    unit = tokenize("<ul>${this.items.map((item) => html`<li>${item.name}</li>`)}</ul>")

    assert len(unit) == 3
    assert unit[1] == Expression("this.items.map((item) => html`<li>${item.name}</li>`)")


def test_tokenize_unescapes_literal_placeholder() -> None:
    assert tokenize("cost: \\${price}") == [Markup("cost: ${price}")]


def test_tokenize_rejects_unterminated_expression() -> None:
    with pytest.raises(TemplateSyntaxError):
        tokenize("<p>${this.title</p>")


def test_find_top_level_skips_strings_and_templates() -> None:
    text = "this.a ? html`<b>${x ? 'y' : 'z'}</b>` : ':'"

    question = find_top_level(text, "?")
    colon = find_top_level(text, ":", question + 1)

    assert question == 7
    assert text[colon + 1 :].strip() == "':'"


def test_find_top_level_ignores_nullish_and_optional_chaining() -> None:
    assert find_top_level("this.a ?? this.b", "?") == -1
    assert find_top_level("this.a?.b", "?") == -1


def test_split_top_level_respects_brackets_and_quotes() -> None:
    assert split_top_level("a, f(b, c), 'x,y'") == ["a", "f(b, c)", "'x,y'"]
    assert split_top_level("") == []


def test_is_balanced() -> None:
    assert is_balanced("f(a[0], {b: 1})")
    assert not is_balanced("f(a[0]")
    assert not is_balanced("a)(")


def test_html_template_body_requires_whole_expression() -> None:
    assert html_template_body("html`<b>x</b>`") == "<b>x</b>"
    assert html_template_body("html`<b>x</b>` + more") is None
    assert html_template_body("'plain'") is None


def test_unquote_handles_escaped_quotes() -> None:
    assert unquote("'it\\'s'") == "it's"
    assert unquote('"plain"') == "plain"
    assert unquote("this.value") == "this.value"


def test_scanners_skip_comments() -> None:
    code = "{\n  // it's a note }\n  /* \"x\" ) */ return 1;\n}"

    assert find_expression_end(code, 1) == len(code) - 1
    assert find_top_level("a /* ? */ ? b : c", "?") == 10
    assert is_balanced("call(x) // won't ) close")
