"""Tests for litpress.translator.extractor."""

from __future__ import annotations

from litpress.translator.extractor import (
    LitProperty,
    clean_css,
    extract,
    extract_properties,
    extract_styles,
)
from tests._fixtures.project_builder import FEATURE_LIST_SOURCE, HERO_SOURCE


def test_extract_returns_render_template_body() -> None:
    template = extract(HERO_SOURCE)

    assert template is not None
    assert "<h1>${this.title}</h1>" in template
    assert "render()" not in template
    assert "`" not in template


def test_extract_keeps_nested_map_templates() -> None:
    template = extract(FEATURE_LIST_SOURCE)

    assert template is not None
    assert "${this.features.map((feature) => html`" in template
    assert template.rstrip().endswith("</section>")


def test_extract_returns_none_without_render() -> None:
    assert extract("export const helper = () => 42;") is None


def test_extract_returns_none_when_render_has_no_html_template() -> None:
    source = """
class Plain extends LitElement {
  render() {
    return null;
  }
}
"""
    assert extract(source) is None


def test_extract_ignores_templates_outside_render() -> None:
    source = """
class Card extends LitElement {
  renderBadge() {
    return html`<span>badge</span>`;
  }

  render() {
    return html`<div>${this.label}</div>`;
  }
}
"""
    assert extract(source) == "<div>${this.label}</div>"


def test_extract_properties() -> None:
    assert extract_properties(HERO_SOURCE) == [
        LitProperty("title", "string"),
        LitProperty("subtitle", "string"),
        LitProperty("ctaUrl", "string"),
    ]
    assert extract_properties("class Empty {}") == []


def test_extract_styles_and_clean_css_drop_host_rules() -> None:
    styles = extract_styles(HERO_SOURCE)

    assert ":host" in styles
    assert clean_css(styles) == ".hero-section { padding: 4rem 0; }"
    assert extract_styles(FEATURE_LIST_SOURCE) == ""


def test_clean_css_drops_every_host_selector() -> None:
    css = """
    :host { display: block; }
    :host([dark]) .card { color: red; }
    :host > div { margin: 0; }
    :host, .banner { padding: 1rem; }
    .card { border: 0; }
    """

    cleaned = clean_css(css)

    assert ":host" not in cleaned
    assert cleaned == ".banner { padding: 1rem; }\n.card { border: 0; }"


def test_extract_skips_comments_in_render_body() -> None:
    source = """
class Badge extends LitElement {
  render() {
    // Don't render the badge when it's empty {
    /* "quoted" } braces */
    return html`<p>${this.title}</p>`;
  }
}
"""
    assert extract(source) == "<p>${this.title}</p>"
