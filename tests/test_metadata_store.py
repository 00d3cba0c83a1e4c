"""Tests for litpress.metadata and the shared data model."""

from __future__ import annotations

from pathlib import Path

import pytest

from litpress.config import ConfigError
from litpress.metadata import MetadataStore, load_metadata, load_page_templates, read_json_file
from litpress.models import ComponentType, PageTemplate
from tests._fixtures.project_builder import ProjectBuilder


def test_read_json_file_fails_fast_when_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="FAIL FAST: required metadata.json not found"):
        read_json_file(tmp_path / "metadata.json", "metadata.json")


def test_read_json_file_fails_fast_when_empty(tmp_path: Path) -> None:
    path = tmp_path / "metadata.json"
    path.write_text("  \n", encoding="utf-8")

    with pytest.raises(ConfigError, match="is empty"):
        read_json_file(path)


def test_read_json_file_fails_fast_on_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "metadata.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="not valid JSON"):
        read_json_file(path)


def test_read_json_file_rejects_empty_object(tmp_path: Path) -> None:
    path = tmp_path / "metadata.json"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(ConfigError, match="non-empty JSON object"):
        read_json_file(path)


def test_load_metadata_parses_parameters_and_array_fields(sample_project: ProjectBuilder) -> None:
    components = load_metadata(sample_project.root / "src" / "metadata.json")

    hero = components["hero-section"]
    assert hero.component_type is ComponentType.STATIC
    assert hero.php_function == "render_hero_section"
    assert [parameter.name for parameter in hero.parameters] == ["title", "subtitle", "ctaUrl"]
    assert hero.parameter("ctaUrl").escape == "url"
    assert hero.parameter("missing") is None

    features = components["feature-list"]
    assert features.component_type is ComponentType.AGGREGATED
    assert features.component_type.needs_array_fields is True
    assert [field.name for field in features.array_fields["features"]] == ["title", "image"]
    assert features.field_types() == {"title": "text", "image": "image"}
    assert features.escapes() == {"heading": "html", "features": "html"}


def test_unknown_component_type_is_reported_as_none(project_builder: ProjectBuilder) -> None:
    project_builder.metadata({"odd": {"type": "carousel", "parameters": []}})

    components = load_metadata(project_builder.root / "src" / "metadata.json")

    assert components["odd"].component_type is None


def test_load_page_templates_skips_non_page_keys(project_builder: ProjectBuilder) -> None:
    project_builder.page_templates(
        {
            "postTypes": {"feature": {"label": "Features"}},
            "about": {"title": "About", "components": [{"name": "hero-section", "props": {"title": "Hi"}}]},
        }
    )

    pages = load_page_templates(project_builder.root / "src" / "page-templates.json")

    assert list(pages) == ["about"]
    assert pages["about"].components[0].props == {"title": "Hi"}


def test_store_require_has_no_fallback(sample_project: ProjectBuilder) -> None:
    store = MetadataStore.load(
        sample_project.root / "src" / "metadata.json",
        sample_project.root / "src" / "page-templates.json",
    )

    assert "hero-section" in store
    assert len(store) == 2
    assert store.lookup("unknown") is None
    assert store.field_types("feature-list")["image"] == "image"
    assert store.field_types("unknown") == {}
    assert set(store.pages) == {"front-page", "about"}
    with pytest.raises(ConfigError, match="METADATA MISSING: 'unknown'"):
        store.require("unknown")


def test_store_is_read_only(sample_project: ProjectBuilder) -> None:
    store = MetadataStore.load(sample_project.root / "src" / "metadata.json")

    with pytest.raises(TypeError):
        store.components["new"] = store.require("hero-section")  # type: ignore[index]


@pytest.mark.parametrize(
    ("name", "filename", "slug"),
    [
        ("about", "page-about.php", "about"),
        ("page-contact", "page-contact.php", "contact"),
        ("front-page", "front-page.php", "front-page"),
        ("single-feature", "single-feature.php", "single-feature"),
    ],
)
def test_page_template_filenames(name: str, filename: str, slug: str) -> None:
    page = PageTemplate(name=name)

    assert page.filename == filename
    assert page.slug == slug
