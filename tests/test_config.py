"""Tests for litpress.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from litpress.config import ConfigError, ProjectConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ProjectConfig)
    assert config.root == tmp_path.resolve()
    assert config.theme.name == "generated-theme"
    assert config.theme.domain == "generated-theme"
    assert config.theme.src_dir == tmp_path.resolve() / "src"
    assert config.theme.components_dir == tmp_path.resolve() / "src" / "components"
    assert config.theme.theme_dir == tmp_path.resolve() / "wordpress-output" / "generated-theme"
    assert config.theme.metadata_path == tmp_path.resolve() / "src" / "metadata.json"
    assert config.theme.page_templates_path == tmp_path.resolve() / "src" / "page-templates.json"
    assert config.validation.base_url == "http://localhost"
    assert config.validation.retries == 2
    assert config.validation.max_listed_errors == 5
    assert config.validation.max_listed_warnings == 3
    assert config.validation.strict_structure is False


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".litpress.yml"
    config_file.write_text(
        """
theme:
  name: "acme"
  text_domain: "acme-td"
  src_dir: "frontend"
  output_dir: "build/themes"
  metadata_file: "frontend/meta/components.json"
validation:
  base_url: "https://staging.acme.test"
  timeout: 4
  retries: "5"
  retry_delay: 0.5
  user_agent: "acme-checker"
  max_listed_errors: 10
  strict_structure: "yes"
  php_executable: "/usr/bin/php8.2"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)
    root = tmp_path.resolve()

    assert config.theme.name == "acme"
    assert config.theme.domain == "acme-td"
    assert config.theme.components_dir == root / "frontend" / "components"
    assert config.theme.theme_dir == root / "build" / "themes" / "acme"
    assert config.theme.metadata_path == root / "frontend" / "meta" / "components.json"
    assert config.theme.page_templates_path == root / "frontend" / "page-templates.json"

    assert config.validation.base_url == "https://staging.acme.test"
    assert config.validation.timeout == pytest.approx(4.0)
    assert config.validation.retries == 5
    assert config.validation.retry_delay == pytest.approx(0.5)
    assert config.validation.user_agent == "acme-checker"
    assert config.validation.max_listed_errors == 10
    assert config.validation.max_listed_warnings == 3
    assert config.validation.strict_structure is True
    assert config.validation.php_executable == "/usr/bin/php8.2"


def test_load_config_ignores_malformed_values(tmp_path: Path) -> None:
    (tmp_path / ".litpress.yml").write_text(
        """
theme: "not-a-mapping"
validation:
  retries: true
  timeout: "soon"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.theme.name == "generated-theme"
    assert config.validation.retries == 2
    assert config.validation.timeout == pytest.approx(10.0)


def test_load_config_treats_empty_file_as_defaults(tmp_path: Path) -> None:
    (tmp_path / ".litpress.yml").write_text("   \n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.theme.name == "generated-theme"


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".litpress.yml").write_text("theme: [unterminated\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".litpress.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping at the root"):
        load_config(tmp_path)
