"""Configuration loading for litpress (.litpress.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".litpress.yml"


class ConfigError(RuntimeError):
    """Raised when required configuration is missing, empty, or malformed."""


@dataclass
class ThemeConfig:
    """Theme naming and source/output locations."""

    name: str = "generated-theme"
    text_domain: Optional[str] = None
    src_dir: Path = Path("src")
    output_dir: Path = Path("wordpress-output")
    metadata_file: Optional[Path] = None
    page_templates_file: Optional[Path] = None

    @property
    def domain(self) -> str:
        return self.text_domain or self.name

    @property
    def components_dir(self) -> Path:
        return self.src_dir / "components"

    @property
    def theme_dir(self) -> Path:
        return self.output_dir / self.name

    @property
    def metadata_path(self) -> Path:
        return self.metadata_file or self.src_dir / "metadata.json"

    @property
    def page_templates_path(self) -> Path:
        return self.page_templates_file or self.src_dir / "page-templates.json"


@dataclass
class ValidationSettings:
    """Knobs for the validation pipeline and its reports."""

    base_url: str = "http://localhost"
    timeout: float = 10.0
    retries: int = 2
    retry_delay: float = 1.0
    user_agent: str = "WordPress-Validator/1.0"
    max_listed_errors: int = 5
    max_listed_warnings: int = 3
    strict_structure: bool = False
    php_executable: str = "php"


@dataclass
class ProjectConfig:
    """Represents the settings defined in .litpress.yml."""

    root: Path
    theme: ThemeConfig = field(default_factory=ThemeConfig)
    validation: ValidationSettings = field(default_factory=ValidationSettings)


def load_config(config_path: Path) -> ProjectConfig:
    """Load configuration from disk, resolving relative paths against the project root."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    theme_data = _as_dict(data.get("theme"))
    theme = ThemeConfig(
        name=_as_str(theme_data.get("name")) or ThemeConfig.name,
        text_domain=_as_str(theme_data.get("text_domain")),
        src_dir=root / (_as_str(theme_data.get("src_dir")) or "src"),
        output_dir=root / (_as_str(theme_data.get("output_dir")) or "wordpress-output"),
    )
    metadata_file = _as_str(theme_data.get("metadata_file"))
    if metadata_file:
        theme.metadata_file = root / metadata_file
    page_templates_file = _as_str(theme_data.get("page_templates_file"))
    if page_templates_file:
        theme.page_templates_file = root / page_templates_file

    validation_data = _as_dict(data.get("validation"))
    defaults = ValidationSettings()
    validation = ValidationSettings(
        base_url=_as_str(validation_data.get("base_url")) or defaults.base_url,
        timeout=_as_float(validation_data.get("timeout"), defaults.timeout),
        retries=_as_int(validation_data.get("retries"), defaults.retries),
        retry_delay=_as_float(validation_data.get("retry_delay"), defaults.retry_delay),
        user_agent=_as_str(validation_data.get("user_agent")) or defaults.user_agent,
        max_listed_errors=_as_int(
            validation_data.get("max_listed_errors"), defaults.max_listed_errors
        ),
        max_listed_warnings=_as_int(
            validation_data.get("max_listed_warnings"), defaults.max_listed_warnings
        ),
        strict_structure=bool(_as_bool(validation_data.get("strict_structure"))),
        php_executable=_as_str(validation_data.get("php_executable")) or defaults.php_executable,
    )

    return ProjectConfig(root=root, theme=theme, validation=validation)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ProjectConfig",
    "ThemeConfig",
    "ValidationSettings",
    "load_config",
]
