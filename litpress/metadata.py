"""Metadata store: loads and indexes component metadata and page templates."""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .config import ConfigError
from .logging import get_logger
from .models import (
    Aggregation,
    ArrayField,
    ComponentMetadata,
    PageComponent,
    PageTemplate,
    Parameter,
)

_LOGGER = get_logger("metadata")

# Top-level keys in page-templates.json that are not pages.
_NON_PAGE_KEYS = {"postTypes"}


def read_json_file(path: Path, label: str | None = None) -> Dict[str, Any]:
    """Read a required JSON object from disk, failing fast on any problem."""
    label = label or path.name
    if not path.exists():
        raise ConfigError(f"FAIL FAST: required {label} not found: {path}")
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        raise ConfigError(f"FAIL FAST: {label} is empty: {path}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"FAIL FAST: {label} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or not data:
        raise ConfigError(f"FAIL FAST: {label} must contain a non-empty JSON object")
    return data


def load_metadata(path: Path) -> Dict[str, ComponentMetadata]:
    """Load metadata.json into a name -> ComponentMetadata map."""
    data = read_json_file(path, "metadata.json")
    components: Dict[str, ComponentMetadata] = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            _LOGGER.debug("Skipping non-component metadata key '%s'", name)
            continue
        components[name] = parse_component(name, entry)
    return components


def parse_component(name: str, entry: Mapping[str, Any]) -> ComponentMetadata:
    """Build a ComponentMetadata from its raw JSON entry."""
    parameters = [
        Parameter(
            name=str(raw.get("name", "")),
            type=str(raw.get("type") or "string"),
            default=raw.get("default"),
            escape=raw.get("escape"),
            field_type=raw.get("fieldType"),
        )
        for raw in entry.get("parameters") or []
        if isinstance(raw, dict)
    ]

    array_fields: Dict[str, List[ArrayField]] = {}
    raw_array_fields = entry.get("arrayFields")
    if isinstance(raw_array_fields, dict):
        for array_name, fields in raw_array_fields.items():
            array_fields[array_name] = [
                ArrayField(
                    name=str(raw.get("name", "")),
                    type=str(raw.get("type") or "string"),
                    field_type=raw.get("fieldType"),
                    escape=raw.get("escape"),
                )
                for raw in fields or []
                if isinstance(raw, dict)
            ]

    aggregation = None
    raw_aggregation = entry.get("aggregation")
    if isinstance(raw_aggregation, dict):
        aggregation = Aggregation(
            data_structure=dict(raw_aggregation.get("dataStructure") or {}),
            default_values=dict(raw_aggregation.get("defaultValues") or {}),
        )

    return ComponentMetadata(
        name=name,
        type=entry.get("type"),
        php_function=entry.get("phpFunction"),
        parameters=parameters,
        array_fields=array_fields,
        aggregation=aggregation,
        raw=dict(entry),
    )


def load_page_templates(path: Path) -> Dict[str, PageTemplate]:
    """Load page-templates.json into a name -> PageTemplate map."""
    data = read_json_file(path, "page-templates.json")
    pages: Dict[str, PageTemplate] = {}
    for name, entry in data.items():
        if name in _NON_PAGE_KEYS or not isinstance(entry, dict):
            continue
        usages = [
            PageComponent(
                name=str(raw.get("name", "")),
                props=dict(raw.get("props") or {}),
                data_source=raw.get("dataSource"),
            )
            for raw in entry.get("components") or []
            if isinstance(raw, dict)
        ]
        pages[name] = PageTemplate(name=name, title=entry.get("title"), components=usages)
    return pages


class MetadataStore:
    """Read-only index of component metadata for a single generation run."""

    def __init__(
        self,
        components: Mapping[str, ComponentMetadata],
        pages: Mapping[str, PageTemplate] | None = None,
    ) -> None:
        self._components = MappingProxyType(dict(components))
        self._pages = MappingProxyType(dict(pages or {}))

    @classmethod
    def load(cls, path: Path, page_templates: Path | None = None) -> "MetadataStore":
        components = load_metadata(path)
        pages = load_page_templates(page_templates) if page_templates else {}
        _LOGGER.debug("Loaded metadata for %d components from %s", len(components), path)
        return cls(components, pages)

    @property
    def components(self) -> Mapping[str, ComponentMetadata]:
        return self._components

    @property
    def pages(self) -> Mapping[str, PageTemplate]:
        return self._pages

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __iter__(self) -> Iterator[str]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def lookup(self, name: str) -> Optional[ComponentMetadata]:
        return self._components.get(name)

    def require(self, name: str) -> ComponentMetadata:
        """Return metadata for ``name`` or raise ConfigError; there is no fallback."""
        metadata = self._components.get(name)
        if metadata is None:
            raise ConfigError(
                f"METADATA MISSING: '{name}' requires an entry in metadata.json. No fallbacks are used."
            )
        return metadata

    def field_types(self, name: str) -> Dict[str, str]:
        metadata = self._components.get(name)
        return metadata.field_types() if metadata else {}


__all__ = [
    "MetadataStore",
    "load_metadata",
    "load_page_templates",
    "parse_component",
    "read_json_file",
]
