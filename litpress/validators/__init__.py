"""Validator plugins, data sources and the validation engine."""

from __future__ import annotations

from importlib import metadata as importlib_metadata
from typing import Callable, Iterable, List, Sequence, Set

from .assets import AssetValidator
from .base import (
    Check,
    SourceError,
    Status,
    TestUrl,
    ValidationContext,
    ValidationResult,
    Validator,
)
from .components import ComponentValidator, RenderedComponentValidator
from .engine import EngineBuilder, LoggingMiddleware, ValidationEngine
from .metadata import MetadataValidator
from .php import PHPSyntaxValidator
from .report import ValidationReport, aggregate, consolidate
from .seo import SEOValidator
from .sources import ConfigSource, DataSource, HTMLSource, ThemeSource
from .structure import StructureValidator

_ENTRY_POINT_GROUP = "litpress.validators"

_BUILTIN_FACTORIES: dict[str, Callable[[], Validator]] = {
    "structure": StructureValidator,
    "metadata": MetadataValidator,
    "components": ComponentValidator,
    "php": PHPSyntaxValidator,
    "seo": SEOValidator,
    "assets": AssetValidator,
    "rendered-components": RenderedComponentValidator,
}

OFFLINE_VALIDATORS = ("structure", "metadata", "components", "php")
LIVE_VALIDATORS = ("seo", "rendered-components", "assets")


def discover_validators(enabled: Sequence[str] | None = None) -> List[Validator]:
    """Return instantiated validators, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    validators: List[Validator] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], Validator]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, Validator):
            raise TypeError(f"Validator factory for '{name}' did not return a Validator instance")
        validators.append(instance)
        seen.add(key)
        if enabled_set is not None:
            enabled_set.discard(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load validator entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Validator:
            return _coerce_validator(obj)

        _add(entry.name, _factory)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown validators requested: {missing}")

    return validators


def default_sources() -> List[DataSource]:
    return [ConfigSource(), ThemeSource(), HTMLSource()]


def _coerce_validator(obj: object) -> Validator:
    if isinstance(obj, Validator):
        return obj
    if isinstance(obj, type) and issubclass(obj, Validator):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Validator):
            return instance
    raise TypeError("Validator entry point must be a Validator subclass or factory")


def _iter_entry_points() -> Iterable[importlib_metadata.EntryPoint]:
    return importlib_metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "AssetValidator",
    "Check",
    "ComponentValidator",
    "ConfigSource",
    "DataSource",
    "EngineBuilder",
    "HTMLSource",
    "LIVE_VALIDATORS",
    "LoggingMiddleware",
    "MetadataValidator",
    "OFFLINE_VALIDATORS",
    "PHPSyntaxValidator",
    "RenderedComponentValidator",
    "SEOValidator",
    "SourceError",
    "Status",
    "StructureValidator",
    "TestUrl",
    "ThemeSource",
    "ValidationContext",
    "ValidationEngine",
    "ValidationReport",
    "ValidationResult",
    "Validator",
    "aggregate",
    "consolidate",
    "default_sources",
    "discover_validators",
]
