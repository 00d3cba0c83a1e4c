"""metadata.json contract checks: escape completeness, fail-fast rules, page consistency."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..models import VALID_ESCAPES, ComponentType
from .base import ValidationContext, Validator
from .sources import ProjectData

_FALLBACK_PATTERNS = (("||", "OR operator"), ("??", "nullish coalescing"), ("fallback", "fallback keyword"))
_ARRAY_FIELD_KEYS = ("name", "type", "fieldType", "escape")
_ARRAY_TYPES = {ComponentType.AGGREGATED.value, ComponentType.COMPREHENSIVE.value}


def _components(raw: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {name: entry for name, entry in raw.items() if isinstance(entry, dict)}


def _parameters(entry: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [param for param in entry.get("parameters") or [] if isinstance(param, dict)]


class MetadataValidator(Validator):
    """Every parameter and array field must declare one of the five escapes.

    Any gap is a FAIL; the exact coverage ratio is recorded in the result
    metadata. The validator also flags fallback-style defaults, incomplete
    ``arrayFields`` and drift between metadata and page templates.
    """

    name = "metadata"
    description = "Escape completeness and fail-fast rules for metadata.json"
    required_sources = ("config",)

    def validate(self, sources: Mapping[str, Any], context: ValidationContext) -> None:
        data: ProjectData = sources["config"]
        components = _components(data.raw_metadata)
        self._validate_basic_structure(components)
        self._validate_escapes(components)
        self._validate_fail_fast(components)
        self._validate_array_fields(components)
        self._validate_page_consistency(data)

    def _validate_basic_structure(self, components: Mapping[str, Dict[str, Any]]) -> None:
        valid = [name for name, entry in components.items() if entry.get("type") and "parameters" in entry]
        self.check(bool(valid), "metadata.json contains at least one valid component")
        for name, entry in components.items():
            self.check(bool(entry.get("type")), f"'{name}' declares a type")
            self.check("parameters" in entry, f"'{name}' declares parameters")

    def _validate_escapes(self, components: Mapping[str, Dict[str, Any]]) -> None:
        total = declared = 0
        for name, entry in components.items():
            for param in _parameters(entry):
                total += 1
                declared += self._check_escape(
                    param.get("escape"),
                    f"Parameter '{param.get('name')}' in '{name}'",
                    {"component": name, "parameter": param.get("name")},
                )
            for array_name, fields in self._array_fields(entry).items():
                for field in fields:
                    total += 1
                    declared += self._check_escape(
                        field.get("escape"),
                        f"Array field '{field.get('name')}' in '{name}.{array_name}'",
                        {"component": name, "array": array_name, "field": field.get("name")},
                    )

        coverage = 1.0 if total == 0 else declared / total
        self.result.metadata["escape_coverage"] = {"declared": declared, "total": total, "ratio": coverage}
        self.check(
            declared == total,
            f"Escape coverage {declared}/{total} ({coverage:.0%})",
            metadata={"declared": declared, "total": total},
        )

    def _check_escape(self, escape: Any, label: str, metadata: Dict[str, Any]) -> int:
        if escape is None:
            self.result.add_error(
                f"MISSING ESCAPE: {label} needs an 'escape' of {'|'.join(VALID_ESCAPES)}", metadata
            )
            return 0
        return int(
            self.check(
                escape in VALID_ESCAPES,
                f"{label} escape '{escape}' is valid",
                metadata={**metadata, "escape": escape},
            )
        )

    def _validate_fail_fast(self, components: Mapping[str, Dict[str, Any]]) -> None:
        for name, entry in components.items():
            for param in _parameters(entry):
                default = param.get("default")
                if isinstance(default, str):
                    for pattern, label in _FALLBACK_PATTERNS:
                        if pattern in default:
                            self.result.add_error(
                                f"FALLBACK: default of '{param.get('name')}' in '{name}' uses {label}",
                                {"component": name, "parameter": param.get("name"), "value": default},
                            )
                field_type = param.get("fieldType")
                if isinstance(field_type, str) and "||" in field_type:
                    self.result.add_error(
                        f"FIELDTYPE FALLBACK: '{param.get('name')}' in '{name}' uses '||' in fieldType",
                        {"component": name, "parameter": param.get("name"), "fieldType": field_type},
                    )

    def _validate_array_fields(self, components: Mapping[str, Dict[str, Any]]) -> None:
        for name, entry in components.items():
            array_fields = entry.get("arrayFields")
            if entry.get("type") in _ARRAY_TYPES:
                self.check(
                    isinstance(array_fields, dict) and bool(array_fields),
                    f"'{name}' ({entry.get('type')}) declares arrayFields",
                    severity="warning",
                )
            for array_name, fields in self._array_fields(entry).items():
                if not fields:
                    self.result.add_error(f"arrayFields '{array_name}' in '{name}' is empty")
                    continue
                for index, field in enumerate(fields):
                    missing = [key for key in _ARRAY_FIELD_KEYS if not field.get(key)]
                    self.check(
                        not missing,
                        f"Field {index} of '{name}.{array_name}'"
                        + (f" is missing {', '.join(missing)}" if missing else " is complete"),
                        metadata={"component": name, "array": array_name, "missing": missing},
                    )

    def _validate_page_consistency(self, data: ProjectData) -> None:
        if not data.pages:
            return
        used = data.used_components()
        for component, pages in sorted(used.items()):
            self.check(
                component in data.components,
                f"'{component}' used by {', '.join(pages)} is defined in metadata.json",
                metadata={"component": component, "pages": pages},
            )
        for component in sorted(set(data.components) - set(used)):
            self.result.add_warning(
                f"'{component}' is defined in metadata.json but not used by any page",
                {"component": component},
            )

    @staticmethod
    def _array_fields(entry: Mapping[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
        raw = entry.get("arrayFields")
        if not isinstance(raw, dict):
            return {}
        return {
            array_name: [field for field in fields or [] if isinstance(field, dict)]
            for array_name, fields in raw.items()
        }


__all__ = ["MetadataValidator"]
