"""Escape policy: choose the WordPress output-sanitisation call for each value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from ..models import VALID_ESCAPES, ComponentMetadata

ESCAPE_FUNCTIONS: Dict[str, Optional[str]] = {
    "html": "esc_html",
    "url": "esc_url",
    "attr": "esc_attr",
    "js": "esc_js",
    "none": None,
}

# Marks deliberate raw output so validators can tell it apart from a missed escape.
RAW_OUTPUT_MARKER = "/* escape:none */"

_URL_HINTS = ("url", "link", "image")
_ATTR_HINTS = ("alt", "title")


@dataclass(frozen=True)
class EscapeDecision:
    """Outcome of resolving the escape for one value."""

    escape: str
    field_type: Optional[str] = None
    heuristic: bool = False

    @property
    def is_image(self) -> bool:
        return self.field_type == "image"


class EscapePolicy:
    """Resolves escapes from metadata declarations, with a flagged name-based fallback."""

    def __init__(
        self,
        escapes: Mapping[str, str] | None = None,
        field_types: Mapping[str, str] | None = None,
        array_escapes: Mapping[str, Mapping[str, str]] | None = None,
        array_field_types: Mapping[str, Mapping[str, str]] | None = None,
    ) -> None:
        self.escapes = dict(escapes or {})
        self.field_types = dict(field_types or {})
        self.array_escapes = {key: dict(value) for key, value in (array_escapes or {}).items()}
        self.array_field_types = {
            key: dict(value) for key, value in (array_field_types or {}).items()
        }

    @classmethod
    def from_metadata(cls, metadata: ComponentMetadata) -> "EscapePolicy":
        # Every array parameter gets its own scope, so loop items never borrow top-level escapes.
        array_names = [parameter.name for parameter in metadata.parameters if parameter.type == "array"]
        array_names.extend(name for name in metadata.array_fields if name not in array_names)
        array_escapes = {
            array_name: {
                field.name: field.escape for field in metadata.array_fields.get(array_name, []) if field.escape
            }
            for array_name in array_names
        }
        array_field_types = {
            array_name: {
                field.name: field.field_type
                for field in metadata.array_fields.get(array_name, [])
                if field.field_type
            }
            for array_name in array_names
        }
        return cls(
            escapes=metadata.escapes(),
            field_types={
                parameter.name: parameter.field_type for parameter in metadata.parameters if parameter.field_type
            },
            array_escapes=array_escapes,
            array_field_types=array_field_types,
        )

    def resolve(self, name: str, array: str | None = None) -> EscapeDecision:
        """Resolve ``name`` in the scope of ``array`` when that array is declared, else at top level."""
        if array is not None and (array in self.array_escapes or array in self.array_field_types):
            escapes = self.array_escapes.get(array, {})
            field_types = self.array_field_types.get(array, {})
        else:
            escapes, field_types = self.escapes, self.field_types
        field_type = field_types.get(name)
        declared = escapes.get(name)
        if declared in VALID_ESCAPES:
            return EscapeDecision(declared, field_type)
        if field_type == "image":
            return EscapeDecision("url", field_type)
        return EscapeDecision(infer_escape(name), field_type, heuristic=True)


def infer_escape(name: str) -> str:
    """Best-effort escape guess from a field name; used only when metadata is silent."""
    lowered = name.lower()
    if any(hint in lowered for hint in _URL_HINTS):
        return "url"
    if any(hint in lowered for hint in _ATTR_HINTS):
        return "attr"
    return "html"


def wrap(value: str, escape: str) -> str:
    """Wrap a PHP value expression in the escape function for ``escape``."""
    function = ESCAPE_FUNCTIONS.get(escape, "esc_html")
    if function is None:
        return f"{RAW_OUTPUT_MARKER} {value}"
    return f"{function}({value})"


def image_output(value: str) -> str:
    """Echo an image field that may hold an attachment id or a literal URL."""
    return (
        f"is_numeric({value}) "
        f"? esc_url(wp_get_attachment_image_url((int) {value}, 'full')) "
        f": esc_url({value})"
    )


__all__ = [
    "ESCAPE_FUNCTIONS",
    "EscapeDecision",
    "EscapePolicy",
    "RAW_OUTPUT_MARKER",
    "image_output",
    "infer_escape",
    "wrap",
]
