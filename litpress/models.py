"""Core data models shared across litpress components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

VALID_ESCAPES = ("html", "url", "attr", "js", "none")


class ComponentType(str, Enum):
    """Emission strategy declared for a component."""

    STATIC = "static"
    ITERATIVE = "iterative"
    AGGREGATED = "aggregated"
    COMPREHENSIVE = "comprehensive"

    @property
    def needs_array_fields(self) -> bool:
        return self in (ComponentType.AGGREGATED, ComponentType.COMPREHENSIVE)


@dataclass
class Parameter:
    """One render-function parameter as declared in metadata.json."""

    name: str
    type: str = "string"
    default: Any = None
    escape: Optional[str] = None
    field_type: Optional[str] = None


@dataclass
class ArrayField:
    """Field descriptor for records inside an array parameter."""

    name: str
    type: str = "string"
    field_type: Optional[str] = None
    escape: Optional[str] = None


@dataclass
class Aggregation:
    """Data-structure mapping for aggregated components."""

    data_structure: Dict[str, Any] = field(default_factory=dict)
    default_values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ComponentMetadata:
    """Metadata contract for a single component."""

    name: str
    type: Optional[str]
    php_function: Optional[str]
    parameters: List[Parameter] = field(default_factory=list)
    array_fields: Dict[str, List[ArrayField]] = field(default_factory=dict)
    aggregation: Optional[Aggregation] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def component_type(self) -> Optional[ComponentType]:
        try:
            return ComponentType(self.type) if self.type else None
        except ValueError:
            return None

    def parameter(self, name: str) -> Optional[Parameter]:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None

    def field_types(self) -> Dict[str, str]:
        """Merge ``fieldType`` declarations from array fields and parameters."""
        types: Dict[str, str] = {}
        for fields in self.array_fields.values():
            for array_field in fields:
                if array_field.field_type:
                    types[array_field.name] = array_field.field_type
        for parameter in self.parameters:
            if parameter.field_type:
                types[parameter.name] = parameter.field_type
        return types

    def escapes(self) -> Dict[str, str]:
        """Map each top-level parameter to its escape; array fields keep their own in ``array_fields``."""
        return {parameter.name: parameter.escape for parameter in self.parameters if parameter.escape}


@dataclass
class PageComponent:
    """A single component usage inside a page template."""

    name: str
    props: Dict[str, Any] = field(default_factory=dict)
    data_source: Optional[Dict[str, Any]] = None


@dataclass
class PageTemplate:
    """Ordered component usages for one page."""

    name: str
    title: Optional[str] = None
    components: List[PageComponent] = field(default_factory=list)

    @property
    def slug(self) -> str:
        return self.name[len("page-"):] if self.name.startswith("page-") else self.name

    @property
    def filename(self) -> str:
        if self.name.startswith(("page-", "single-")) or self.name == "front-page":
            return f"{self.name}.php"
        return f"page-{self.name}.php"
