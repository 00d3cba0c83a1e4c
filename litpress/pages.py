"""Page template builder: emits the PHP that invokes components on a page."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from jinja2 import Environment

from .config import ConfigError
from .metadata import MetadataStore
from .models import ComponentMetadata, ComponentType, PageComponent, PageTemplate
from .phpcode import function_name_for, php_string, snake_case, to_php_literal, value_to_php_literal
from .rendering import create_environment

_NATIVE_SOURCES = {
    "post_title": "get_the_title($item)",
    "post_excerpt": "get_the_excerpt($item)",
    "post_content": "get_the_content(null, false, $item)",
    "post_thumbnail_url": "get_the_post_thumbnail_url($item, 'medium')",
    "post_permalink": "get_permalink($item)",
}
_MAPPING_TYPES = ("native", "acf", "static")


def build_invocation(usage: PageComponent, metadata: ComponentMetadata) -> str:
    """Return the PHP snippet that renders ``usage`` according to its component type."""
    component_type = metadata.component_type
    if component_type is None:
        raise ConfigError(
            f"Component type '{metadata.type}' for {usage.name} is not supported. No fallbacks are used."
        )
    if component_type is ComponentType.STATIC:
        return _static_invocation(usage, metadata)
    if component_type is ComponentType.ITERATIVE:
        return _iterative_invocation(usage, metadata)
    # comprehensive components render exactly like aggregated ones
    return _aggregated_invocation(usage, metadata)


def build_query(data_source: Mapping[str, Any] | None) -> str:
    """Render the ``get_posts`` argument list for a data source."""
    query: Dict[str, Any] = dict((data_source or {}).get("query") or {})
    post_type = (data_source or {}).get("postType")
    if "post_type" not in query and post_type:
        query["post_type"] = post_type
    return ", ".join(f"{php_string(str(key))} => {value_to_php_literal(value)}" for key, value in query.items())


def _static_invocation(usage: PageComponent, metadata: ComponentMetadata) -> str:
    arguments = ", ".join(
        to_php_literal(usage.props.get(parameter.name, parameter.default), parameter.type)
        for parameter in metadata.parameters
    )
    return f"<?php {function_name_for(metadata.name)}({arguments}); ?>"


def _iterative_invocation(usage: PageComponent, metadata: ComponentMetadata) -> str:
    mapping = (usage.data_source or {}).get("mapping") or {}
    arguments: List[str] = []
    for parameter in metadata.parameters:
        if parameter.name not in mapping:
            raise ConfigError(
                f"ITERATIVE COMPONENT ERROR: {usage.name}.{parameter.name} is not configured in "
                "dataSource.mapping of page-templates.json. Explicit mapping is required."
            )
        arguments.append(_mapped_value(usage.name, parameter.name, mapping[parameter.name], None))
    joined = ",\n            ".join(arguments)
    return (
        "<?php\n"
        f"$items = get_posts(array({build_query(usage.data_source)}));\n"
        "if (!empty($items)) {\n"
        "    foreach ($items as $item) {\n"
        f"        {function_name_for(metadata.name)}(\n            {joined}\n        );\n"
        "    }\n"
        "}\n"
        "?>"
    )


def _aggregated_invocation(usage: PageComponent, metadata: ComponentMetadata) -> str:
    mapping = (usage.data_source or {}).get("mapping") or {}
    field_types = metadata.field_types()
    entries = []
    for key, value in mapping.items():
        record_key = key
        if isinstance(value, dict) and str(value.get("source", "")).startswith("meta_"):
            record_key = str(value["source"])[len("meta_"):]
        mapped = _mapped_value(usage.name, key, value, field_types.get(key))
        entries.append(f"{php_string(record_key)} => {mapped}")
    variable = f"${snake_case(usage.name)}_data"
    static_arguments = [
        to_php_literal(usage.props.get(parameter.name, parameter.default), parameter.type)
        for parameter in metadata.parameters
        if parameter.type != "array"
    ]
    arguments = ", ".join(static_arguments + [variable])
    record = ",\n            ".join(entries)
    return (
        "<?php\n"
        f"$items = get_posts(array({build_query(usage.data_source)}));\n"
        f"{variable} = array();\n"
        "if (!empty($items)) {\n"
        "    foreach ($items as $item) {\n"
        f"        {variable}[] = array(\n            {record}\n        );\n"
        "    }\n"
        "}\n"
        f"{function_name_for(metadata.name)}({arguments});\n"
        "?>"
    )


def _mapped_value(component: str, key: str, value: Any, field_type: str | None) -> str:
    if isinstance(value, str):
        raise ConfigError(
            f"{component}.{key} uses a legacy string mapping ('{value}'). "
            'Use {"source": "...", "type": "native|acf|static"} instead.'
        )
    if not isinstance(value, dict) or not value.get("source") or not value.get("type"):
        raise ConfigError(f"{component}.{key} mapping needs both 'source' and 'type'")
    source = str(value["source"])
    mapping_type = str(value["type"])
    if mapping_type not in _MAPPING_TYPES:
        raise ConfigError(
            f"{component}.{key} mapping type '{mapping_type}' is not supported. "
            f"Use one of: {', '.join(_MAPPING_TYPES)}"
        )
    if mapping_type == "static":
        return php_string(source)
    if source in _NATIVE_SOURCES:
        return _NATIVE_SOURCES[source]
    if source.startswith("meta_"):
        meta_key = php_string(source[len("meta_"):])
        if mapping_type != "acf":
            return f"get_post_meta($item->ID, {meta_key}, true)"
        if field_type == "image":
            return (
                "(function () use ($item) {\n"
                f"                $field = get_field({meta_key}, $item->ID);\n"
                "                if (is_array($field) && isset($field['url'])) return $field['url'];\n"
                "                if (is_numeric($field) && !empty($field)) "
                "return wp_get_attachment_image_url((int) $field, 'full') ?: '';\n"
                "                return is_string($field) ? $field : '';\n"
                "            })()"
            )
        return f"get_field({meta_key}, $item->ID)"
    return php_string(source)


class PageTemplateBuilder:
    """Renders ``page-<name>.php`` files from page-templates.json."""

    def __init__(self, store: MetadataStore, env: Environment | None = None) -> None:
        self.store = store
        self._env = env or create_environment()

    def build(self, page: PageTemplate, text_domain: str) -> str:
        invocations = []
        for usage in page.components:
            metadata = self.store.require(usage.name)
            invocations.append(build_invocation(usage, metadata))
        template = self._env.get_template("page.php.j2")
        return template.render(
            page=page,
            title=page.title or page.slug.replace("-", " ").title(),
            invocations=invocations,
            text_domain=text_domain,
        )


__all__ = ["PageTemplateBuilder", "build_invocation", "build_query"]
