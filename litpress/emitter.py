"""Component emitter: wraps translated markup in a PHP render function."""

from __future__ import annotations

from typing import Sequence

from jinja2 import Environment

from .config import ConfigError
from .models import VALID_ESCAPES, ComponentMetadata, Parameter
from .phpcode import function_name_for, php_variable, to_php_literal
from .rendering import create_environment

_TEMPLATE_NAME = "component.php.j2"


def ensure_escape_declarations(metadata: ComponentMetadata) -> None:
    """Raise ConfigError naming the first parameter or array field without a valid escape."""
    if metadata.component_type is None:
        raise ConfigError(
            f"metadata.json > {metadata.name} > type must be one of "
            "static, iterative, aggregated, comprehensive (got "
            f"{metadata.type!r}). No fallbacks are used."
        )
    _check_parameters(metadata.name, metadata.parameters)
    for array_name, fields in metadata.array_fields.items():
        for index, field in enumerate(fields):
            path = f"metadata.json > {metadata.name} > arrayFields.{array_name}[{index}]"
            if not field.name:
                raise ConfigError(f"{path}.name is missing")
            if field.escape not in VALID_ESCAPES:
                raise ConfigError(
                    f"{path}.escape is missing or invalid ({field.escape!r}); "
                    f"expected one of {', '.join(VALID_ESCAPES)}"
                )


def _check_parameters(component: str, parameters: Sequence[Parameter]) -> None:
    for index, parameter in enumerate(parameters):
        path = f"metadata.json > {component} > parameters[{index}]"
        if not parameter.name:
            raise ConfigError(f"{path}.name is missing")
        if parameter.escape not in VALID_ESCAPES:
            raise ConfigError(
                f"{path}.escape is missing or invalid for '{parameter.name}' "
                f"({parameter.escape!r}); expected one of {', '.join(VALID_ESCAPES)}"
            )


class ComponentEmitter:
    """Renders one component PHP file from translated markup and metadata parameters."""

    def __init__(self, env: Environment | None = None) -> None:
        self._env = env or create_environment()

    def emit(
        self,
        component_name: str,
        translated_markup: str,
        parameters: Sequence[Parameter],
        *,
        css: str = "",
    ) -> str:
        _check_parameters(component_name, parameters)
        function_name = function_name_for(component_name)
        template = self._env.get_template(_TEMPLATE_NAME)
        return template.render(
            component=component_name,
            title=component_name.replace("-", " ").title(),
            function_name=function_name,
            styles_function=f"{function_name}_styles",
            signature=self.signature(parameters),
            markup=translated_markup.strip("\n"),
            css=css.strip(),
            has_styles=bool(css.strip()),
        )

    @staticmethod
    def signature(parameters: Sequence[Parameter]) -> str:
        return ", ".join(
            f"{php_variable(parameter.name)} = {to_php_literal(parameter.default, parameter.type)}"
            for parameter in parameters
        )


__all__ = ["ComponentEmitter", "ensure_escape_declarations"]
