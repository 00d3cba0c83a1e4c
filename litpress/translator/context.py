"""Per-component translation state: loop scopes, references and diagnostics."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterator, List, Optional

from ..logging import get_logger
from ..phpcode import php_string, php_variable
from .escaping import EscapeDecision, EscapePolicy

_LOGGER = get_logger("translator")

HEURISTIC_ESCAPE = "heuristic-escape"
MANUAL_IMPLEMENTATION = "manual-implementation"
DROPPED_BINDING = "dropped-binding"
UNDECLARED_PROPERTY = "undeclared-property"


@dataclass
class TranslationDiagnostic:
    """Something the validators should hear about after translation."""

    kind: str
    expression: str
    detail: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class LoopScope:
    """Names bound by a ``.map()`` callback."""

    item: str
    index: Optional[str]
    array: str


@dataclass(frozen=True)
class Reference:
    """A JavaScript property path resolved to a PHP expression."""

    php: str
    name: str
    array: Optional[str] = None
    is_index: bool = False
    is_count: bool = False


@dataclass
class TranslationContext:
    policy: EscapePolicy
    text_domain: str = "theme"
    component: Optional[str] = None
    scopes: List[LoopScope] = field(default_factory=list)
    diagnostics: List[TranslationDiagnostic] = field(default_factory=list)

    @contextmanager
    def loop(self, scope: LoopScope) -> Iterator[LoopScope]:
        self.scopes.append(scope)
        try:
            yield scope
        finally:
            self.scopes.pop()

    def find_scope(self, name: str) -> Optional[LoopScope]:
        for scope in reversed(self.scopes):
            if name in (scope.item, scope.index):
                return scope
        return None

    def resolve(self, path: str) -> Optional[Reference]:
        """Resolve ``this.foo.bar`` or a loop-bound path, or return None if unknown."""
        parts = path.split(".")
        is_count = len(parts) > 1 and parts[-1] == "length"
        if is_count:
            parts = parts[:-1]

        reference: Optional[Reference]
        if parts[0] == "this":
            parts = parts[1:]
            if not parts:
                return None
            php = php_variable(parts[0]) + _subscripts(parts[1:])
            # Nested paths take the escape declared for their root parameter.
            reference = Reference(php=php, name=parts[0])
        else:
            scope = self.find_scope(parts[0])
            if scope is None:
                return None
            if parts[0] == scope.index:
                if len(parts) > 1:
                    return None
                reference = Reference(php=php_variable(parts[0]), name=parts[0], is_index=True)
            else:
                php = php_variable(parts[0]) + _subscripts(parts[1:])
                if len(parts) > 1:
                    reference = Reference(php=php, name=parts[-1], array=scope.array)
                else:
                    reference = Reference(php=php, name=scope.array)

        if is_count:
            return Reference(php=f"count({reference.php})", name=reference.name, is_count=True)
        return reference

    def escape_for(self, reference: Reference, expression: str) -> EscapeDecision:
        if reference.is_index or reference.is_count:
            return EscapeDecision("html")
        decision = self.policy.resolve(reference.name, reference.array)
        if decision.heuristic:
            self.flag(
                HEURISTIC_ESCAPE,
                expression,
                f"No escape declared for '{reference.name}'; inferred '{decision.escape}' from its name",
            )
        return decision

    def flag(self, kind: str, expression: str, detail: str) -> None:
        _LOGGER.debug("%s: %s (%s)", kind, expression, detail)
        self.diagnostics.append(TranslationDiagnostic(kind=kind, expression=expression, detail=detail))


def _subscripts(parts: List[str]) -> str:
    return "".join(f"[{php_string(part)}]" for part in parts)


__all__ = [
    "DROPPED_BINDING",
    "HEURISTIC_ESCAPE",
    "LoopScope",
    "MANUAL_IMPLEMENTATION",
    "Reference",
    "TranslationContext",
    "TranslationDiagnostic",
    "UNDECLARED_PROPERTY",
]
