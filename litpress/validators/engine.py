"""Validation engine: prepares sources once and runs validators concurrently."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Mapping, Protocol, Sequence

from ..logging import get_logger
from .base import SourceError, ValidationContext, ValidationResult, Validator
from .report import ValidationReport
from .sources import DataSource

_LOGGER = get_logger("validators.engine")


class Middleware(Protocol):
    """Hooks invoked around a whole engine run."""

    def before(self, context: ValidationContext) -> None:
        ...

    def after(self, context: ValidationContext, report: ValidationReport) -> None:
        ...


class LoggingMiddleware:
    """Logs the start of a run and one summary line per validator."""

    def before(self, context: ValidationContext) -> None:
        _LOGGER.info("Starting validation of %s", context.resolved_theme_dir)

    def after(self, context: ValidationContext, report: ValidationReport) -> None:
        for result in report.results:
            _LOGGER.info(
                "%s: %s (%d errors, %d warnings)",
                result.validator,
                result.status.value,
                len(result.errors),
                len(result.warnings),
            )


class ValidationEngine:
    """Runs registered validators against prepared data sources.

    Validators run concurrently in the default executor and never share
    mutable state; a validator that raises yields an ERROR result and its
    siblings are unaffected. Every run produces a :class:`ValidationReport`.
    """

    def __init__(self, name: str = "Validation Report") -> None:
        self.name = name
        self._validators: Dict[str, Validator] = {}
        self._sources: Dict[str, DataSource] = {}
        self._middleware: List[Middleware] = []

    @classmethod
    def builder(cls, name: str = "Validation Report") -> "EngineBuilder":
        return EngineBuilder(name)

    @property
    def validators(self) -> List[Validator]:
        return list(self._validators.values())

    def register_validator(self, validator: Validator) -> "ValidationEngine":
        if not isinstance(validator, Validator):
            raise TypeError(f"{validator!r} is not a Validator instance")
        self._validators[validator.name] = validator
        return self

    def register_source(self, source: DataSource) -> "ValidationEngine":
        self._sources[source.name] = source
        return self

    def use(self, middleware: Middleware) -> "ValidationEngine":
        self._middleware.append(middleware)
        return self

    def run(self, context: ValidationContext) -> ValidationReport:
        return asyncio.run(self.run_async(context))

    async def run_async(self, context: ValidationContext) -> ValidationReport:
        report = ValidationReport(self.name)
        for middleware in self._middleware:
            middleware.before(context)

        loop = asyncio.get_running_loop()
        prepared, failures = await self._prepare_sources(loop, context)
        tasks = [
            loop.run_in_executor(None, self._run_validator, validator, prepared, failures, context)
            for validator in self._validators.values()
        ]
        for result in await asyncio.gather(*tasks):
            report.add(result)
        report.finish()

        for middleware in self._middleware:
            middleware.after(context, report)
        return report

    async def _prepare_sources(
        self, loop: asyncio.AbstractEventLoop, context: ValidationContext
    ) -> tuple[Dict[str, Any], Dict[str, str]]:
        needed = {name for validator in self._validators.values() for name in validator.required_sources}
        prepared: Dict[str, Any] = {}
        failures: Dict[str, str] = {}
        for name in sorted(needed):
            source = self._sources.get(name)
            if source is None:
                failures[name] = f"source '{name}' is not registered"
                continue
            try:
                prepared[name] = await loop.run_in_executor(None, source.prepare, context)
            except Exception as exc:
                _LOGGER.debug("Source %s failed", name, exc_info=True)
                failures[name] = str(exc)
        return prepared, failures

    @staticmethod
    def _run_validator(
        validator: Validator,
        prepared: Mapping[str, Any],
        failures: Mapping[str, str],
        context: ValidationContext,
    ) -> ValidationResult:
        started = time.perf_counter()
        validator.reset()
        try:
            for name in validator.required_sources:
                if name in failures:
                    raise SourceError(f"required source '{name}' unavailable: {failures[name]}")
            validator.validate({name: prepared[name] for name in validator.required_sources}, context)
            result = validator.result
        except Exception as exc:
            _LOGGER.debug("Validator %s raised", validator.name, exc_info=True)
            result = ValidationResult.from_exception(validator.name, exc)
        result.duration = time.perf_counter() - started
        return result


class EngineBuilder:
    """Fluent construction of a :class:`ValidationEngine`."""

    def __init__(self, name: str) -> None:
        self._engine = ValidationEngine(name)

    def validator(self, validator: Validator) -> "EngineBuilder":
        self._engine.register_validator(validator)
        return self

    def validators(self, validators: Sequence[Validator]) -> "EngineBuilder":
        for validator in validators:
            self._engine.register_validator(validator)
        return self

    def source(self, source: DataSource) -> "EngineBuilder":
        self._engine.register_source(source)
        return self

    def middleware(self, middleware: Middleware) -> "EngineBuilder":
        self._engine.use(middleware)
        return self

    def build(self) -> ValidationEngine:
        return self._engine


__all__ = ["EngineBuilder", "LoggingMiddleware", "Middleware", "ValidationEngine"]
