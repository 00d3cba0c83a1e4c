"""FastAPI application entrypoint for litpress service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..generator import GenerationResult
from ..orchestrator import Orchestrator
from ..translator import TranslationOutcome
from ..validators import ValidationReport


class TranslateRequest(BaseModel):
    source: str
    field_types: Dict[str, str] = Field(default_factory=dict)
    escapes: Dict[str, str] = Field(default_factory=dict)
    theme_name: str = "theme"


class Diagnostic(BaseModel):
    kind: str
    expression: str
    detail: str


class TranslateResponse(BaseModel):
    markup: str
    diagnostics: List[Diagnostic]


class GenerateRequest(BaseModel):
    path: str


class GenerateResponse(BaseModel):
    theme_dir: str
    components: List[str]
    pages: List[str]
    skipped: List[str]


class OfflineValidationRequest(BaseModel):
    path: str
    validators: Optional[List[str]] = None


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing translation, generation and validation."""
    app = FastAPI(title="litpress", version="0.1.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/translate", response_model=TranslateResponse)
    async def translate(
        payload: TranslateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> TranslateResponse:
        def _run() -> Optional[TranslationOutcome]:
            return orchestrator.translate_source(
                payload.source,
                payload.field_types,
                payload.theme_name,
                escapes=payload.escapes,
            )

        outcome = await asyncio.get_running_loop().run_in_executor(None, _run)
        if outcome is None:
            raise HTTPException(status_code=422, detail="No render() template found in source")
        return TranslateResponse(
            markup=outcome.markup,
            diagnostics=[Diagnostic(**diagnostic.to_dict()) for diagnostic in outcome.diagnostics],
        )

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        def _run() -> GenerationResult:
            return orchestrator.run_generate(payload.path)

        result = await asyncio.get_running_loop().run_in_executor(None, _run)
        return GenerateResponse(
            theme_dir=str(result.theme_dir),
            components=[artifact.name for artifact in result.components],
            pages=[str(page) for page in result.pages],
            skipped=result.skipped,
        )

    @app.post("/validate/offline")
    async def validate_offline(
        payload: OfflineValidationRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        def _run() -> ValidationReport:
            return orchestrator.run_offline(payload.path, payload.validators)

        report = await asyncio.get_running_loop().run_in_executor(None, _run)
        return report.to_dict()

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
