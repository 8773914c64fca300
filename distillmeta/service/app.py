"""FastAPI application entrypoint for distillmeta service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..config import ConfigError
from ..orchestrator import FatalInputError, Orchestrator, RunOutcome

OrchestratorFactory = Callable[[str, bool], Orchestrator]


class RunRequest(BaseModel):
    path: str = "."
    offline: bool = False


class RunResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    passed: bool
    gate: str
    threshold: float
    overall_score: float = Field(alias="overallScore")
    components: Dict[str, float]

    @classmethod
    def from_outcome(cls, outcome: RunOutcome) -> "RunResponse":
        return cls(
            passed=outcome.passed,
            gate=outcome.gate,
            threshold=outcome.threshold,
            overall_score=outcome.overall_score,
            components=dict(outcome.components),
        )


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_orchestrator(path: str, offline: bool) -> Orchestrator:
    return Orchestrator.from_path(path, offline=offline)


def create_app(orchestrator_factory: OrchestratorFactory = _default_orchestrator) -> FastAPI:
    """Create the FastAPI application exposing distillmeta runs."""
    app = FastAPI(title="distillmeta", version=__version__)

    async def _execute(payload: RunRequest, action: Callable[[Orchestrator], RunOutcome]) -> RunResponse:
        def _run() -> RunOutcome:
            return action(orchestrator_factory(payload.path, payload.offline))

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run)
        return RunResponse.from_outcome(outcome)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.post("/run", response_model=RunResponse, response_model_by_alias=True)
    async def run_all(payload: RunRequest) -> RunResponse:
        return await _execute(payload, lambda orchestrator: orchestrator.run_all())

    @app.post("/score", response_model=RunResponse, response_model_by_alias=True)
    async def run_score(payload: RunRequest) -> RunResponse:
        return await _execute(payload, lambda orchestrator: orchestrator.run_score())

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(FatalInputError)
    async def fatal_input_handler(_: Any, exc: FatalInputError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["HealthResponse", "RunRequest", "RunResponse", "create_app", "run_service"]
