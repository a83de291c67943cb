"""FastAPI application exposing the migration pipeline over HTTP."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..config import Port2MonadConfig, load_config
from ..errors import InputError, Port2MonadError
from ..logging import get_logger
from ..pipeline import MigrationPipeline

_STATUS_BY_KIND: Dict[str, int] = {
    "input": 400,
    "parse": 422,
    "cache_state": 409,
    "collaborator": 502,
    "internal": 500,
}

_ENDPOINTS = {
    "health": "GET /health",
    "ingest": "POST /ingest",
    "analyze": "POST /analyze/solidity",
    "plan": "POST /plan/migration",
    "transform": "POST /transform",
    "explainValidate": "POST /explain-validate",
}


class RepositoryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo_url: Optional[str] = Field(default=None, alias="repoUrl")
    repo_id: Optional[str] = Field(default=None, alias="repoId")


class IngestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo_url: Optional[str] = Field(default=None, alias="repoUrl")
    refresh: bool = False


class TransformRequest(RepositoryRequest):
    strict: Optional[bool] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str


def _default_pipeline() -> MigrationPipeline:
    return MigrationPipeline.from_config(load_config(Path.cwd()))


def _success(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data.to_dict()}


def _error_body(kind: str, message: str) -> Dict[str, Any]:
    return {"success": False, "error": {"kind": kind, "message": message}}


def create_app(
    pipeline_factory: Callable[[], MigrationPipeline] = _default_pipeline,
) -> FastAPI:
    """Create the FastAPI application; the pipeline lives for the app's lifespan."""

    logger = get_logger("service")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.pipeline = pipeline_factory()
        logger.info("Pipeline cache ready")
        try:
            yield
        finally:
            app.state.pipeline.close()
            logger.info("Pipeline cache cleared")

    app = FastAPI(title="Port2Monad Service", version=__version__, lifespan=lifespan)

    def pipeline(request: Request) -> MigrationPipeline:
        return request.app.state.pipeline

    @app.get("/")
    async def index() -> Dict[str, Any]:
        return {"name": "port2monad", "version": __version__, "endpoints": _ENDPOINTS}

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"))

    @app.post("/ingest")
    async def ingest(payload: IngestRequest, request: Request) -> Dict[str, Any]:
        if not payload.repo_url:
            raise InputError("Missing required field: repoUrl")
        result = await pipeline(request).ingest(payload.repo_url, refresh=payload.refresh)
        return _success(result)

    @app.post("/analyze/solidity")
    async def analyze(payload: RepositoryRequest, request: Request) -> Dict[str, Any]:
        result = await pipeline(request).analyze(payload.repo_url, payload.repo_id)
        return _success(result)

    @app.post("/plan/migration")
    async def plan(payload: RepositoryRequest, request: Request) -> Dict[str, Any]:
        result = await pipeline(request).plan(payload.repo_url, payload.repo_id)
        return _success(result)

    @app.post("/transform")
    async def transform(payload: TransformRequest, request: Request) -> Dict[str, Any]:
        result = await pipeline(request).transform(
            payload.repo_url, payload.repo_id, strict=payload.strict
        )
        return _success(result)

    @app.post("/explain-validate")
    async def explain_validate(payload: RepositoryRequest, request: Request) -> Dict[str, Any]:
        result = await pipeline(request).explain_validate(payload.repo_url, payload.repo_id)
        return _success(result)

    @app.exception_handler(Port2MonadError)
    async def pipeline_error_handler(_: Any, exc: Port2MonadError) -> JSONResponse:
        status = _STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.error("Request failed (%s): %s", exc.kind, exc.message)
        return JSONResponse(status_code=status, content=_error_body(exc.kind, exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Any, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_error_body("input", "Invalid request body"))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(_: Any, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(status_code=500, content=_error_body("internal", "Internal server error"))

    return app


def run_service(config: Port2MonadConfig | None = None) -> None:  # pragma: no cover - integration path
    import uvicorn

    settings = config or load_config(Path.cwd())
    app = create_app(lambda: MigrationPipeline.from_config(settings))
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


__all__ = ["create_app", "run_service"]
