"""FastAPI application entrypoint for modelpub service mode."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError, PublishConfig, apply_env_overrides, load_config
from ..emitters import discover_emitters
from ..orchestrator import PublishError, PublishOrchestrator, PublishReport
from ..site import use_system_collation


class PublishRequest(BaseModel):
    path: str
    source: Optional[str] = None
    output: Optional[str] = None
    force_publish: Optional[bool] = None
    server_root: Optional[str] = None
    formats: Optional[List[str]] = None
    clean: Optional[bool] = None


class RejectionModel(BaseModel):
    path: str
    kind: str
    message: str
    namespace: Optional[str] = None


class PublishResponse(BaseModel):
    status: str
    published: List[str]
    rejections: List[RejectionModel]
    emit_failures: int
    persistence_failures: int
    index_path: Optional[str] = None
    index_error: Optional[str] = None


class FormatModel(BaseModel):
    name: str
    label: str
    scope: str


class HealthResponse(BaseModel):
    status: str


OrchestratorFactory = Callable[[PublishConfig], PublishOrchestrator]


def _default_orchestrator(config: PublishConfig) -> PublishOrchestrator:
    return PublishOrchestrator(config)


def _config_for(payload: PublishRequest) -> PublishConfig:
    root = Path(payload.path).expanduser()
    if not root.exists():
        raise FileNotFoundError(f"Project path not found: {payload.path}")
    config = apply_env_overrides(load_config(root))
    if payload.source:
        config.source_dir = config.root / payload.source
    if payload.output:
        config.build_dir = config.root / payload.output
    if payload.force_publish is not None:
        config.force_publish = payload.force_publish
    if payload.server_root is not None:
        config.site.server_root = payload.server_root
    if payload.formats:
        config.formats = list(payload.formats)
    if payload.clean is not None:
        config.clean = payload.clean
    return config


def _to_response(report: PublishReport) -> PublishResponse:
    return PublishResponse(
        status="ok" if report.ok else "partial",
        published=report.published,
        rejections=[
            RejectionModel(
                path=str(item.source_path),
                kind=item.kind,
                message=item.message,
                namespace=item.namespace,
            )
            for item in report.rejections
        ],
        emit_failures=len(report.emit_failures),
        persistence_failures=len(report.persistence_failures),
        index_path=str(report.index_path) if report.index_path else None,
        index_error=report.index_error,
    )


def create_app(
    orchestrator_factory: OrchestratorFactory = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing modelpub operations."""

    app = FastAPI(title="Model Publishing Service", version="1.0.0")
    use_system_collation()
    # One batch at a time; requests may target the same build directory.
    publish_lock = threading.Lock()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/formats", response_model=List[FormatModel])
    async def formats() -> List[FormatModel]:
        return [
            FormatModel(name=emitter.name, label=emitter.describe(), scope=emitter.scope)
            for emitter in discover_emitters()
        ]

    @app.post("/publish", response_model=PublishResponse)
    async def publish(payload: PublishRequest) -> PublishResponse:
        def _run_publish() -> PublishReport:
            config = _config_for(payload)
            with publish_lock:
                return orchestrator_factory(config).run()

        # Blocking batch; keep it off the event loop.
        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run_publish)
        return _to_response(report)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PublishError)
    async def publish_error_handler(_: Any, exc: PublishError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = [
    "PublishRequest",
    "PublishResponse",
    "create_app",
    "run_service",
]
