"""FastAPI application exposing /health and /harmonize."""

import logging
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from harmonizer.agents.exceptions import (
    AgentError,
    MalformedModelResponseError,
    PartialApplyError,
    RewriteError,
)
from harmonizer.core.config import load_config
from harmonizer.core.logging import setup_logging
from harmonizer.orchestrator.exceptions import HarmonizeValidationError, NoFilesFoundError
from harmonizer.orchestrator.pipeline import HarmonizePipeline
from harmonizer.remote.exceptions import RemoteApiError

logger = logging.getLogger(__name__)

SERVICE_NAME = "harmonizer"
MAX_RAW_REPLY_CHARS = 2_000  # Raw model reply echoed back on a malformed response


class HarmonizeRequest(BaseModel):
    """Body of POST /harmonize; accepts camelCase or snake_case keys."""

    model_config = ConfigDict(populate_by_name=True)

    paths: List[str] = Field(default_factory=list)
    apply: bool = False
    owner: Optional[str] = None
    repo: Optional[str] = None
    base_branch: Optional[str] = Field(default=None, alias="baseBranch")
    note: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    caller: Optional[str] = None
    write_manifest: Optional[bool] = Field(default=None, alias="writeManifest")


def _error(status_code: int, message: str, **context: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": message, **context},
    )


def error_response(exc: Exception) -> JSONResponse:
    """Map a pipeline failure onto the single {ok: false, error} shape."""
    if isinstance(exc, HarmonizeValidationError):
        return _error(400, str(exc))
    if isinstance(exc, NoFilesFoundError):
        return _error(400, str(exc), paths=exc.paths)
    if isinstance(exc, PartialApplyError):
        return _error(502, str(exc), branch=exc.branch, writtenFiles=exc.written_paths)
    if isinstance(exc, MalformedModelResponseError):
        return _error(502, str(exc), rawReply=exc.raw_reply[:MAX_RAW_REPLY_CHARS])
    if isinstance(exc, RewriteError):
        return _error(502, str(exc))
    if isinstance(exc, RemoteApiError):
        return _error(502, str(exc), status=exc.status)
    if isinstance(exc, AgentError):
        return _error(500, str(exc))
    return _error(500, str(exc) or type(exc).__name__)


def create_app(pipeline: Optional[HarmonizePipeline] = None) -> FastAPI:
    """Create the application.

    Args:
        pipeline: Pipeline to serve; built from load_config() on first use
            when omitted.
    """
    app = FastAPI(title="Harmonizer", version="0.1.0")
    app.state.pipeline = pipeline

    def get_pipeline() -> HarmonizePipeline:
        if app.state.pipeline is None:
            app.state.pipeline = HarmonizePipeline(load_config())
        return app.state.pipeline

    @app.on_event("startup")
    async def startup_event():
        """Initialize logging on startup."""
        load_dotenv()
        setup_logging()
        logger.info("Application started")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(404, "Unknown endpoint")
        if exc.status_code == 405:
            return _error(405, "Method not allowed")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(400, f"Invalid request body: {exc.errors()}")

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint."""
        return {"ok": True, "service": SERVICE_NAME, "status": "online"}

    @app.post("/harmonize")
    def harmonize(request: HarmonizeRequest):
        """Run the pipeline in preview or apply mode."""
        try:
            result = get_pipeline().run(
                request.paths,
                apply=request.apply,
                owner=request.owner,
                repo=request.repo,
                base_branch=request.base_branch,
                note=request.note,
                title=request.title,
                description=request.description,
                caller=request.caller,
                write_manifest=request.write_manifest,
            )
        except Exception as exc:
            logger.error("Harmonize error: %s", exc, exc_info=True)
            return error_response(exc)
        return result.to_response()

    return app


app = create_app()
