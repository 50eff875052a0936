"""AIWorks HTTP API - FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aiworks import __version__
from aiworks.config import Settings, get_settings
from aiworks.errors.exceptions import (
    AIWorksError,
    AuthenticationError,
    ConfigurationError,
    LLMError,
    NoStartNodeError,
    WorkflowGenerationError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)
from aiworks.generators.workflow import WorkflowGenerator
from aiworks.llm.base import BaseLLMProvider
from aiworks.llm.gemini import GeminiProvider
from aiworks.llm.keys import ApiKeyValidator
from aiworks.logging import setup_logging
from aiworks.server.api import ai, executions, workflows
from aiworks.workflow.engine import WorkflowEngine
from aiworks.workflow.store import JSONWorkflowStore

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
ERROR_STATUS: list[tuple[type[AIWorksError], int, str]] = [
    (WorkflowValidationError, 422, "INVALID_WORKFLOW"),
    (NoStartNodeError, 422, "NO_START_NODE"),
    (WorkflowNotFoundError, 404, "WORKFLOW_NOT_FOUND"),
    (WorkflowGenerationError, 502, "GENERATION_FAILED"),
    (AuthenticationError, 401, "LLM_AUTH_FAILED"),
    (LLMError, 502, "LLM_ERROR"),
    (ConfigurationError, 503, "NOT_CONFIGURED"),
]


def _error(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, **extra}},
    )


def create_app(
    settings: Settings | None = None,
    *,
    provider: BaseLLMProvider | None = None,
    engine: WorkflowEngine | None = None,
    generator: WorkflowGenerator | None = None,
    key_validator: ApiKeyValidator | None = None,
    store: JSONWorkflowStore | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Anything not passed in is built from ``settings``. A Gemini provider is
    only created when an API key is configured; without one, ``ai-generate``
    nodes and workflow generation fall back to simulated output.
    """
    settings = settings or get_settings()
    if provider is None and settings.api_key:
        provider = GeminiProvider.from_settings(settings)
    if store is None and settings.workflow_dir:
        store = JSONWorkflowStore(settings.workflow_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(settings.log_level, settings.log_format)
        logger.info("Starting AIWorks API v%s", __version__)
        if provider is None:
            logger.warning("No Gemini API key configured, LLM features are simulated")
        yield
        logger.info("Shutting down AIWorks API")

    app = FastAPI(
        title="AIWorks API",
        description="Workflow automation engine with LLM-assisted workflow design.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine or WorkflowEngine(provider=provider, settings=settings)
    app.state.generator = generator or WorkflowGenerator(provider)
    app.state.key_validator = key_validator or ApiKeyValidator()
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _error(exc.status_code, f"HTTP_{exc.status_code}", message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error(
            422,
            "VALIDATION_ERROR",
            "Request body is invalid",
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(AIWorksError)
    async def aiworks_error_handler(request: Request, exc: AIWorksError):
        for error_type, status_code, code in ERROR_STATUS:
            if isinstance(exc, error_type):
                break
        else:
            status_code, code = 500, "INTERNAL_ERROR"

        extra = {"details": exc.errors} if isinstance(exc, WorkflowValidationError) else {}
        if status_code >= 500:
            logger.error("Request failed: %s", exc)
        return _error(status_code, code, str(exc), **extra)

    @app.get("/health/live", tags=["health"])
    async def health_live():
        """Liveness probe."""
        return {"status": "alive", "version": __version__}

    app.include_router(workflows.router)
    app.include_router(executions.router)
    app.include_router(ai.router)

    return app


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "aiworks.server.app:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
    )


if __name__ == "__main__":
    main()
