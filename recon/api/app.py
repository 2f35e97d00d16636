"""FastAPI application factory.

Routers
-------
    /analysis  — plan, scrape, crawl, synthesise, cite, ask, and the
                 auto pipeline streamed as Server-Sent Events

Errors
------
Pipeline errors map to HTTP statuses in one place:

    ValidationError     → 422
    UpstreamError       → 502
    ConfigurationError  → 500
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recon.api.routers import analysis as analysis_router
from recon.errors import ConfigurationError, UpstreamError, ValidationError


def register_error_handlers(app: FastAPI) -> None:
    """Translate pipeline exceptions into JSON error responses."""

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(UpstreamError)
    async def upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        content = {"detail": str(exc)}
        if exc.status_code is not None:
            content["upstream_status"] = exc.status_code
        return JSONResponse(status_code=502, content=content)

    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Recon API",
        description=(
            "HTTP interface for the Recon intelligence pipeline: LLM planning, "
            "scrape-service fetching and crawl expansion, cited report "
            "synthesis, and follow-up questions."
        ),
        version="0.1.0",
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(analysis_router.router, prefix="/analysis", tags=["analysis"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn recon.api.app:app --reload
app = create_app()
