"""
Speech Showcase Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse

from showcase import __version__
from showcase.api import router as api_router
from showcase.api.env_error import router as env_error_router
from showcase.core.database import close_database, get_database
from showcase.core.environment import Mode, is_build_phase
from showcase.core.logs import configure_logging
from showcase.core.middleware import EnvironmentGateMiddleware, SecurityHeadersMiddleware
from showcase.core.settings import get_settings
from showcase.core.startup import run_startup_validation
from showcase.core.validation import EnvironmentValidator

log = structlog.get_logger()

INDEX_PAGE = """<!DOCTYPE html>
<html><head><meta charset="utf-8"><title>Speech Showcase</title></head>
<body><h1>Speech Showcase</h1><p>Sign in to try the speech demo.</p></body></html>"""


def create_app(
    validator: EnvironmentValidator | None = None,
    *,
    validate_on_startup: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The environment is validated here, before any route is served.
    """
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    if validator is None:
        validator = EnvironmentValidator()
    build_phase = is_build_phase(validator.raw)

    if validate_on_startup:
        run_startup_validation(validator, build_phase=build_phase)

    app = FastAPI(
        title="Speech Showcase",
        description="Speech-to-text and text-to-speech demo.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.validator = validator

    # Middleware: the last one added is outermost
    app.add_middleware(
        EnvironmentGateMiddleware,
        validator=validator,
        error_path=settings.error_path,
        build_phase=build_phase,
    )
    app.add_middleware(SecurityHeadersMiddleware, production=validator.mode is Mode.PRODUCTION)

    app.include_router(api_router, prefix="/api")
    app.include_router(env_error_router)

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index():
        return INDEX_PAGE

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint for startup probes."""
        try:
            await get_database().connect()
        except Exception as exc:
            log.warning("showcase.not_ready", error=str(exc))
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("showcase.starting", mode=validator.mode.value, version=__version__)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("showcase.shutting_down")
        await close_database()

    return app


app = create_app()
