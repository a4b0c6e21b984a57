# src/send2me/main.py
"""Main entry point for the Send2Me application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from send2me.api.v1 import (
    auth_router,
    link_router,
    messages_router,
    send_router,
    users_router,
    verify_router,
)
from send2me.core.errors import ConfigurationError, Send2MeError
from send2me.core.settings import settings
from send2me.services.turnstile import get_turnstile_verifier

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

INVALID_PAYLOAD_MESSAGE = "Invalid request payload."

# Initialize FastAPI app
app = FastAPI(
    title="Send2Me API",
    description="Anonymous message inbox API",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(send_router, prefix="/api/v1")
app.include_router(link_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(verify_router, prefix="/api/v1")
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


@app.exception_handler(Send2MeError)
async def handle_send2me_error(request: Request, exc: Send2MeError) -> JSONResponse:
    """Render domain errors as ``{ok: false, error}``."""
    if isinstance(exc, ConfigurationError) or exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
        )

    body: dict[str, object] = {"ok": False, "error": exc.message}
    errors = getattr(exc, "errors", None)
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s invalid payload: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "error": INVALID_PAYLOAD_MESSAGE},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Keep the {ok: false, error} shape for failures nothing else handled."""
    logger.exception("%s %s crashed", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "error": Send2MeError.default_message},
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_turnstile_verifier().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Anonymous message inbox API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("send2me.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
