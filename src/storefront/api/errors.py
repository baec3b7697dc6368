"""Render storefront errors as JSON responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.exceptions import StorefrontError

logger = structlog.get_logger(__name__)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    """Protean's handlers for domain exceptions plus ours for StorefrontError."""
    register_exception_handlers(app)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
