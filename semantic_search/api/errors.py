import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.domain.exceptions import (
    CollectionNotFoundError,
    DocumentNotFoundError,
    DomainException,
    EmbeddingProviderError,
    InvalidInputError,
    ProviderNotConfiguredError,
    TextTooShortError,
)

logger = logging.getLogger(__name__)


def error_status(exc: Exception) -> int:
    """HTTP status for a domain error: client misuse is 4xx, provider/infra failures 5xx"""
    if isinstance(exc, (InvalidInputError, TextTooShortError)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (CollectionNotFoundError, DocumentNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ProviderNotConfiguredError) or getattr(exc, "retryable", False):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, EmbeddingProviderError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(kind: str, message: str) -> dict:
    return {"success": False, "error": {"kind": kind, "message": message}}


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed ({exc.kind}): {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc}")
    return JSONResponse(status_code=status_code, content=error_body(exc.kind, exc.public_message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
