"""Exception handlers translating domain errors into HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gestao_imoveis.core.config import get_settings
from gestao_imoveis.core.exceptions import BillingError
from gestao_imoveis.core.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Erro interno ao processar a requisição."


async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    """Render a domain error as {"detail": message}."""
    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        error=type(exc).__name__,
        status_code=exc.status_code,
        detail=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render unexpected errors as 500 without leaking storage-layer text."""
    logger.exception(
        "Unhandled error",
        path=request.url.path,
        method=request.method,
        error=type(exc).__name__,
    )
    content = {"detail": INTERNAL_ERROR_MESSAGE}
    if get_settings().show_error_details:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingError, billing_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
