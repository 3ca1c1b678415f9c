from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from wms.application.exceptions import StorageError, WarehouseError
from wms.core import get_logger

logger = get_logger(__name__)

def error_response(status_code: int, error: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "details": jsonable_encoder(details if details is not None else error)},
    )

def register_exception_handlers(app: FastAPI) -> None:
    """Answer every service error with an ``{"error", "details"}`` body."""

    @app.exception_handler(WarehouseError)
    async def warehouse_error_handler(request: Request, exc: WarehouseError):
        if isinstance(exc, StorageError):
            # Cause is already logged by the service; keep driver text out of responses
            return error_response(exc.status_code, exc.message)
        return error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(
            f"Rejected request body: {request.method} {request.url.path}",
            extra={'extra_fields': {'errors': len(exc.errors())}}
        )
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", exc.errors())
