"""
Global error handling middleware.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from tresorier.domain.exceptions import TresorierException
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

status_code_map = {
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_AMOUNT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "OUT_OF_BOUNDS": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_STATE_TRANSITION": status.HTTP_409_CONFLICT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "LEDGER_ENTRY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ACCOUNT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "VERIFICATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "DUPLICATE_REFERENCE": status.HTTP_409_CONFLICT,
    "ALREADY_VERIFIED": status.HTTP_409_CONFLICT,
    "RATE_LIMITED": status.HTTP_429_TOO_MANY_REQUESTS,
    "VERIFICATION_EXPIRED": status.HTTP_410_GONE,
    "INCORRECT_CODE": status.HTTP_400_BAD_REQUEST,
    "AMOUNT_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_BALANCE": status.HTTP_402_PAYMENT_REQUIRED,
    "ACCOUNT_NOT_VERIFIED": status.HTTP_403_FORBIDDEN,
    "GATEWAY_DECLINED": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_ERROR": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_TIMEOUT": status.HTTP_504_GATEWAY_TIMEOUT,
    "INVALID_SIGNATURE": status.HTTP_401_UNAUTHORIZED,
    "AUTHENTICATION_ERROR": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
}


async def tresorier_exception_handler(
    request: Request, exc: TresorierException
) -> JSONResponse:
    """
    Handle Tresorier domain exceptions.

    Converts domain exceptions to appropriate HTTP responses.
    """
    status_code = status_code_map.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    if status_code >= 500:
        logger.error(
            f"{exc.code}: {exc.message}",
            extra={"path": request.url.path, "error_code": exc.code},
        )

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED and exc.code != "INVALID_SIGNATURE":
        headers = {"WWW-Authenticate": "Bearer"}
    elif status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        headers = {"Retry-After": str(exc.details.get("retry_after_seconds", 0))}

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            **exc.details,
        },
        headers=headers,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and hide their details from clients."""
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error"},
    )
