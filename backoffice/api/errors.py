"""Mapping of service error codes to HTTP responses."""

from typing import Any, NoReturn

from fastapi import HTTPException, status

ERROR_STATUS_CODES: dict[str, int] = {
    "ORDER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PAYOUT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UNAUTHORIZED_ORDER_ACCESS": status.HTTP_403_FORBIDDEN,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "PAYOUT_NOT_PENDING": status.HTTP_409_CONFLICT,
    "CONCURRENT_MODIFICATION": status.HTTP_409_CONFLICT,
    "INVALID_PAYOUT_AMOUNT": 422,
    "CANCELLATION_REASON_REQUIRED": 422,
}


def raise_for_error(
    error_code: str | None,
    message: str | None,
    details: dict[str, Any] | None = None,
) -> NoReturn:
    """Raise the HTTPException for a failed service result.

    Codes without an explicit mapping are client errors (400).
    """
    code = error_code or "ERROR"
    raise HTTPException(
        status_code=ERROR_STATUS_CODES.get(code, status.HTTP_400_BAD_REQUEST),
        detail={
            "error_code": code,
            "message": message or "Request failed",
            "details": details or {},
        },
    )
