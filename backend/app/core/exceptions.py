"""
Domain errors raised by services.

They are HTTPException subclasses so FastAPI renders them directly
as ``{"detail": ...}`` responses.
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Entity is absent or soft-deleted."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestError(HTTPException):
    """Business rule violation."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class PaymentProviderError(HTTPException):
    """Payment provider call failed or could not be resolved."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
