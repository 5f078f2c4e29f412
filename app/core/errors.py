from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class StoreError(HTTPException):
    """
    Base class for errors raised by the store services.

    Carries a machine readable ``code`` plus any extra fields the caller needs
    to act on the failure (e.g. ``available`` / ``requested`` for stock errors).
    The ``detail`` is already the JSON body returned to the client.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"
    retryable: bool = False

    def __init__(self, message: str, code: Optional[str] = None, headers: Optional[Dict[str, str]] = None, **extra: Any):
        self.message = message
        if code:
            self.code = code
        self.extra = extra
        super().__init__(status_code=self.status_code, detail=self.to_dict(), headers=headers)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message, "code": self.code}
        body.update(self.extra)
        if self.retryable:
            body["retryable"] = True
        return body

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotFoundError(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(StoreError):
    # Business-rule failures (empty cart, insufficient stock) are client errors
    status_code = status.HTTP_400_BAD_REQUEST
    code = "CONFLICT"


class ForbiddenError(StoreError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class TransientError(StoreError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_UNAVAILABLE"
    retryable = True

    def __init__(self, message: str = "Storage is busy, please retry", code: Optional[str] = None, retry_after: int = 1, **extra: Any):
        super().__init__(message, code=code, headers={"Retry-After": str(retry_after)}, **extra)


class InternalError(StoreError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"


class UnauthorizedError(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Could not validate credentials", code: Optional[str] = None, **extra: Any):
        super().__init__(message, code=code, headers={"WWW-Authenticate": "Bearer"}, **extra)
