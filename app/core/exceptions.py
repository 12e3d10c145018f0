"""
exceptions.py

서비스 계층에서 사용하는 도메인 예외 정의.

서비스 함수는 FastAPI에 의존하지 않고 아래 예외를 발생시키며,
app.main 에 등록된 exception handler가 HTTP 상태 코드로 변환한다.

"""

from fastapi import HTTPException, status


class AppError(Exception):
    """Base exception for the admin API."""

    status_code = 400

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when input violates a business rule."""
    status_code = 400


class AuthenticationError(AppError):
    """Raised when credentials or tokens are rejected."""
    status_code = 401


class AuthorizationError(AppError):
    """Raised when the caller lacks a required permission."""
    status_code = 403


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""
    status_code = 404


class ConflictError(AppError):
    """Raised when a resource with the same identifier already exists."""
    status_code = 409


class PermissionResolutionError(AppError):
    """Raised when effective permissions cannot be computed."""
    status_code = 500


# HTTP exception shortcuts
def database_error(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Database error: {type(exc).__name__}",
    )
