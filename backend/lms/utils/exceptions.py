"""Application error types.

Services raise these instead of ``HTTPException`` so they stay usable outside
a request; ``lms.main`` turns them into JSON responses.
"""
from fastapi import status


class AppError(Exception):
    """Base application error carrying an HTTP status code"""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BadRequestError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class PluginError(AppError):
    """Raised for invalid, missing or misbehaving plugins"""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message, status_code)
