"""
Application error types
"""
from typing import Optional


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, LookupError):
    code = "not_found"
    status_code = 404


class StorageError(AppError):
    """Connectivity or constraint failure from the durable store"""
    code = "storage_error"
    status_code = 500
