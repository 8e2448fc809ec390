"""Service-level exceptions rendered as ``{"error": message}`` responses."""
from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base error carrying the HTTP status and a user-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class OwnershipError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class LLMConfigurationError(ServiceError):
    """The language model credentials are missing."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ModelResponseError(ServiceError):
    """The model replied, but nothing usable could be recovered from it."""

    status_code = status.HTTP_400_BAD_REQUEST
