from fastapi import HTTPException
from typing import Any, Optional
from app.schemas.result import ErrorCategory


class CustomException(HTTPException):
    """Base exception class for all custom application exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int,
        category: ErrorCategory,
        headers: Optional[dict] = None
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.category = category


class ResourceNotFoundException(CustomException):
    """
    Raised when a requested resource is absent or not visible to the caller.

    Also used in place of 403 so that inaccessible resources are not confirmed
    to exist.
    """

    def __init__(self, resource_name: str, resource_id: Optional[Any] = None):
        if resource_id:
            message = f"{resource_name} with ID '{resource_id}' was not found."
        else:
            message = f"{resource_name} was not found."

        super().__init__(
            message=message,
            status_code=404,
            category=ErrorCategory.NOT_FOUND
        )


class AuthenticationException(CustomException):
    """Exception raised when authentication fails"""

    def __init__(self, message: str = "Invalid credentials. Access denied."):
        super().__init__(
            message=message,
            status_code=401,
            category=ErrorCategory.AUTHENTICATION,
            headers={"WWW-Authenticate": "Bearer"}
        )


class DuplicateResourceException(CustomException):
    """Exception raised when attempting to create a resource that already exists"""

    def __init__(
        self,
        resource_name: str,
        identifier: Optional[str] = None,
        status_code: int = 409
    ):
        if identifier:
            message = f"{resource_name} with identifier '{identifier}' already exists."
        else:
            message = f"{resource_name} already exists."

        super().__init__(
            message=message,
            status_code=status_code,
            category=ErrorCategory.RESOURCE_CONFLICT
        )


class ConflictException(CustomException):
    """Exception raised when the current state forbids the requested transition"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=409,
            category=ErrorCategory.RESOURCE_CONFLICT
        )


class BadRequestException(CustomException):
    """Exception raised for malformed or invalid requests"""

    def __init__(self, message: str = "The request is invalid or malformed."):
        super().__init__(
            message=message,
            status_code=400,
            category=ErrorCategory.BAD_REQUEST
        )


class InvalidOrExpiredTokenException(CustomException):
    """
    Raised by the token flows (password reset, invitations).

    Wrong, expired and already-used tokens all map here so callers cannot
    tell them apart.
    """

    def __init__(self, message: str = "The token is invalid or has expired."):
        super().__init__(
            message=message,
            status_code=400,
            category=ErrorCategory.INVALID_OR_EXPIRED
        )


class EmailDeliveryException(CustomException):
    """Exception raised when an email the caller depends on could not be sent"""

    def __init__(self, message: str = "The email could not be delivered. Please try again later."):
        super().__init__(
            message=message,
            status_code=502,
            category=ErrorCategory.EMAIL_DELIVERY
        )
