from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Generic, TypeVar, Optional

T = TypeVar("T")


class ErrorCategory(Enum):
    VALIDATION = "Validation"
    NOT_FOUND = "Not Found"
    AUTHENTICATION = "Authentication"
    AUTHORIZATION = "Authorization"
    INTERNAL = "Internal Server Error"
    BAD_REQUEST = "Bad Request"
    RESOURCE_CONFLICT = "Resource Conflict"
    INVALID_OR_EXPIRED = "Invalid Or Expired"
    EMAIL_DELIVERY = "Email Delivery"
    CUSTOM = "Custom Error"


# Short machine-usable reason string per category
CATEGORY_REASONS = {
    ErrorCategory.VALIDATION: "invalid_input",
    ErrorCategory.NOT_FOUND: "not_found",
    ErrorCategory.AUTHENTICATION: "unauthorized",
    ErrorCategory.AUTHORIZATION: "forbidden",
    ErrorCategory.INTERNAL: "internal_error",
    ErrorCategory.BAD_REQUEST: "bad_request",
    ErrorCategory.RESOURCE_CONFLICT: "conflict",
    ErrorCategory.INVALID_OR_EXPIRED: "invalid_or_expired",
    ErrorCategory.EMAIL_DELIVERY: "email_delivery_failed",
    ErrorCategory.CUSTOM: "error",
}


class Error(BaseModel):
    message: str
    status_code: int
    category: ErrorCategory
    reason: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def of(cls, message: str, status_code: int, category: ErrorCategory) -> "Error":
        return cls(
            message=message,
            status_code=status_code,
            category=category,
            reason=CATEGORY_REASONS.get(category),
        )


class Result(BaseModel, Generic[T]):
    success: bool
    error: Optional[Error] = None
    data: Optional[T] = None

    @classmethod
    def successful(cls, data: Optional[T] = None):
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: Error):
        return cls(success=False, error=error)
