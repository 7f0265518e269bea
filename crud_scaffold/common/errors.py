"""
Error Definitions

Defines custom exception classes used by the scaffold for unified error handling.
The query layer and services raise these; the CRUD controller and the
application exception handler turn them into HTTP responses.
"""

from typing import Any, Optional


class AppError(Exception):
    """
    Application Base Exception

    Base class for all custom exceptions, containing error message, type, and code.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "app_error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            error_type: Error type
            code: Error code
            details: Extra error details
            status_code: HTTP status code
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary format (for API response)

        Args:
            include_details: Whether extra details are exposed to the client

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }
        if include_details and self.details:
            result["error"]["details"] = self.details
        return result


class BadRequestError(AppError):
    """
    Bad Request Error

    Raised when the client sends something the scaffold cannot act on (e.g., invalid id).
    """

    def __init__(
        self,
        message: str = "Bad Request",
        code: str = "bad_request",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="bad_request_error",
            code=code,
            details=details,
            status_code=400,
        )


class QueryParseError(BadRequestError):
    """
    Query Parse Error

    Raised by the query translator when a search parameter is malformed
    (invalid JSON, wrong shape, unknown sort direction).
    """

    def __init__(
        self,
        message: str = "Invalid query parameters",
        code: str = "invalid_query",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


class ValidationError(AppError):
    """
    Payload Validation Error

    Raised when a create/update payload does not satisfy the entity schema.
    """

    def __init__(
        self,
        message: str = "Bad Request",
        code: str = "validation_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="validation_error",
            code=code,
            details=details,
            status_code=400,
        )


class AuthorizationError(AppError):
    """
    Authorization Error

    Raised when the entity authorizer denies an operation.
    """

    def __init__(
        self,
        message: str = "Not authorized",
        code: str = "not_authorized",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="authorization_error",
            code=code,
            details=details,
            status_code=401,
        )


class NotFoundError(AppError):
    """
    Resource Not Found Error

    Raised when the requested record does not exist.
    """

    def __init__(
        self,
        message: str = "Record not found",
        code: str = "not_found",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="not_found_error",
            code=code,
            details=details,
            status_code=404,
        )


class QueryGenerationError(AppError):
    """
    Query Generation Error

    Raised by the search executor when the store rejects the generated query
    (unknown field or relation, driver error). Never carries partial results.
    """

    def __init__(
        self,
        message: str = "Error generating query",
        code: str = "query_generation_failed",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="server_error",
            code=code,
            details=details,
            status_code=500,
        )


class ServiceError(AppError):
    """
    Service Error

    Raised when a create/update/delete fails inside the store.
    """

    def __init__(
        self,
        message: str = "Server Error",
        code: str = "service_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="server_error",
            code=code,
            details=details,
            status_code=500,
        )
