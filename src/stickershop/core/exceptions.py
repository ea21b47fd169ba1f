from typing import Optional, Dict, Any, List
import traceback
import sys


class BaseAPIException(Exception):
    def __init__(self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None):
        self.message = message  # User-facing message
        self.internal_message = internal_message or message  # Internal/debug message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__.replace('Error', '').upper()
        self.details = details or {}

        # Capture stack trace for debugging
        self.traceback = traceback.format_exc() if sys.exc_info()[0] else None

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        body: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.error_code,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(BaseAPIException):
    """Raised when request validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, 400, "VALIDATION_ERROR", details)


class PricingError(BaseAPIException):
    """Raised when a cart item cannot be priced by its product strategy"""

    def __init__(self, message: str, item_index: Optional[int] = None):
        details = {"item_index": item_index} if item_index is not None else {}
        super().__init__(message, 400, "PRICING_ERROR", details)


class NotFoundError(BaseAPIException):
    """Raised when a requested resource is not found"""

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message += f" with ID: {resource_id}"
        super().__init__(message, 404, "NOT_FOUND")


class UploadTimeoutError(BaseAPIException):
    """Raised when the storage transport never signals completion"""

    def __init__(self, message: str = "Upload timeout.", timeout_seconds: Optional[float] = None):
        details = {"timeout_seconds": timeout_seconds} if timeout_seconds else {}
        super().__init__(message, 408, "UPLOAD_TIMEOUT", details)


class PayloadTooLargeError(BaseAPIException):
    """Raised when an uploaded file exceeds the size limit"""

    def __init__(self, message: str = "File exceeds upload limit", limit_bytes: Optional[int] = None):
        details = {"limit_bytes": limit_bytes} if limit_bytes else {}
        super().__init__(message, 413, "PAYLOAD_TOO_LARGE", details)


class ExternalServiceError(BaseAPIException):
    """Raised when payment-provider or object-storage calls fail"""

    def __init__(
        self,
        service_name: str,
        message: str = "External service unavailable",
        internal_message: Optional[str] = None,
    ):
        details = {"service": service_name}
        super().__init__(
            message,
            500,
            "EXTERNAL_SERVICE_ERROR",
            details,
            internal_message=internal_message,
        )


class DatabaseError(BaseAPIException):
    """Raised when database operations fail"""

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        # Don't expose internal database details to users
        user_message = "An internal error occurred. Please try again later."
        details = {"operation": operation} if operation else {}
        super().__init__(
            user_message,
            500,
            "DATABASE_ERROR",
            details,
            internal_message=message  # Keep original message for logging
        )
