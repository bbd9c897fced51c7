from typing import Optional, Any


class SmartReceiptError(Exception):
    """
    Base exception for SmartReceipt application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundError(SmartReceiptError):
    """
    Raised when a product, ticket or receipt does not exist.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class AuthenticationError(SmartReceiptError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)


class ValidationError(SmartReceiptError):
    """
    Raised when user input is malformed (count mismatch, non-numeric price, bad menu choice).
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)


class ExternalServiceError(SmartReceiptError):
    """
    Raised when an external service (renderer, ImgBB, PaymentPoint, chat API) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)


class RenderError(ExternalServiceError):
    """
    Raised when the receipt page fails to load or capture.
    """
    def __init__(self, message: str = "Receipt rendering failed", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "RENDER_ERROR"


class StateConsistencyError(SmartReceiptError):
    """
    Raised when a session is stale or its draft does not fit its state.
    """
    def __init__(self, message: str = "Conversation state is inconsistent", details: Optional[Any] = None):
        super().__init__(message, code="STATE_CONSISTENCY_ERROR", status_code=409, details=details)
