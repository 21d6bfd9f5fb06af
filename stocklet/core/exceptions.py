"""
Custom Application Exceptions
"""


class StockletException(Exception):
    """Base exception for Stocklet application"""
    status_code = 500

    def __init__(self, message: str = "An internal server error occurred."):
        super().__init__(message)
        self.message = message


class ValidationError(StockletException):
    """Raised when request data is missing or malformed"""
    status_code = 400


class InsufficientStockError(ValidationError):
    """Raised when a stock movement would leave an item below zero"""

    def __init__(self, item_name: str, available):
        super().__init__(
            f"Insufficient stock for {item_name}. Available: {float(available):.2f} kg."
        )
        self.item_name = item_name
        self.available = available


class UnauthorizedError(StockletException):
    """Raised when the caller has no valid session"""
    status_code = 401

    def __init__(self, message: str = "Unauthorized: Invalid or expired token."):
        super().__init__(message)


class ForbiddenError(StockletException):
    """Raised when an action is not allowed"""
    status_code = 403


class NotFoundError(StockletException):
    """Raised when a record does not exist or is not owned by the caller"""
    status_code = 404


class ConflictError(StockletException):
    """Raised when a unique key would be duplicated"""
    status_code = 409
