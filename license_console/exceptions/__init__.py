"""Custom exceptions for the license console."""

class ConsoleError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(ConsoleError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class ValidationError(BusinessLogicError):
    """Raised when request data is missing or malformed."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)

class InvalidTransitionError(BusinessLogicError):
    """Raised when an invoice status change is not allowed."""
    def __init__(self, current_status, requested_status):
        message = f"Cannot change invoice status from '{current_status}' to '{requested_status}'"
        super().__init__(message, 400, {'currentStatus': current_status, 'requestedStatus': requested_status})

class NotFoundError(ConsoleError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class ConflictError(ConsoleError):
    """Raised when a uniqueness constraint would be violated."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)

class UnauthorizedError(ConsoleError):
    """Raised when the caller is not an authenticated admin."""
    def __init__(self, message="Unauthorized"):
        super().__init__(message, 401)

class UpstreamError(ConsoleError):
    """Raised when the booking app cannot be reached or answers with an error."""
    def __init__(self, message, payload=None):
        super().__init__(message, 502, payload)
