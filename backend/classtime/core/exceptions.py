class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class NotFoundError(AppError):
    """Raised when a referenced course, classroom or schedule is absent or tombstoned."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=404, details=details)

class ConflictError(AppError):
    """Raised when a write would break an invariant: overlapping booking,
    duplicate room label, blocked deletion or an invalid lifecycle transition."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class ValidationError(AppError):
    """Raised for malformed input that reaches the core before any store access."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)
