class RetailAnalyticsError(Exception):
    """Base exception for Retail Analytics errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Retail Analytics engine"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class IntegrityError(RetailAnalyticsError):
    """Raised when a record references an entity that does not exist."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Referential integrity error"
        super().__init__(message, code or "INTEGRITY", details)


class InvariantViolation(RetailAnalyticsError):
    """Raised when a record fails a value constraint."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Invariant violation"
        super().__init__(message, code or "INVARIANT", details)


class DuplicateKeyError(RetailAnalyticsError):
    """Raised when a record reuses an existing primary key."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Duplicate key"
        super().__init__(message, code or "DUPLICATE_KEY", details)


class ViewNotFoundError(RetailAnalyticsError):
    """Raised when an unknown view name is requested."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "View not found"
        super().__init__(message, code or "VIEW_NOT_FOUND", details)


class ConfigError(RetailAnalyticsError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(RetailAnalyticsError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class LoadError(RetailAnalyticsError):
    """Exception raised when source files cannot be read or parsed."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Load error"
        super().__init__(message, code, details)


class ReportingError(RetailAnalyticsError):
    """Exception raised for reporting errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Reporting error"
        super().__init__(message, code, details)
