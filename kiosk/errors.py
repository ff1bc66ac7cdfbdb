"""Custom exceptions for the kiosk service."""


class KioskError(Exception):
    """Base exception for all kiosk errors."""

    pass


class ValidationError(KioskError):
    """Raised when a record fails its schema; carries the field-level issues."""

    def __init__(self, issues):
        self.issues = list(issues)
        super().__init__("; ".join(issue.message for issue in self.issues))


class StorageError(KioskError):
    """Raised when a read or write against the database fails."""

    def __init__(self, operation: str, reason: str = None):
        self.operation = operation
        msg = f"Storage operation failed: {operation}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class PaymentSessionError(KioskError):
    """Raised when the payment provider cannot create or report a checkout session."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class DraftDeserializationError(KioskError):
    """Raised when a stored draft or cart cookie cannot be decoded."""

    pass


class InvalidTransition(KioskError):
    """Raised when a checkout step is triggered from the wrong state."""

    def __init__(self, current, expected):
        self.current = current
        self.expected = tuple(expected)
        names = ", ".join(state.value for state in self.expected)
        super().__init__(f"Cannot leave state '{current.value}' here (expected one of: {names})")


class ClientStorageFullError(KioskError):
    """Raised when a value would not fit in a browser cookie."""

    def __init__(self, key: str, size: int, limit: int):
        self.key = key
        self.size = size
        self.limit = limit
        super().__init__(f"'{key}' needs {size} bytes, cookies hold at most {limit}")
