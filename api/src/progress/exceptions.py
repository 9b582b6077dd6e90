"""Progress tracking errors.

Each error carries a stable ``code`` that routers map to an HTTP status.
"""


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ProgressValidationError(ProgressError):
    """Flush payload out of range."""

    def __init__(self, message: str = "Invalid progress payload"):
        super().__init__(message, "invalid_progress")


class ProgressNotFoundError(ProgressError):
    """No progress record for (user, course, section)."""

    def __init__(self, message: str = "Progress not found"):
        super().__init__(message, "progress_not_found")


class TransientStoreError(ProgressError):
    """Store unavailable or write contention; safe to retry."""

    def __init__(self, message: str = "Progress store unavailable"):
        super().__init__(message, "store_unavailable")


class FlushRateLimitedError(ProgressError):
    """Too many flushes from one user."""

    def __init__(self, message: str = "Too many progress updates, slow down"):
        super().__init__(message, "rate_limited")
