"""
Custom exceptions for the exam analytics core with user-friendly error messages.
"""

class AnalyticsException(Exception):
    """Base exception for analytics-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class DataSourceUnavailable(AnalyticsException):
    """Raised when the record store cannot be read."""
    def __init__(self, operation: str, details: str = None):
        self.operation = operation
        super().__init__(
            f"Data source unavailable during {operation}: {details}",
            "Data source unavailable. Please try again later."
        )

class InvalidCategory(AnalyticsException):
    """Raised when a category (block) code is not one of the configured ones."""
    def __init__(self, category: str):
        self.category = category
        super().__init__(
            f"Invalid category '{category}'",
            f"Invalid block: {category}. Must be A, B, C, or D"
        )

class InvalidFilterError(AnalyticsException):
    """Raised when a statistics filter request is malformed."""
    def __init__(self, reason: str):
        super().__init__(
            f"Invalid statistics filter: {reason}",
            reason
        )

class InvalidStudentId(AnalyticsException):
    """Raised when a student identifier is blank."""
    def __init__(self, student_id: str):
        super().__init__(
            f"Invalid student id {student_id!r}",
            "Invalid student ID"
        )

class StudentNotFoundError(AnalyticsException):
    """Raised when no exam record exists for a student identifier."""
    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__(
            f"Student '{student_id}' not found",
            "No exam scores found for this student ID"
        )

class CacheUnavailable(AnalyticsException):
    """Raised inside the cache store when the cache service cannot be reached.

    Never escapes the cache store; callers see a miss or a failed write instead.
    """
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Cache unavailable during {operation}: {details}",
            "Cache unavailable."
        )
