"""
Exception hierarchy for the PRD reviewer.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class PRDReviewerException(Exception):
    """Base exception for all PRD reviewer errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(PRDReviewerException):
    """Raised when request input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class UnsupportedFileTypeError(ValidationError):
    """Raised when an uploaded file has an extension we cannot parse."""

    def __init__(self, file_name: str, allowed: list[str]) -> None:
        super().__init__(
            f"Unsupported file type. Accepted: {', '.join(allowed)}",
            field="file",
            details={"file_name": file_name},
        )


class RepositoryPathNotFoundError(ValidationError):
    """Raised when a target repository path does not exist on this host."""

    def __init__(self, repo_path: str) -> None:
        super().__init__(
            f"Repository path not found: {repo_path}",
            field="repo_paths",
            details={"repo_path": repo_path},
        )


class ReviewNotFoundError(PRDReviewerException):
    """Raised when a review cannot be found."""

    def __init__(self, review_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize review not found error.

        Args:
            review_id: ID of the missing review
            details: Additional context
        """
        details = details or {}
        details["review_id"] = review_id
        super().__init__(f"Review not found: {review_id}", details)


class ReviewConflictError(PRDReviewerException):
    """Raised when a review is in a state that forbids the requested action."""

    def __init__(self, review_id: str, status: str) -> None:
        super().__init__(
            f"Review is already {status}",
            {"review_id": review_id, "status": status},
        )


class ParsingError(PRDReviewerException):
    """Raised when document text extraction fails."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        file_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize parsing error.

        Args:
            message: Error message
            file_path: Path of the file that failed parsing
            file_type: Extension of the file that failed parsing
            details: Additional context
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        if file_type:
            details["file_type"] = file_type
        super().__init__(message, details)


class EngineExecutionError(PRDReviewerException):
    """Raised when the agent engine fails or ends with a non-success result."""

    def __init__(
        self,
        message: str,
        subtype: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if subtype:
            details["subtype"] = subtype
        super().__init__(message, details)

    def __str__(self) -> str:
        # Persisted as the review's error and shown to users verbatim.
        return self.message
