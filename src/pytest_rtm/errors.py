"""Custom exceptions for pytest-rtm.

This module defines the exception hierarchy:
- RTMError (base)
- InitializationError
- RequirementsLoadError
- UserStoriesLoadError
- InvalidTestCaseError
- DuplicateTestCaseError
- InvalidSuiteError
- SuiteNotFoundError
- ReportGenerationError

Every error carries a stable, machine-readable ``code`` alongside the human
message. Validation predicates never raise these; they return False and the
caller decides whether that is an error.
"""

from __future__ import annotations


class RTMError(Exception):
    """Base exception for all traceability operations.

    Attributes:
        message: Human-readable error description.
        code: Stable machine-readable error code.
        details: Optional additional context about the error.

    Example:
        >>> try:
        ...     tracker.apply_suite_to_tests("TS-missing")
        ... except RTMError as e:
        ...     print(e.code)
        SUITE_NOT_FOUND
    """

    code: str = "RTM_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, str] | None = None,
    ) -> None:
        """Initialize RTMError.

        Args:
            message: Human-readable error description.
            code: Optional override of the class-level error code.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class InitializationError(RTMError):
    """Setting up the output location or the initial load failed.

    Example:
        >>> raise InitializationError(
        ...     "Failed to initialize RTM",
        ...     cause="Permission denied: 'reports/rtm'",
        ... )
    """

    code = "INIT_ERROR"

    def __init__(
        self,
        message: str = "Failed to initialize RTM",
        *,
        cause: str | None = None,
    ) -> None:
        """Initialize InitializationError.

        Args:
            message: Human-readable error description.
            cause: The underlying cause of the failure.
        """
        details: dict[str, str] = {}
        if cause:
            details["cause"] = cause
        super().__init__(message, details=details)
        self.cause = cause


class _LoadError(RTMError):
    """Shared shape of the fixture file load errors."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        record_id: str | None = None,
        cause: str | None = None,
    ) -> None:
        details: dict[str, str] = {}
        if path:
            details["path"] = path
        if record_id:
            details["id"] = record_id
        if cause:
            details["cause"] = cause
        super().__init__(message, details=details)
        self.path = path
        self.record_id = record_id
        self.cause = cause


class RequirementsLoadError(_LoadError):
    """The requirements file is missing, malformed, or holds an invalid record.

    Raised when:
    - The file does not exist or cannot be read
    - The document is not valid JSON/YAML or not a mapping
    - A record fails requirement validation (the whole load is aborted)
    """

    code = "REQUIREMENTS_LOAD_ERROR"


class UserStoriesLoadError(_LoadError):
    """The user stories file is missing, malformed, or holds an invalid record."""

    code = "USER_STORIES_LOAD_ERROR"


class InvalidTestCaseError(RTMError):
    """A candidate test case failed schema or referential validation.

    The candidate is rejected and the store is left unchanged.
    """

    code = "INVALID_TEST_CASE"

    def __init__(
        self,
        message: str = "Invalid test case structure",
        *,
        test_id: str | None = None,
    ) -> None:
        """Initialize InvalidTestCaseError.

        Args:
            message: Human-readable error description.
            test_id: Identifier of the rejected candidate, if it had one.
        """
        details = {"test_id": test_id} if test_id else {}
        super().__init__(message, details=details)
        self.test_id = test_id


class DuplicateTestCaseError(RTMError):
    """A test case with the same id but different content is already stored.

    Re-adding an identical test case is a no-op; only conflicting content
    raises this error.
    """

    code = "DUPLICATE_TEST_CASE"

    def __init__(self, test_id: str, message: str | None = None) -> None:
        """Initialize DuplicateTestCaseError.

        Args:
            test_id: The conflicting test case identifier.
            message: Optional custom error message.
        """
        msg = message or f"Test case already registered with different content: {test_id}"
        super().__init__(msg, details={"test_id": test_id})
        self.test_id = test_id


class InvalidSuiteError(RTMError):
    """Suite metadata without an identifier."""

    code = "INVALID_SUITE"

    def __init__(self, message: str = "Invalid suite structure: missing id") -> None:
        super().__init__(message)


class SuiteNotFoundError(RTMError):
    """Propagation was requested for an unknown suite id.

    Example:
        >>> try:
        ...     tracker.apply_suite_to_tests("TS-unknown")
        ... except SuiteNotFoundError as e:
        ...     print(e.suite_id)
        TS-unknown
    """

    code = "SUITE_NOT_FOUND"

    def __init__(self, suite_id: str, message: str | None = None) -> None:
        """Initialize SuiteNotFoundError.

        Args:
            suite_id: The suite identifier that was not found.
            message: Optional custom error message.
        """
        msg = message or f"Suite not found: {suite_id}"
        super().__init__(msg, details={"suite_id": suite_id})
        self.suite_id = suite_id


class ReportGenerationError(RTMError):
    """Writing a report artifact failed.

    Wraps the underlying I/O failure; report writing is never retried.
    """

    code = "REPORT_GENERATION_ERROR"

    def __init__(
        self,
        message: str = "Failed to generate reports",
        *,
        path: str | None = None,
        cause: str | None = None,
    ) -> None:
        """Initialize ReportGenerationError.

        Args:
            message: Human-readable error description.
            path: The artifact path that could not be written.
            cause: The underlying cause of the failure.
        """
        details: dict[str, str] = {}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = cause
        super().__init__(message, details=details)
        self.path = path
        self.cause = cause


__all__ = [
    "DuplicateTestCaseError",
    "InitializationError",
    "InvalidSuiteError",
    "InvalidTestCaseError",
    "RTMError",
    "ReportGenerationError",
    "RequirementsLoadError",
    "SuiteNotFoundError",
    "UserStoriesLoadError",
]
