"""
Custom exceptions for the feed importer with structured error context.

This module provides the exception hierarchy used throughout the import
pipeline. Each exception carries context information (feed, file, table,
location...) so a skipped or failed file can be reconciled by hand.

Exception Hierarchy:
    ImporterException (base)
    ├── InvalidConfigError
    │   ├── FeedConfigError
    │   ├── TableNotFoundError
    │   └── ColumnMissingError
    ├── ShortFileError
    ├── RemoteCallFailure
    │   ├── FileStoreError
    │   ├── TabularStoreError
    │   └── DatabaseError
    ├── TransformFailure
    │   └── CSVParseError
    ├── SetupError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ImporterException(Exception):
    """
    Base exception for all importer errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (feed, file, table, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = dict(context or {})
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(ImporterException):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts
    - Rate limiting (HTTP 429)
    - Temporary database connection issues
    - Service unavailable (HTTP 5xx)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after  # Seconds the remote asked us to wait
        if retry_after is not None:
            self.context["retry_after"] = retry_after


class NonRetryableError(ImporterException):
    """Mixin for errors that should NOT trigger retry logic."""
    pass


# ============================================================================
# Configuration Errors
# ============================================================================

class InvalidConfigError(NonRetryableError):
    """Base exception for configuration that does not match the stores."""
    pass


class FeedConfigError(InvalidConfigError):
    """
    Exception raised when the feed list cannot be loaded or validated.

    Context should include:
        - path: Path of the feed configuration file
    """
    pass


class TableNotFoundError(InvalidConfigError):
    """
    Exception raised when the destination table does not exist.

    Context should include:
        - table: Name of the destination table
        - store_id: Destination store identity (if any)
    """
    pass


class ColumnMissingError(InvalidConfigError):
    """
    Exception raised when the destination header lacks the watermark column.

    Context should include:
        - table: Name of the destination table
        - column: Configured watermark column name
        - header: Header row that was searched
    """
    pass


# ============================================================================
# File Errors
# ============================================================================

class ShortFileError(NonRetryableError):
    """
    Raised when a file has no data rows beyond its metadata rows.

    The file is skipped, not failed, and stays in the source location.
    """
    pass


# ============================================================================
# Remote Call Errors
# ============================================================================

class RemoteCallFailure(ImporterException):
    """Base exception for file-store, tabular-store and database failures."""
    pass


class FileStoreError(RemoteCallFailure):
    """
    Exception raised when a file store operation fails.

    Context should include:
        - operation: list, read or move
        - location: Location id (if applicable)
        - file_name: File name (if applicable)
    """
    pass


class TabularStoreError(RemoteCallFailure):
    """
    Exception raised when a tabular store operation fails.

    Context should include:
        - operation: get_header, get_last_value or append_rows
        - table: Destination table name
    """
    pass


class DatabaseError(RemoteCallFailure):
    """
    Exception raised when database operations fail.

    Context should include:
        - operation: Type of database operation (SELECT, INSERT)
        - table_name: Name of the table
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformFailure(ImporterException):
    """Unexpected failure while parsing or filtering a file."""
    pass


class CSVParseError(TransformFailure):
    """
    Exception raised when CSV content cannot be decoded or tokenized.

    Context should include:
        - encoding: Encoding used to decode the content
        - line_number: Line number where error occurred (if applicable)
    """
    pass


# ============================================================================
# Setup Errors
# ============================================================================

class SetupError(ImporterException):
    """One-time setup failure; the only kind that ends the run."""
    pass


# ============================================================================
# Specific Retryable Errors
# ============================================================================

class NetworkError(RetryableError, RemoteCallFailure):
    """Network errors, timeouts and HTTP 5xx responses that should be retried."""
    pass


class RateLimitError(RetryableError, RemoteCallFailure):
    """Rate limiting errors (HTTP 429) that should be retried with backoff."""
    pass


class DatabaseConnectionError(RetryableError, DatabaseError):
    """Database connection errors that should be retried."""
    pass


# ============================================================================
# Specific Non-Retryable Errors
# ============================================================================

class AuthenticationError(NonRetryableError, RemoteCallFailure):
    """Authentication failures (HTTP 401, 403) that should not be retried."""
    pass


class ResourceNotFoundError(NonRetryableError, RemoteCallFailure):
    """Resource not found errors (HTTP 404) that should not be retried."""
    pass
