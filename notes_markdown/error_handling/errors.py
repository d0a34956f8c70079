"""Typed exception hierarchy for note export errors.

This module defines all custom exceptions used by the notes_markdown package.
Every exception inherits from NotesExportError, which carries a category and a
severity assigned at construction time. The error handler uses those two fields
to decide whether the pipeline continues in a degraded mode or stops.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class ErrorSeverity(Enum):
    """How serious a failure is, from informational to run-stopping."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class ErrorCategory(Enum):
    """Which stage or subsystem a failure belongs to."""

    DATABASE = "database"
    MARKUP_CONVERSION = "markup_conversion"
    FILE_SYSTEM = "file_system"
    VALIDATION = "validation"
    NETWORK = "network"
    EXPORT = "export"


@dataclass(frozen=True)
class ErrorContext:
    """Machine-readable context attached to an error.

    Attributes:
        component: Module or class where the error occurred
        operation: Operation being performed when the error occurred
        user_message: Message suitable for the end-of-run report
        suggestions: Suggested recovery actions for the operator
        metadata: Free-form details (snippet, path, URL, status code, ...)
        timestamp: When the error was created
    """

    component: Optional[str] = None
    operation: Optional[str] = None
    user_message: Optional[str] = None
    suggestions: Tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class NotesExportError(Exception):
    """Base exception for all notes_markdown errors.

    Use this to catch any application-level error. Category, severity and
    context are fixed at construction and exposed read-only.
    """

    default_user_message = "An unexpected error occurred during export."
    default_suggestions: List[str] = []

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.EXPORT,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        user_message: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self._message = message
        self._severity = severity
        self._category = category
        self._cause = cause
        self._context = ErrorContext(
            component=component,
            operation=operation,
            user_message=user_message or self.default_user_message,
            suggestions=tuple(suggestions if suggestions is not None else self.default_suggestions),
            metadata=MappingProxyType(dict(metadata or {})),
        )

    @property
    def message(self) -> str:
        return self._message

    @property
    def severity(self) -> ErrorSeverity:
        return self._severity

    @property
    def category(self) -> ErrorCategory:
        return self._category

    @property
    def context(self) -> ErrorContext:
        return self._context

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause

    @property
    def is_fatal(self) -> bool:
        return self._severity is ErrorSeverity.FATAL

    def get_user_message(self) -> str:
        """Return the operator-facing message, falling back to the raw message."""
        return self._context.user_message or self._message

    def get_details(self) -> Dict[str, Any]:
        """Return a flat dictionary describing the error for logging."""
        return {
            "type": type(self).__name__,
            "message": self._message,
            "severity": self._severity.value,
            "category": self._category.value,
            "component": self._context.component,
            "operation": self._context.operation,
            "metadata": dict(self._context.metadata),
            "timestamp": self._context.timestamp.isoformat(),
            "cause": str(self._cause) if self._cause else None,
        }


class DatabaseError(NotesExportError):
    """Raised when reading notes from the notes database fails."""

    default_user_message = (
        "Database operation failed. Please check your database file and try again."
    )
    default_suggestions = [
        "Verify the database file exists and is not corrupted",
        "Check file permissions",
        "Ensure the notes application is not currently running",
    ]

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        cause: Optional[BaseException] = None,
        **context: Any,
    ):
        super().__init__(
            message, severity, ErrorCategory.DATABASE, cause=cause, **context
        )


class MarkupConversionError(NotesExportError):
    """Raised when rich markup cannot be parsed or converted.

    Always recoverable: the caller degrades to plain-text output.
    """

    default_user_message = (
        "Some note formatting could not be converted. "
        "Content will be preserved as plain text."
    )
    default_suggestions = [
        "Review the converted notes for formatting issues",
        "Report complex markup structures for future improvements",
    ]

    def __init__(
        self,
        message: str,
        snippet: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.WARN,
        cause: Optional[BaseException] = None,
        **context: Any,
    ):
        self.snippet = snippet[:200] if snippet else None
        metadata = dict(context.pop("metadata", None) or {})
        if self.snippet:
            metadata["snippet"] = self.snippet
        super().__init__(
            message,
            severity,
            ErrorCategory.MARKUP_CONVERSION,
            metadata=metadata,
            cause=cause,
            **context,
        )


class FileSystemError(NotesExportError):
    """Raised when filesystem operations fail (read, write, mkdir, etc)."""

    default_user_message = (
        "File system operation failed. Check permissions and available disk space."
    )
    default_suggestions = [
        "Verify you have write permissions to the output directory",
        "Check available disk space",
        "Ensure the path is valid and accessible",
    ]

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        operation: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        cause: Optional[BaseException] = None,
        **context: Any,
    ):
        self.path = path
        self.fs_operation = operation
        metadata = dict(context.pop("metadata", None) or {})
        if path:
            metadata["path"] = path
        super().__init__(
            message,
            severity,
            ErrorCategory.FILE_SYSTEM,
            operation=operation,
            metadata=metadata,
            cause=cause,
            **context,
        )


class ValidationError(NotesExportError):
    """Raised when input or configuration validation fails.

    Never auto-recovered: validation problems are surfaced to the operator.
    """

    default_user_message = "Invalid configuration or input detected."
    default_suggestions = [
        "Check your export settings",
        "Verify all required fields are filled",
    ]

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Any = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        cause: Optional[BaseException] = None,
        **context: Any,
    ):
        self.field_name = field_name
        self.value = value
        metadata = dict(context.pop("metadata", None) or {})
        if field_name:
            metadata["field"] = field_name
        super().__init__(
            message,
            severity,
            ErrorCategory.VALIDATION,
            metadata=metadata,
            cause=cause,
            **context,
        )


class ConfigError(ValidationError):
    """Raised when configuration validation fails. Fatal for the run."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(
            full_message,
            field_name=config_field,
            severity=ErrorSeverity.FATAL,
            user_message=full_message,
            suggestions=["Fix the configuration file and run again"],
        )
        self.config_field = config_field
        self.original_message = message


class NetworkError(NotesExportError):
    """Raised when an image download or other network operation fails."""

    default_user_message = (
        "Network operation failed. Some images may not be downloaded."
    )
    default_suggestions = [
        "Check your internet connection",
        "Retry the export",
        "Skip image downloads if not needed",
    ]
    retryable = True

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        severity: ErrorSeverity = ErrorSeverity.WARN,
        cause: Optional[BaseException] = None,
        **context: Any,
    ):
        self.url = url
        self.status_code = status_code
        metadata = dict(context.pop("metadata", None) or {})
        if url:
            metadata["url"] = url
        if status_code is not None:
            metadata["status_code"] = status_code
        super().__init__(
            message,
            severity,
            ErrorCategory.NETWORK,
            metadata=metadata,
            cause=cause,
            **context,
        )


class ImageTooLargeError(NetworkError):
    """Raised when an image exceeds the configured size ceiling."""

    retryable = False

    def __init__(self, url: str, size_mb: float, limit_mb: float, declared: bool = True):
        prefix = "Image too large" if declared else "Downloaded image too large"
        super().__init__(
            f"{prefix}: {size_mb:.1f}MB (max: {limit_mb}MB)",
            url=url,
            metadata={"size_mb": round(size_mb, 2), "limit_mb": limit_mb},
        )
        self.size_mb = size_mb
        self.limit_mb = limit_mb


class ExportError(NotesExportError):
    """Raised for high-level export failures that fit no other category."""

    default_user_message = (
        "Export process failed. Some notes may not have been exported."
    )
    default_suggestions = ["Review the error log for specific issues"]

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        progress: Optional[float] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        cause: Optional[BaseException] = None,
        **context: Any,
    ):
        self.phase = phase
        self.progress = progress
        super().__init__(
            message, severity, ErrorCategory.EXPORT, cause=cause, **context
        )
