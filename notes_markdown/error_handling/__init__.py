"""Error taxonomy and recovery handling for note conversion.

Every failure in the pipeline is expressed as a NotesExportError subclass with
a category and severity. The ErrorHandler decides whether a note continues in a
degraded mode and aggregates the end-of-run report.
"""

from .errors import (
    ErrorSeverity,
    ErrorCategory,
    ErrorContext,
    NotesExportError,
    DatabaseError,
    MarkupConversionError,
    FileSystemError,
    ValidationError,
    ConfigError,
    NetworkError,
    ImageTooLargeError,
    ExportError,
)
from .error_handler import (
    ErrorHandler,
    ErrorSummary,
    RecoveryStrategy,
    get_recovery_strategy,
)

__all__ = [
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "NotesExportError",
    "DatabaseError",
    "MarkupConversionError",
    "FileSystemError",
    "ValidationError",
    "ConfigError",
    "NetworkError",
    "ImageTooLargeError",
    "ExportError",
    "ErrorHandler",
    "ErrorSummary",
    "RecoveryStrategy",
    "get_recovery_strategy",
]
