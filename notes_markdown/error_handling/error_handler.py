"""Centralized error handling with recovery strategies and run reporting.

The ErrorHandler collects every failure produced while converting notes,
decides per failure whether the current note may continue in a degraded mode,
and renders the end-of-run report shown to the operator.
"""

import logging
import sys
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Tuple

from .errors import (
    ErrorCategory,
    ErrorSeverity,
    ExportError,
    NotesExportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 1000
RECOVERED_PREVIEW = 5
WARNING_PREVIEW = 3
MINIMUM_PYTHON = (3, 9)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARN: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.FATAL: logging.CRITICAL,
}


@dataclass(frozen=True)
class RecoveryStrategy:
    """Outcome of the recovery table for one error.

    Attributes:
        can_recover: Whether processing may continue in a degraded mode
        automatic: Whether the recovery happens without operator action
        suggested_actions: What the degraded mode does, or what the operator should do
    """

    can_recover: bool
    automatic: bool
    suggested_actions: Tuple[str, ...] = ()


@dataclass
class ErrorSummary:
    """Aggregated view over the collected errors."""

    total_errors: int = 0
    errors_by_category: Dict[ErrorCategory, int] = field(default_factory=dict)
    errors_by_severity: Dict[ErrorSeverity, int] = field(default_factory=dict)
    fatal_errors: List[NotesExportError] = field(default_factory=list)
    recoverable_errors: List[NotesExportError] = field(default_factory=list)
    warnings: List[NotesExportError] = field(default_factory=list)
    infos: List[NotesExportError] = field(default_factory=list)


def get_recovery_strategy(error: NotesExportError) -> RecoveryStrategy:
    """Look up the recovery strategy for an error's category and severity.

    Args:
        error: The error to classify

    Returns:
        RecoveryStrategy describing whether and how processing continues
    """
    category = error.category
    if category is ErrorCategory.MARKUP_CONVERSION:
        return RecoveryStrategy(
            can_recover=True,
            automatic=True,
            suggested_actions=(
                "Continue with plain text conversion",
                "Skip problematic formatting",
            ),
        )
    if category is ErrorCategory.NETWORK:
        return RecoveryStrategy(
            can_recover=True,
            automatic=True,
            suggested_actions=("Skip image download", "Continue without images"),
        )
    if category is ErrorCategory.FILE_SYSTEM:
        return RecoveryStrategy(
            can_recover=not error.is_fatal,
            automatic=False,
            suggested_actions=(
                "Check permissions",
                "Verify disk space",
                "Try alternative output location",
            ),
        )
    if category is ErrorCategory.DATABASE:
        return RecoveryStrategy(
            can_recover=error.severity is ErrorSeverity.WARN,
            automatic=False,
            suggested_actions=(
                "Verify database integrity",
                "Check file permissions",
            ),
        )
    if category is ErrorCategory.VALIDATION:
        return RecoveryStrategy(
            can_recover=False,
            automatic=False,
            suggested_actions=(
                "Fix configuration errors",
                "Verify input parameters",
            ),
        )
    return RecoveryStrategy(
        can_recover=not error.is_fatal,
        automatic=False,
        suggested_actions=("Review error details and try again",),
    )


class ErrorHandler:
    """Collects errors, applies recovery strategies and builds reports.

    The collection is bounded: once max_errors is reached the oldest error is
    evicted. All mutation goes through a lock so per-note results may be merged
    from worker threads.

    Example:
        >>> handler = ErrorHandler(max_errors=100)
        >>> if not handler.handle_error(error):
        ...     raise error
        >>> print(handler.get_user_report())
    """

    def __init__(self, max_errors: int = DEFAULT_MAX_ERRORS):
        self.max_errors = max_errors
        self._errors: Deque[NotesExportError] = deque(maxlen=max_errors)
        self._lock = threading.Lock()

    def handle_error(self, error: NotesExportError) -> bool:
        """Record and log an error, then decide whether processing continues.

        Args:
            error: The error to handle

        Returns:
            True if the current note may continue (possibly degraded), False if
            the error is fatal and the note must stop.
        """
        self._add(error)
        self.log_error(error)

        strategy = get_recovery_strategy(error)
        if strategy.can_recover and strategy.automatic:
            logger.info(
                f"Recovered from {error.category.value} error: "
                f"{', '.join(strategy.suggested_actions)}"
            )
        elif not strategy.can_recover and not error.is_fatal:
            logger.warning(
                f"{error.category.value} error requires operator attention: "
                f"{error.get_user_message()}"
            )

        if error.is_fatal:
            logger.critical(f"Fatal error encountered, stopping: {error.message}")
            return False
        return True

    def wrap_exception(
        self, exc: BaseException, operation: str = "unknown"
    ) -> NotesExportError:
        """Convert an arbitrary exception into a NotesExportError.

        Args:
            exc: The exception to convert
            operation: Operation that was running when it was raised

        Returns:
            The exception itself if it already is a NotesExportError, otherwise an
            export-category error wrapping it.
        """
        if isinstance(exc, NotesExportError):
            return exc
        return ExportError(str(exc), operation=operation, cause=exc)

    def merge(self, errors: Iterable[NotesExportError]) -> None:
        """Append errors collected elsewhere (e.g. per note) without re-logging."""
        for error in errors:
            self._add(error)

    def log_error(self, error: NotesExportError) -> None:
        level = _LOG_LEVELS[error.severity]
        logger.log(level, f"[{error.category.value}] {error.message}")
        if error.cause is not None:
            logger.debug(f"  caused by: {error.cause!r}")

    def _add(self, error: NotesExportError) -> None:
        with self._lock:
            self._errors.append(error)

    def get_all_errors(self) -> List[NotesExportError]:
        with self._lock:
            return list(self._errors)

    def clear_errors(self) -> None:
        with self._lock:
            self._errors.clear()

    def has_fatal_errors(self) -> bool:
        return any(error.is_fatal for error in self.get_all_errors())

    def get_error_summary(self) -> ErrorSummary:
        """Count errors by category and severity and bucket them for reporting."""
        errors = self.get_all_errors()
        summary = ErrorSummary(
            total_errors=len(errors),
            errors_by_category={category: 0 for category in ErrorCategory},
            errors_by_severity={severity: 0 for severity in ErrorSeverity},
        )
        buckets = {
            ErrorSeverity.FATAL: summary.fatal_errors,
            ErrorSeverity.ERROR: summary.recoverable_errors,
            ErrorSeverity.WARN: summary.warnings,
            ErrorSeverity.INFO: summary.infos,
        }
        for error in errors:
            summary.errors_by_category[error.category] += 1
            summary.errors_by_severity[error.severity] += 1
            buckets[error.severity].append(error)
        return summary

    def get_user_report(
        self,
        recovered_preview: int = RECOVERED_PREVIEW,
        warning_preview: int = WARNING_PREVIEW,
    ) -> str:
        """Render the human-readable end-of-run report.

        Fatal errors come first and are always listed in full, followed by a
        capped preview of recovered errors and a capped preview of warnings.

        Args:
            recovered_preview: How many recovered errors to list
            warning_preview: How many warnings to list

        Returns:
            Multi-line report text
        """
        summary = self.get_error_summary()
        if summary.total_errors == 0:
            return "Export completed successfully with no errors."

        lines: List[str] = []
        if summary.fatal_errors:
            lines.append(
                f"{len(summary.fatal_errors)} fatal error(s) prevented completion:"
            )
            for error in summary.fatal_errors:
                lines.append(f"   - {error.get_user_message()}")

        lines.extend(
            _preview_section(
                summary.recoverable_errors,
                f"{len(summary.recoverable_errors)} error(s) were recovered from:",
                recovered_preview,
            )
        )
        lines.extend(
            _preview_section(
                summary.warnings,
                f"{len(summary.warnings)} warning(s):",
                warning_preview,
            )
        )
        if summary.infos and not lines:
            lines.append(f"{len(summary.infos)} informational message(s).")
        return "\n".join(lines)

    def validate_environment(
        self, version_info: Optional[Tuple[int, ...]] = None
    ) -> List[NotesExportError]:
        """Check that the runtime environment is supported.

        Args:
            version_info: Interpreter version to check (defaults to the running one)

        Returns:
            List of environment errors; an unsupported interpreter is fatal.
        """
        version = tuple(version_info or sys.version_info[:3])
        errors: List[NotesExportError] = []
        if version[:2] < MINIMUM_PYTHON:
            required = ".".join(str(part) for part in MINIMUM_PYTHON)
            errors.append(
                ValidationError(
                    f"Python {required} or higher is required",
                    field_name="python_version",
                    value=".".join(str(part) for part in version),
                    severity=ErrorSeverity.FATAL,
                    user_message=f"Please upgrade to Python {required} or higher",
                )
            )
        return errors


def _preview_section(
    errors: List[NotesExportError], heading: str, limit: int
) -> List[str]:
    if not errors:
        return []
    lines = [heading]
    for error in errors[:limit]:
        lines.append(f"   - {error.get_user_message()}")
    if len(errors) > limit:
        lines.append(f"   - ... and {len(errors) - limit} more")
    return lines
