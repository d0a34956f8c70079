"""Run-level orchestration and aggregation across notes."""

import logging
import threading
from typing import List, Optional

from ..config.models import ConverterConfig
from ..error_handling.error_handler import ErrorHandler
from ..error_handling.errors import NotesExportError
from ..images.models import FailureSummary, ImageFailure, ImageStats, summarize_failures
from .note_converter import NoteConversionResult, NoteConverter

logger = logging.getLogger(__name__)


class ExportRun:
    """Converts many notes and aggregates their results.

    Each note is converted in isolation; its statistics, image failures and
    errors are merged into the run totals afterwards, under a lock, so notes may
    be converted from several threads.

    Example:
        >>> run = ExportRun(ConverterConfig())
        >>> if run.validate_environment():
        ...     result = run.convert_note(markup, 'out', 'note.md')
        >>> print(run.error_handler.get_user_report())
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        error_handler: Optional[ErrorHandler] = None,
        note_converter: Optional[NoteConverter] = None,
    ):
        self.config = config or ConverterConfig()
        self.error_handler = error_handler or ErrorHandler(self.config.max_errors)
        self.note_converter = note_converter or NoteConverter(self.config)
        self.stats = ImageStats()
        self.image_failures: List[ImageFailure] = []
        self.notes_converted = 0
        self.notes_failed = 0
        self.fallback_notes = 0
        self._lock = threading.Lock()

    def validate_environment(self) -> bool:
        """Check the runtime; returns False if a fatal environment error was found."""
        ok = True
        for error in self.error_handler.validate_environment():
            if not self.error_handler.handle_error(error):
                ok = False
        return ok

    def convert_note(
        self,
        markup: str,
        output_directory: Optional[str] = None,
        note_filename: Optional[str] = None,
        header: str = '',
    ) -> Optional[NoteConversionResult]:
        """Convert one note and merge its results into the run.

        Returns:
            The note's result, or None if the note could not be converted

        Raises:
            NotesExportError: If a fatal error aborted the note
        """
        try:
            result = self.note_converter.convert_note(
                markup,
                output_directory=output_directory,
                note_filename=note_filename,
                header=header,
            )
        except Exception as e:
            error = self.error_handler.wrap_exception(e, operation='convert_note')
            with self._lock:
                self.notes_failed += 1
            if not self.error_handler.handle_error(error):
                if error is e:
                    raise
                raise error from e
            logger.warning(f"Skipped {note_filename or 'note'}: {error.message}")
            return None

        self._merge(result)
        return result

    def _merge(self, result: NoteConversionResult) -> None:
        with self._lock:
            self.notes_converted += 1
            if result.used_fallback:
                self.fallback_notes += 1
            self.stats.merge(result.stats)
            self.image_failures.extend(result.image_failures)
        self.error_handler.merge(result.errors)

    def failure_summary(self) -> FailureSummary:
        with self._lock:
            return summarize_failures(list(self.image_failures))

    @property
    def errors(self) -> List[NotesExportError]:
        return self.error_handler.get_all_errors()
