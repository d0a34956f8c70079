"""Data models for CLI operations."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

from ..images.models import ImageStats


class ExitCode(IntEnum):
    """Exit codes for the notes-markdown command.

    - SUCCESS (0): Every note converted, every image resolved
    - GENERAL_ERROR (1): One or more notes could not be read, converted or written
    - FATAL_ERROR (2): Invalid configuration or unsupported environment
    - COMPLETED_WITH_FAILURES (3): All notes written, but some images failed

    Example:
        >>> raise typer.Exit(ExitCode.COMPLETED_WITH_FAILURES)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    FATAL_ERROR = 2
    COMPLETED_WITH_FAILURES = 3


@dataclass
class RunSummary:
    """Counts shown to the user at the end of a run.

    Attributes:
        notes_converted: Notes written to disk
        notes_failed: Notes skipped because of an error
        fallback_notes: Notes converted through plain-text extraction
        image_stats: Aggregated image counters
        written_files: Paths of the Markdown files written
    """
    notes_converted: int = 0
    notes_failed: int = 0
    fallback_notes: int = 0
    image_stats: ImageStats = field(default_factory=ImageStats)
    written_files: List[str] = field(default_factory=list)
