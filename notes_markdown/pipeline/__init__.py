"""Note-level and run-level conversion orchestration."""

from .note_converter import NoteConverter, NoteConversionResult
from .export_run import ExportRun

__all__ = [
    'NoteConverter',
    'NoteConversionResult',
    'ExportRun',
]
