"""Command-line interface for notes-markdown."""

from .models import ExitCode, RunSummary
from .output import OutputHandler

__all__ = ["ExitCode", "RunSummary", "OutputHandler"]
