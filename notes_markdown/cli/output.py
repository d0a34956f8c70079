"""Terminal output handling using the Rich library.

Supports verbosity levels and the --no-color flag. Logging itself is
configured by the command entry point; this handler only writes user-facing
messages.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from ..images.models import FailureSummary
from .models import RunSummary


class OutputHandler:
    """Handles all terminal output for the converter.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Converted notes/todo.xml")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def progress_bar(self, total: int, description: str = "Converting") -> Iterator[Progress]:
        """Display a progress bar for multi-note runs.

        Args:
            total: Total number of notes
            description: Description text for the bar

        Yields:
            Progress instance for updating progress

        Example:
            >>> with handler.progress_bar(3) as progress:
            ...     task = progress.add_task("Converting", total=3)
            ...     progress.update(task, advance=1)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
        )
        with progress:
            yield progress

    def print_summary(self, summary: RunSummary) -> None:
        """Display the conversion summary with color coding.

        Args:
            summary: Run counters to display
        """
        stats = summary.image_stats
        self.console.print("\n[bold]Conversion Summary:[/bold]")
        self.console.print(f"  [green]✓[/green] Converted: {summary.notes_converted} note(s)")

        if summary.notes_failed > 0:
            self.console.print(f"  [red]✗[/red] Failed: {summary.notes_failed} note(s)")

        if summary.fallback_notes > 0:
            self.console.print(
                f"  [yellow]⚠[/yellow] Plain-text fallback: {summary.fallback_notes} note(s)"
            )

        if stats.images_found > 0:
            self.console.print(
                f"  [blue]↓[/blue] Images: {stats.images_downloaded} downloaded, "
                f"{stats.image_downloads_failed} failed of {stats.images_found} found "
                f"({stats.total_size_mb:.2f} MB)"
            )

        if summary.notes_converted == 0 and summary.notes_failed == 0:
            self.console.print("\n[yellow]No notes to convert[/yellow]")
        elif summary.notes_failed > 0:
            self.console.print("\n[red]Conversion completed with errors[/red]")
        elif stats.image_downloads_failed > 0:
            self.console.print("\n[yellow]Conversion completed with image failures[/yellow]")
        else:
            self.console.print("\n[green]Conversion completed successfully[/green]")

    def print_failure_summary(self, failures: FailureSummary) -> None:
        """Display image failures grouped by failure type."""
        if failures.total == 0:
            return
        self.console.print(f"\n[bold]Image Failures ({failures.total}):[/bold]")
        for failure_type, count in failures.by_type.items():
            self.console.print(f"  • {failure_type.value}: {count}")

    def print_report(self, report: str) -> None:
        lines: List[str] = report.splitlines()
        if not lines:
            return
        self.console.print("\n[bold]Error Report:[/bold]")
        for line in lines:
            self.console.print(line, markup=False)
