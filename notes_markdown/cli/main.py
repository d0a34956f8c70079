"""Main CLI entry point for the notes-markdown command.

Converts exported rich-markup notes (one note per file) into Markdown files,
downloading referenced images next to them.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .. import __version__
from ..config.config_loader import ConfigLoader
from ..config.models import ConverterConfig
from ..error_handling.errors import FileSystemError, NotesExportError
from ..pipeline.export_run import ExportRun
from .models import ExitCode, RunSummary
from .output import OutputHandler

app = typer.Typer(
    name="notes-markdown",
    help="""Convert rich-markup notes to Markdown.

EXAMPLE:
  notes-markdown notes/*.xml --output ./markdown
  notes-markdown todo.xml --config converter.yaml -vv --logdir ./logs""",
    add_completion=False,
    rich_markup_mode=None,
)

logger = logging.getLogger(__name__)

APP_LOGGER_NAME = "notes_markdown"
MARKDOWN_SUFFIX = ".md"


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Only the package logger is configured; the root logger and third-party
    libraries are left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for a timestamped log file
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"notes-markdown_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _load_config(
    config_file: Optional[str],
    html_sub_superscript: bool,
    indents_not_quotes: bool,
    no_images: bool,
) -> ConverterConfig:
    """Load the YAML configuration (if any) and apply command-line overrides."""
    config = ConfigLoader.load(config_file) if config_file else ConverterConfig()
    if html_sub_superscript:
        config.html_sub_superscript = True
    if indents_not_quotes:
        config.convert_indents_to_quotes = False
    if no_images:
        config.download_images = False
    return config


def _read_note(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FileSystemError(
            f"Note file not found: {path}", path=str(path), operation="read", cause=e
        )
    except (OSError, UnicodeDecodeError) as e:
        raise FileSystemError(
            f"Failed to read note file {path}: {e}", path=str(path), operation="read", cause=e
        )


def _write_note(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FileSystemError(
            f"Failed to write {path}: {e}",
            path=str(path),
            operation="write",
            cause=e,
            user_message=f"Could not write {path.name}",
        )


def _convert_inputs(
    run: ExportRun,
    inputs: List[str],
    output_dir: Optional[str],
    output: OutputHandler,
) -> RunSummary:
    """Convert each input file; fatal errors propagate to the caller."""
    summary = RunSummary()
    with output.progress_bar(len(inputs)) as progress:
        task = progress.add_task("Converting", total=len(inputs))
        for name in inputs:
            source = Path(name)
            target_dir = Path(output_dir) if output_dir else source.parent
            target = target_dir / (source.stem + MARKDOWN_SUFFIX)

            try:
                markup = _read_note(source)
            except NotesExportError as e:
                _handle_file_error(run, e, source, summary, output)
                progress.update(task, advance=1)
                continue

            # ExportRun records conversion errors itself; fatal ones propagate
            result = run.convert_note(
                markup,
                output_directory=str(target_dir),
                note_filename=target.name,
            )
            if result is None:
                summary.notes_failed += 1
                output.error(f"{source}: not converted")
            else:
                try:
                    _write_note(target, result.content)
                except NotesExportError as e:
                    _handle_file_error(run, e, source, summary, output)
                else:
                    summary.written_files.append(str(target))
                    output.info(f"Wrote {target}")
            progress.update(task, advance=1)

    summary.notes_converted = len(summary.written_files)
    summary.fallback_notes = run.fallback_notes
    summary.image_stats = run.stats
    return summary


def _handle_file_error(
    run: ExportRun,
    error: NotesExportError,
    source: Path,
    summary: RunSummary,
    output: OutputHandler,
) -> None:
    """Record a read/write failure; fatal ones propagate."""
    if not run.error_handler.handle_error(error):
        raise error
    summary.notes_failed += 1
    output.error(f"{source}: {error.get_user_message()}")


@app.command()
def convert(
    inputs: Optional[List[str]] = typer.Argument(
        None,
        help="Rich-markup note files to convert (one note per file)",
        metavar="INPUT...",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory for Markdown files and images (default: next to each input)",
        metavar="DIR",
    ),
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
        metavar="FILE",
    ),
    html_sub_superscript: bool = typer.Option(
        False,
        "--html-sub-superscript",
        help="Render sub/superscript as <sub>/<sup> instead of ~x~/^x^",
    ),
    indents_not_quotes: bool = typer.Option(
        False,
        "--indents-not-quotes",
        help="Render paragraph indentation as non-breaking spaces instead of quotes",
    ),
    no_images: bool = typer.Option(
        False,
        "--no-images",
        help="Do not download images",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v info, -vv debug)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Convert rich-markup notes to Markdown files."""
    if version:
        typer.echo(f"notes-markdown version {__version__}")
        raise typer.Exit()

    if not inputs:
        typer.echo("Error: Missing argument INPUT...", err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    _configure_logging(verbose, logdir)
    output = OutputHandler(verbosity=verbose, no_color=no_color)

    try:
        config = _load_config(config_file, html_sub_superscript, indents_not_quotes, no_images)
    except NotesExportError as e:
        logger.error(f"Configuration failed: {e.message}")
        output.error(f"Configuration error: {e.get_user_message()}")
        raise typer.Exit(ExitCode.FATAL_ERROR)

    run = ExportRun(config)
    if not run.validate_environment():
        output.error("Unsupported environment")
        output.print_report(run.error_handler.get_user_report())
        raise typer.Exit(ExitCode.FATAL_ERROR)

    if output_dir and os.path.exists(output_dir) and not os.path.isdir(output_dir):
        output.error(f"Output path is not a directory: {output_dir}")
        raise typer.Exit(ExitCode.FATAL_ERROR)

    try:
        summary = _convert_inputs(run, inputs, output_dir, output)
    except NotesExportError as e:
        output.error(f"Conversion stopped: {e.get_user_message()}")
        output.print_report(run.error_handler.get_user_report())
        raise typer.Exit(ExitCode.FATAL_ERROR)
    except Exception as e:
        logger.exception("Unexpected error during conversion")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.print_summary(summary)
    output.print_failure_summary(run.failure_summary())
    if run.errors:
        output.print_report(run.error_handler.get_user_report())

    if summary.notes_failed > 0:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    if summary.image_stats.image_downloads_failed > 0:
        raise typer.Exit(ExitCode.COMPLETED_WITH_FAILURES)
    raise typer.Exit(ExitCode.SUCCESS)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
