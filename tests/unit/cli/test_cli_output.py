"""Unit tests for cli.output module."""

from io import StringIO

import pytest
from rich.console import Console

from notes_markdown.cli.models import RunSummary
from notes_markdown.cli.output import OutputHandler
from notes_markdown.images.models import FailureSummary, FailureType, ImageStats


@pytest.fixture
def handler():
    output = OutputHandler(verbosity=0, no_color=True)
    output.console = Console(file=StringIO(), no_color=True, highlight=False, width=120)
    return output


def printed(handler):
    return handler.console.file.getvalue()


class TestOutputHandlerInit:
    """Test cases for OutputHandler initialization."""

    def test_defaults(self):
        output = OutputHandler()
        assert output.verbosity == 0
        assert output.console is not None

    def test_no_color(self):
        assert OutputHandler(no_color=True).console.no_color is True


class TestMessages:
    """Test cases for message helpers."""

    def test_info_hidden_at_verbosity_zero(self, handler):
        handler.info("details")
        assert printed(handler) == ""

    def test_info_shown_at_verbosity_one(self, handler):
        handler.verbosity = 1
        handler.info("details")
        assert "details" in printed(handler)

    def test_debug_needs_verbosity_two(self, handler):
        handler.verbosity = 1
        handler.debug("trace")
        assert printed(handler) == ""
        handler.verbosity = 2
        handler.debug("trace")
        assert "trace" in printed(handler)

    def test_success_error_warning(self, handler):
        handler.success("done")
        handler.error("failed")
        handler.warning("careful")

        output = printed(handler)
        assert "✓ done" in output
        assert "✗ failed" in output
        assert "⚠ careful" in output


class TestSummaries:
    """Test cases for summary rendering."""

    def test_successful_run(self, handler):
        handler.print_summary(RunSummary(notes_converted=2))

        output = printed(handler)
        assert "Converted: 2 note(s)" in output
        assert "Conversion completed successfully" in output
        assert "Images:" not in output

    def test_run_with_image_failures(self, handler):
        stats = ImageStats(images_found=3, images_downloaded=2, image_downloads_failed=1, total_bytes=1048576)
        handler.print_summary(RunSummary(notes_converted=1, image_stats=stats))

        output = printed(handler)
        assert "Images: 2 downloaded, 1 failed of 3 found (1.00 MB)" in output
        assert "completed with image failures" in output

    def test_run_with_failed_notes(self, handler):
        handler.print_summary(RunSummary(notes_converted=1, notes_failed=1))
        assert "Conversion completed with errors" in printed(handler)

    def test_empty_run(self, handler):
        handler.print_summary(RunSummary())
        assert "No notes to convert" in printed(handler)

    def test_failure_summary(self, handler):
        handler.print_failure_summary(
            FailureSummary(total=2, by_type={FailureType.NETWORK: 2}, most_common_type=FailureType.NETWORK)
        )
        assert "network: 2" in printed(handler)

    def test_report_printed_without_markup(self, handler):
        handler.print_report("1 warning(s):\n   - [bracketed] text")
        assert "[bracketed] text" in printed(handler)
