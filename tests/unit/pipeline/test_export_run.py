"""Unit tests for pipeline.export_run module."""

from unittest.mock import MagicMock, patch

import pytest

from notes_markdown.config.models import ConverterConfig
from notes_markdown.error_handling.errors import (
    ConfigError,
    ErrorSeverity,
    ExportError,
    MarkupConversionError,
    NetworkError,
    ValidationError,
)
from notes_markdown.images.models import FailureType, ImageFailure, ImageStats
from notes_markdown.pipeline.export_run import ExportRun
from notes_markdown.pipeline.note_converter import NoteConversionResult

from tests.fixtures.sample_markup import HEADING_PARAGRAPH, MALFORMED_NOTE


def result_with_failure():
    error = NetworkError("HTTP 500", status_code=500)
    return NoteConversionResult(
        content="body",
        body="body",
        stats=ImageStats(images_found=2, images_downloaded=1, image_downloads_failed=1, total_bytes=10),
        image_failures=[ImageFailure("https://x/a.png", "HTTP 500", FailureType.NETWORK, "a.md")],
        errors=[error],
    )


class TestExportRun:
    """Test cases for ExportRun.convert_note."""

    def test_merges_note_results(self):
        note_converter = MagicMock()
        note_converter.convert_note.return_value = result_with_failure()
        run = ExportRun(ConverterConfig(), note_converter=note_converter)

        run.convert_note("<Paragraph/>", "out", "a.md")
        run.convert_note("<Paragraph/>", "out", "b.md")

        assert run.notes_converted == 2
        assert run.stats.images_found == 4
        assert run.stats.image_downloads_failed == 2
        assert run.stats.total_bytes == 20
        assert len(run.image_failures) == 2
        assert len(run.errors) == 2
        assert run.failure_summary().most_common_type is FailureType.NETWORK

    def test_real_conversion(self):
        run = ExportRun(ConverterConfig(download_images=False))

        result = run.convert_note(HEADING_PARAGRAPH)

        assert result.content == "# Title"
        assert run.notes_converted == 1
        assert run.errors == []

    def test_fallback_notes_counted(self):
        run = ExportRun(ConverterConfig())

        run.convert_note(MALFORMED_NOTE)

        assert run.fallback_notes == 1
        assert isinstance(run.errors[0], MarkupConversionError)

    def test_recoverable_error_skips_note(self):
        run = ExportRun(ConverterConfig(ignore_unknown_elements=False))

        assert run.convert_note(MALFORMED_NOTE, note_filename="bad.md") is None
        assert run.notes_failed == 1
        assert run.notes_converted == 0
        assert len(run.errors) == 1

    def test_unexpected_exception_is_wrapped(self):
        note_converter = MagicMock()
        note_converter.convert_note.side_effect = RuntimeError("boom")
        run = ExportRun(ConverterConfig(), note_converter=note_converter)

        assert run.convert_note("<Paragraph/>") is None
        assert isinstance(run.errors[0], ExportError)
        assert run.errors[0].cause.args == ("boom",)

    def test_fatal_error_propagates(self):
        note_converter = MagicMock()
        note_converter.convert_note.side_effect = ConfigError("unusable")
        run = ExportRun(ConverterConfig(), note_converter=note_converter)

        with pytest.raises(ConfigError):
            run.convert_note("<Paragraph/>")
        assert run.error_handler.has_fatal_errors() is True


class TestValidateEnvironment:
    """Test cases for ExportRun.validate_environment."""

    def test_supported(self):
        assert ExportRun(ConverterConfig()).validate_environment() is True

    def test_unsupported(self):
        run = ExportRun(ConverterConfig())
        fatal = ValidationError("too old", severity=ErrorSeverity.FATAL)
        with patch.object(run.error_handler, "validate_environment", return_value=[fatal]):
            assert run.validate_environment() is False
        assert run.error_handler.has_fatal_errors() is True
