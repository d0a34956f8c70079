"""Unit tests for images.image_coordinator module."""

from unittest.mock import MagicMock

import pytest

from notes_markdown.config.models import ConverterConfig
from notes_markdown.error_handling.errors import ExportError, NetworkError
from notes_markdown.images.image_coordinator import (
    FAILURE_REFERENCE,
    ImageResolutionCoordinator,
    apply_substitutions,
)
from notes_markdown.images.image_downloader import ImageDownloader
from notes_markdown.images.models import DownloadResult, FailureType
from notes_markdown.markup.converter import RichTextConverter

from tests.fixtures.sample_markup import DUPLICATE_IMAGES, THREE_IMAGES

BROKEN_URL = "https://cdn.logoscdn.com/broken.png"


@pytest.fixture
def session(response_factory):
    def get(url, **kwargs):
        if url == BROKEN_URL:
            return response_factory(status_code=404, reason="Not Found")
        return response_factory(body=b"abcd")

    mock_session = MagicMock()
    mock_session.headers = {}
    mock_session.get.side_effect = get
    return mock_session


@pytest.fixture
def coordinator(config, session):
    return ImageResolutionCoordinator(config, ImageDownloader(config, session=session))


def emitted(markup, config):
    return RichTextConverter(config).convert(markup)


class TestResolveImages:
    """Test cases for ImageResolutionCoordinator.resolve_images."""

    def test_second_of_three_fails(self, coordinator, config, tmp_path):
        """Successful images keep their positions around a failed one."""
        document = emitted(THREE_IMAGES, config)

        result = coordinator.resolve_images(document, str(tmp_path), "note.md")

        assert result.content == (
            "Before  \n"
            "![](images/note.jpg)  \n"
            f"{FAILURE_REFERENCE}  \n"
            "![](images/note(3).jpg)  \n"
            "After"
        )
        assert result.stats.images_found == 3
        assert result.stats.images_downloaded == 2
        assert result.stats.image_downloads_failed == 1
        assert result.stats.total_bytes == 8
        assert [failure.uri for failure in result.failures] == [BROKEN_URL]
        assert result.failures[0].failure_type is FailureType.NETWORK
        assert result.failures[0].note_filename == "note.md"

    def test_duplicate_uri_downloaded_once(self, coordinator, config, session, tmp_path):
        document = emitted(DUPLICATE_IMAGES, config)

        result = coordinator.resolve_images(document, str(tmp_path), "note.md")

        assert result.content == "![](images/note.jpg)  \nBetween  \n![](images/note.jpg)"
        assert result.stats.images_found == 2
        assert result.stats.images_downloaded == 1
        session.get.assert_called_once()

    def test_secondary_strings_get_same_mapping(self, coordinator, config, tmp_path):
        document = emitted(THREE_IMAGES, config)
        header = "---\ntitle: note\n---\n"
        full = header + document.markdown
        document.markdown = full

        result = coordinator.resolve_images(
            document, str(tmp_path), "note.md", secondary=[full[len(header):]]
        )

        assert result.content == header + result.secondary[0]
        assert "IMAGE_PLACEHOLDER" not in result.secondary[0]

    def test_downloads_disabled(self, session, tmp_path):
        config = ConverterConfig(download_images=False)
        coordinator = ImageResolutionCoordinator(config, ImageDownloader(config, session=session))

        result = coordinator.resolve_images(emitted(THREE_IMAGES, config), str(tmp_path), "note.md")

        assert result.content.count(FAILURE_REFERENCE) == 3
        assert result.failures == []
        assert result.stats.images_found == 3
        session.get.assert_not_called()

    def test_no_output_directory(self, coordinator, config, session):
        result = coordinator.resolve_images(emitted(THREE_IMAGES, config))

        assert result.content.count(FAILURE_REFERENCE) == 3
        session.get.assert_not_called()

    def test_document_without_images(self, coordinator, config, tmp_path):
        document = emitted('<Paragraph><Run Text="plain"/></Paragraph>', config)

        result = coordinator.resolve_images(document, str(tmp_path), "note.md", secondary=["plain"])

        assert result.content == "plain"
        assert result.secondary == ["plain"]
        assert result.stats.images_found == 0

    def test_unexpected_exception_becomes_failure(self, config, tmp_path):
        downloader = MagicMock()
        downloader.download.side_effect = RuntimeError("disk on fire")
        coordinator = ImageResolutionCoordinator(config, downloader)

        result = coordinator.resolve_images(emitted(DUPLICATE_IMAGES, config), str(tmp_path), "note.md")

        assert result.content.count(FAILURE_REFERENCE) == 2
        assert result.failures[0].failure_type is FailureType.EXCEPTION
        assert isinstance(result.failures[0].error, ExportError)

    def test_failed_download_result(self, config, tmp_path):
        downloader = MagicMock()
        downloader.download.return_value = DownloadResult.failed(
            "https://cdn.logoscdn.com/same.png", FailureType.NETWORK, NetworkError("HTTP 500")
        )
        coordinator = ImageResolutionCoordinator(config, downloader)

        result = coordinator.resolve_images(emitted(DUPLICATE_IMAGES, config), str(tmp_path), "note.md")

        assert result.stats.image_downloads_failed == 1
        assert result.failures[0].reason == "HTTP 500"


class TestApplySubstitutions:
    """Test cases for apply_substitutions."""

    def test_replaces_in_order(self):
        text = "A TOKEN_1 B TOKEN_2"
        mapping = [("TOKEN_1", "one"), ("TOKEN_2", "two")]
        assert apply_substitutions(text, mapping) == "A one B two"
