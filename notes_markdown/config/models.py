"""Data models for converter configuration.

The configuration value is passed explicitly to every component that needs a
table or a limit (classifier, emitter, downloader, coordinator) so tests can
substitute alternate tables without patching module state.
"""

from dataclasses import dataclass, field
from typing import List

DEFAULT_HEADING_FONT_SIZES = [23, 21, 19, 17, 15, 13]

DEFAULT_MONOSPACE_FONTS = [
    'courier new',
    'courier',
    'andale mono',
    'monaco',
    'consolas',
    'lucida console',
    'sf mono',
    'menlo',
    'cascadia code',
]

DEFAULT_ALLOWED_IMAGE_HOSTS = ['logoscdn.com', 'unsplash.com']

DEFAULT_USER_AGENT = 'notes-markdown/0.1 (+image-downloader)'


@dataclass
class ConverterConfig:
    """Options controlling markup conversion and image resolution.

    Attributes:
        html_sub_superscript: Render sub/superscript as <sub>/<sup> instead of ~x~/^x^
        convert_indents_to_quotes: Render indentation as blockquotes instead of
            non-breaking-space padding
        ignore_unknown_elements: Degrade to plain-text output when markup cannot be
            parsed instead of raising
        download_images: Download referenced images into the output directory
        max_image_size_mb: Size ceiling for a single image
        download_timeout_ms: Timeout for one download attempt
        download_retries: Total download attempts per image
        retry_backoff_seconds: Base delay for exponential backoff between attempts
        max_concurrent_downloads: Upper bound on parallel downloads per note
        allowed_image_hosts: Host suffixes images may be fetched from (empty allows any)
        heading_font_sizes: Minimum font size for H1..H6, strictly descending
        monospace_fonts: Font family names treated as code
        small_text_max_size: Font sizes at or below this render as small text
        max_errors: Capacity of the run-level error collection
        user_agent: User-Agent header sent with image downloads
    """
    html_sub_superscript: bool = False
    convert_indents_to_quotes: bool = True
    ignore_unknown_elements: bool = True
    download_images: bool = True
    max_image_size_mb: float = 8
    download_timeout_ms: int = 30000
    download_retries: int = 3
    retry_backoff_seconds: float = 1.0
    max_concurrent_downloads: int = 4
    allowed_image_hosts: List[str] = field(
        default_factory=lambda: list(DEFAULT_ALLOWED_IMAGE_HOSTS)
    )
    heading_font_sizes: List[int] = field(
        default_factory=lambda: list(DEFAULT_HEADING_FONT_SIZES)
    )
    monospace_fonts: List[str] = field(
        default_factory=lambda: list(DEFAULT_MONOSPACE_FONTS)
    )
    small_text_max_size: float = 9
    max_errors: int = 1000
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def download_timeout_seconds(self) -> float:
        return self.download_timeout_ms / 1000.0

    @property
    def max_image_size_bytes(self) -> int:
        return int(self.max_image_size_mb * 1024 * 1024)
