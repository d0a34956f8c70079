"""Image download and placeholder resolution for converted notes."""

from .models import (
    DownloadResult,
    FailureSummary,
    FailureType,
    ImageFailure,
    ImageResolutionResult,
    ImageStats,
    summarize_failures,
)
from .retry_logic import retry_with_backoff, is_retryable_error
from .image_downloader import (
    ImageDownloader,
    fallback_filename,
    filename_from_content_disposition,
    sanitize_filename,
)
from .image_coordinator import (
    FAILURE_REFERENCE,
    ImageResolutionCoordinator,
    apply_substitutions,
    local_reference,
)

__all__ = [
    'DownloadResult',
    'FailureSummary',
    'FailureType',
    'ImageFailure',
    'ImageResolutionResult',
    'ImageStats',
    'summarize_failures',
    'retry_with_backoff',
    'is_retryable_error',
    'ImageDownloader',
    'fallback_filename',
    'filename_from_content_disposition',
    'sanitize_filename',
    'FAILURE_REFERENCE',
    'ImageResolutionCoordinator',
    'apply_substitutions',
    'local_reference',
]
