"""Data models for image resolution."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..error_handling.errors import NotesExportError

URL_PREVIEW_LENGTH = 80
BYTES_PER_MB = 1024 * 1024


class FailureType(Enum):
    """Why an image could not be resolved."""

    VALIDATION = 'validation'
    NETWORK = 'network'
    FILESYSTEM = 'filesystem'
    EXCEPTION = 'exception'


def url_preview(url: str) -> str:
    if len(url) <= URL_PREVIEW_LENGTH:
        return url
    return url[:URL_PREVIEW_LENGTH] + '...'


@dataclass
class DownloadResult:
    """Outcome of resolving one unique image URI.

    Attributes:
        uri: Source URI as written in the markup
        success: Whether a local copy is available
        filename: File name inside the images folder (on success)
        size_bytes: Bytes written by this download (0 when an earlier copy was reused)
        failure_type: Failure classification (on failure)
        error: The failure as a typed error (on failure)
    """
    uri: str
    success: bool
    filename: Optional[str] = None
    size_bytes: int = 0
    failure_type: Optional[FailureType] = None
    error: Optional[NotesExportError] = None

    @classmethod
    def failed(
        cls, uri: str, failure_type: FailureType, error: NotesExportError
    ) -> 'DownloadResult':
        return cls(uri=uri, success=False, failure_type=failure_type, error=error)


@dataclass(frozen=True)
class ImageFailure:
    """Per-image failure record reported to the operator.

    Attributes:
        uri: Source URI of the image
        reason: Human-readable failure reason
        failure_type: Failure classification
        note_filename: Note the image belongs to, if known
        url_preview: URI truncated to 80 characters for display
        error: Typed error behind the failure
    """
    uri: str
    reason: str
    failure_type: FailureType
    note_filename: Optional[str] = None
    url_preview: str = ''
    error: Optional[NotesExportError] = None

    @classmethod
    def from_result(cls, result: DownloadResult, note_filename: Optional[str]) -> 'ImageFailure':
        return cls(
            uri=result.uri,
            reason=result.error.message if result.error else 'Unknown failure',
            failure_type=result.failure_type or FailureType.EXCEPTION,
            note_filename=note_filename,
            url_preview=url_preview(result.uri),
            error=result.error,
        )


@dataclass
class ImageStats:
    """Aggregate image counters for a note or a whole run."""
    images_found: int = 0
    images_downloaded: int = 0
    image_downloads_failed: int = 0
    total_bytes: int = 0

    @property
    def total_size_mb(self) -> float:
        return self.total_bytes / BYTES_PER_MB

    def merge(self, other: 'ImageStats') -> None:
        self.images_found += other.images_found
        self.images_downloaded += other.images_downloaded
        self.image_downloads_failed += other.image_downloads_failed
        self.total_bytes += other.total_bytes


@dataclass
class FailureSummary:
    """Counts of image failures by type."""
    total: int = 0
    by_type: Dict[FailureType, int] = field(default_factory=dict)
    most_common_type: Optional[FailureType] = None


def summarize_failures(failures: List[ImageFailure]) -> FailureSummary:
    counts = Counter(failure.failure_type for failure in failures)
    most_common = counts.most_common(1)
    return FailureSummary(
        total=len(failures),
        by_type=dict(counts),
        most_common_type=most_common[0][0] if most_common else None,
    )


@dataclass
class ImageResolutionResult:
    """Documents with every placeholder replaced, plus statistics and failures.

    Attributes:
        content: The primary document after substitution
        secondary: Each secondary string after the same substitution, in order
        stats: Image counters for this document
        failures: Failed images in first-occurrence order
    """
    content: str
    secondary: List[str] = field(default_factory=list)
    stats: ImageStats = field(default_factory=ImageStats)
    failures: List[ImageFailure] = field(default_factory=list)
