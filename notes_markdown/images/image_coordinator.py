"""Positional resolution of image placeholders.

The emitter leaves one numbered placeholder per media reference. The
coordinator downloads each unique URI (bounded fan-out), waits for every
download to settle, then pairs the placeholders actually present in the text
with their final references strictly by sequence index. The same pairing is
applied to every secondary string derived from the document, so a full note
and its body-only variant always receive identical image references.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence, Tuple

from ..config.models import ConverterConfig
from ..error_handling.errors import ExportError
from ..markup.models import EmittedDocument, ImagePlaceholder
from .image_downloader import IMAGES_DIR, ImageDownloader, fallback_filename
from .models import (
    DownloadResult,
    FailureType,
    ImageFailure,
    ImageResolutionResult,
    ImageStats,
)

logger = logging.getLogger(__name__)

FAILURE_REFERENCE = '![image unavailable]()'


def local_reference(filename: str) -> str:
    return f'![]({IMAGES_DIR}/{filename})'


def apply_substitutions(text: str, mapping: Sequence[Tuple[str, str]]) -> str:
    """Replace each placeholder token with its reference, in sequence order."""
    for token, reference in mapping:
        text = text.replace(token, reference)
    return text


class ImageResolutionCoordinator:
    """Resolves the image placeholders of emitted documents.

    Args:
        config: Converter configuration (download switch, fan-out cap)
        downloader: Shared ImageDownloader; built from config when omitted
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        downloader: Optional[ImageDownloader] = None,
    ):
        self.config = config or ConverterConfig()
        self.downloader = downloader or ImageDownloader(self.config)

    def resolve_images(
        self,
        document: EmittedDocument,
        output_directory: Optional[str] = None,
        note_filename: Optional[str] = None,
        secondary: Sequence[str] = (),
    ) -> ImageResolutionResult:
        """Replace every placeholder in a document and its derived strings.

        Args:
            document: Emitted document carrying placeholder bookkeeping
            output_directory: Export root; images go to its images/ folder
            note_filename: Note file name, used for fallback image names and
                failure records
            secondary: Strings derived from document.markdown (e.g. a body
                without frontmatter) that must receive the same substitution

        Returns:
            ImageResolutionResult with substituted strings, stats and failures
        """
        text = document.markdown
        present = sorted(
            (placeholder for placeholder in document.placeholders if placeholder.token in text),
            key=lambda placeholder: placeholder.index,
        )
        stats = ImageStats(images_found=len(present))
        if not present:
            return ImageResolutionResult(content=text, secondary=list(secondary), stats=stats)

        failures: List[ImageFailure] = []
        if not self.config.download_images or not output_directory:
            logger.debug(
                f"Image downloads skipped for {note_filename or 'note'}: "
                f"{len(present)} placeholder(s) marked unavailable"
            )
            references = {placeholder.index: FAILURE_REFERENCE for placeholder in present}
        else:
            results = self._download_all(present, output_directory, note_filename)
            references = {}
            for placeholder in present:
                result = results[placeholder.uri]
                references[placeholder.index] = (
                    local_reference(result.filename) if result.success else FAILURE_REFERENCE
                )
            for result in results.values():
                if result.success:
                    stats.images_downloaded += 1
                    stats.total_bytes += result.size_bytes
                else:
                    stats.image_downloads_failed += 1
                    failures.append(ImageFailure.from_result(result, note_filename))

        mapping = [(placeholder.token, references[placeholder.index]) for placeholder in present]
        return ImageResolutionResult(
            content=apply_substitutions(text, mapping),
            secondary=[apply_substitutions(item, mapping) for item in secondary],
            stats=stats,
            failures=failures,
        )

    def _download_all(
        self,
        placeholders: List[ImagePlaceholder],
        output_directory: str,
        note_filename: Optional[str],
    ) -> Dict[str, DownloadResult]:
        """Download each unique URI once; returns results in first-occurrence order."""
        unique_uris = list(dict.fromkeys(placeholder.uri for placeholder in placeholders))
        fallback_names = {
            uri: fallback_filename(note_filename, position)
            for position, uri in enumerate(unique_uris, start=1)
        }
        workers = max(1, min(self.config.max_concurrent_downloads, len(unique_uris)))

        settled: Dict[str, DownloadResult] = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    self.downloader.download, uri, output_directory, fallback_names[uri]
                ): uri
                for uri in unique_uris
            }
            for future in as_completed(futures):
                uri = futures[future]
                try:
                    settled[uri] = future.result()
                except Exception as e:
                    logger.error(f"Unexpected error downloading {uri[:80]}: {e}")
                    error = ExportError(
                        f"Unexpected error processing image: {e}",
                        phase='image_download',
                        cause=e,
                        metadata={'url': uri},
                    )
                    settled[uri] = DownloadResult.failed(uri, FailureType.EXCEPTION, error)

        return {uri: settled[uri] for uri in unique_uris}
