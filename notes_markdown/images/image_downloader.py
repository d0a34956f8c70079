"""Downloading of note images into the export's images folder.

Images referenced by notes live on a CDN. Each unique URI is fetched once per
run with a streamed GET, checked against the size ceiling both from the
declared Content-Length and while streaming, and written under
``<output>/images/`` with a sanitized, run-unique file name.
"""

import html
import logging
import os
import re
import threading
from typing import Dict, Optional, Set, Tuple
from urllib.parse import unquote, urlparse

import requests

from ..config.models import ConverterConfig
from ..error_handling.errors import (
    ErrorSeverity,
    FileSystemError,
    ImageTooLargeError,
    NetworkError,
    ValidationError,
)
from .models import BYTES_PER_MB, DownloadResult, FailureType
from .retry_logic import retry_with_backoff

logger = logging.getLogger(__name__)

IMAGES_DIR = 'images'
DEFAULT_IMAGE_NAME = 'image'
DEFAULT_EXTENSION = '.jpg'
IMAGE_EXTENSIONS = frozenset({'.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp', '.svg', '.tif', '.tiff'})
CHUNK_SIZE = 64 * 1024

_RFC5987_RE = re.compile(r"filename\*\s*=\s*UTF-8''([^;]+)", re.IGNORECASE)
_QUOTED_FILENAME_RE = re.compile(r'filename\s*=\s*"([^"]+)"', re.IGNORECASE)
_WHITESPACE_RE = re.compile(r'\s+')
_INVALID_CHARS_RE = re.compile(r'[^a-z0-9\-_.]')
_DASH_RUN_RE = re.compile(r'-{2,}')


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """Extract the file name from a Content-Disposition header.

    The RFC 5987 ``filename*=UTF-8''...`` form wins over ``filename="..."``.
    """
    if not header:
        return None
    match = _RFC5987_RE.search(header)
    if match:
        try:
            return unquote(match.group(1).strip(), errors='strict')
        except UnicodeDecodeError:
            logger.debug(f"Undecodable filename* in Content-Disposition: {header}")
    match = _QUOTED_FILENAME_RE.search(header)
    if match:
        return match.group(1)
    return None


def sanitize_stem(stem: str) -> str:
    cleaned = _WHITESPACE_RE.sub('-', stem.lower())
    cleaned = _INVALID_CHARS_RE.sub('', cleaned)
    cleaned = _DASH_RUN_RE.sub('-', cleaned)
    return cleaned.strip('-.')


def sanitize_filename(filename: str) -> str:
    """Lower-case, dash-separated file name with an image extension.

    Example:
        >>> sanitize_filename('My Photo (1).PNG')
        'my-photo-1.png'
    """
    stem, extension = os.path.splitext(filename.strip())
    extension = extension.lower()
    if extension not in IMAGE_EXTENSIONS:
        extension = DEFAULT_EXTENSION
    return (sanitize_stem(stem) or DEFAULT_IMAGE_NAME) + extension


def fallback_filename(note_filename: Optional[str], position: int) -> str:
    """Name for an image whose server sends no file name.

    The first image of a note is ``<stem>.jpg``, later ones ``<stem>(N).jpg``.
    """
    stem = DEFAULT_IMAGE_NAME
    if note_filename:
        base = os.path.basename(note_filename)
        if base.lower().endswith('.md'):
            base = base[:-3]
        stem = sanitize_stem(base) or DEFAULT_IMAGE_NAME
    if position <= 1:
        return f'{stem}{DEFAULT_EXTENSION}'
    return f'{stem}({position}){DEFAULT_EXTENSION}'


class ImageDownloader:
    """Fetches images over HTTPS and stores them in the images folder.

    One instance is meant to be shared by a whole run: it remembers which file
    names it has handed out per images folder and which URIs it has already
    stored, so repeated images are written once.

    Args:
        config: Converter configuration (limits, retries, host allow-list)
        session: requests session to use; a new one is created when omitted
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or ConverterConfig()
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': self.config.user_agent})
        self._lock = threading.Lock()
        self._claimed: Dict[str, Set[str]] = {}
        self._stored: Dict[Tuple[str, str], str] = {}

    def validate_url(self, uri: str) -> str:
        """Decode and validate an image URI.

        Args:
            uri: URI as written in the markup

        Returns:
            The decoded URL

        Raises:
            ValidationError: If the URL is not https or its host is not allowed
        """
        url = html.unescape(uri).strip()
        parsed = urlparse(url)
        if parsed.scheme != 'https' or not parsed.hostname:
            raise ValidationError(
                f"Unsupported image URL (https required): {url[:80]}",
                field_name='image_url',
                value=url,
                severity=ErrorSeverity.WARN,
                user_message='Image URL is not valid or supported',
            )

        allowed = self.config.allowed_image_hosts
        host = parsed.hostname.lower()
        if allowed and not any(host == entry or host.endswith('.' + entry) for entry in allowed):
            raise ValidationError(
                f"Image host not allowed: {host}",
                field_name='image_url',
                value=url,
                severity=ErrorSeverity.WARN,
                user_message='Image comes from a host that is not allowed',
            )
        return url

    def download(
        self, uri: str, output_directory: str, fallback_name: str
    ) -> DownloadResult:
        """Resolve one image URI to a file under ``<output_directory>/images``.

        Never raises for expected failures; they are returned as a failed
        DownloadResult carrying a typed error.

        Args:
            uri: Image URI as written in the markup
            output_directory: Export root for the note
            fallback_name: File name to use when the server supplies none

        Returns:
            DownloadResult describing the stored file or the failure
        """
        try:
            url = self.validate_url(uri)
        except ValidationError as e:
            logger.warning(f"Skipping image: {e.message}")
            return DownloadResult.failed(uri, FailureType.VALIDATION, e)

        images_dir = os.path.join(output_directory, IMAGES_DIR)
        with self._lock:
            stored = self._stored.get((images_dir, url))
        if stored is not None:
            logger.debug(f"Reusing {stored} for {url[:80]}")
            return DownloadResult(uri=uri, success=True, filename=stored)

        try:
            os.makedirs(images_dir, exist_ok=True)
        except OSError as e:
            error = FileSystemError(
                f"Failed to create images directory: {e}",
                path=images_dir,
                operation='create_directory',
                cause=e,
                user_message='Could not create the images directory for downloaded images',
            )
            return DownloadResult.failed(uri, FailureType.FILESYSTEM, error)

        try:
            filename, size = retry_with_backoff(
                self._fetch,
                url,
                images_dir,
                fallback_name,
                max_attempts=self.config.download_retries,
                base_delay=self.config.retry_backoff_seconds,
            )
        except FileSystemError as e:
            return DownloadResult.failed(uri, FailureType.FILESYSTEM, e)
        except NetworkError as e:
            logger.warning(f"Image download failed: {e.message}")
            return DownloadResult.failed(uri, FailureType.NETWORK, e)
        except requests.RequestException as e:
            error = NetworkError(f"Image download failed: {e}", url=url, cause=e)
            logger.warning(error.message)
            return DownloadResult.failed(uri, FailureType.NETWORK, error)

        with self._lock:
            self._stored[(images_dir, url)] = filename
        logger.info(f"Downloaded {filename} ({size / BYTES_PER_MB:.2f} MB)")
        return DownloadResult(uri=uri, success=True, filename=filename, size_bytes=size)

    def _fetch(self, url: str, images_dir: str, fallback_name: str) -> Tuple[str, int]:
        limit = self.config.max_image_size_bytes
        try:
            response = self.session.get(
                url, stream=True, timeout=self.config.download_timeout_seconds
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            raise NetworkError(f"Image request failed: {e}", url=url, cause=e)

        with response:
            if response.status_code >= 400:
                raise NetworkError(
                    f"HTTP {response.status_code}: {response.reason}",
                    url=url,
                    status_code=response.status_code,
                )

            declared = response.headers.get('Content-Length', '')
            if declared.isdigit() and int(declared) > limit:
                raise ImageTooLargeError(
                    url, int(declared) / BYTES_PER_MB, self.config.max_image_size_mb
                )

            preferred = filename_from_content_disposition(
                response.headers.get('Content-Disposition')
            )
            filename = self._claim_filename(images_dir, preferred, fallback_name)
            path = os.path.join(images_dir, filename)
            try:
                size = self._write_body(response, url, path, limit)
            except Exception:
                self._release_filename(images_dir, filename)
                _remove_partial(path)
                raise
        return filename, size

    def _write_body(
        self, response: requests.Response, url: str, path: str, limit: int
    ) -> int:
        size = 0
        try:
            with open(path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    size += len(chunk)
                    if size > limit:
                        raise ImageTooLargeError(
                            url, size / BYTES_PER_MB, self.config.max_image_size_mb,
                            declared=False,
                        )
                    f.write(chunk)
        except requests.RequestException as e:
            raise NetworkError(f"Image transfer interrupted: {e}", url=url, cause=e)
        except OSError as e:
            raise FileSystemError(
                f"Failed to write image: {e}",
                path=path,
                operation='write',
                cause=e,
                user_message='Failed to save image to local filesystem',
            )
        return size

    def _claim_filename(
        self, images_dir: str, preferred: Optional[str], fallback_name: str
    ) -> str:
        name = sanitize_filename(preferred) if preferred else fallback_name
        stem, extension = os.path.splitext(name)
        with self._lock:
            claimed = self._claimed.setdefault(images_dir, set())
            candidate = name
            counter = 2
            while candidate in claimed:
                candidate = f'{stem}({counter}){extension}'
                counter += 1
            claimed.add(candidate)
        return candidate

    def _release_filename(self, images_dir: str, filename: str) -> None:
        with self._lock:
            self._claimed.get(images_dir, set()).discard(filename)


def _remove_partial(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f"Could not remove partial download {path}: {e}")
