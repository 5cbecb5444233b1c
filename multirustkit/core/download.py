"""
Network download helpers for fetching distribution archives.

This module provides:
- HTTP/HTTPS downloads with TLS verification (requests)
- Retry logic with exponential backoff
- SHA-256 verification while streaming
- Small text fetches for `.sha256` checksum files
"""

import hashlib
import logging
import time
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import HTTPError, RequestException

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class DownloadError(Exception):
    """Exception raised when download fails."""

    pass


class ChecksumError(Exception):
    """Exception raised when checksum verification fails."""

    pass


class StreamingHasher:
    """Compute a SHA-256 digest incrementally for streaming downloads."""

    def __init__(self):
        self.hasher = hashlib.sha256()

    def update(self, data: bytes):
        """Add data to hash computation."""
        self.hasher.update(data)

    def finalize(self) -> str:
        """Get final hash value as hex string."""
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        """Check if computed hash matches expected value."""
        return self.finalize().lower() == expected_hash.strip().lower()


def _with_retries(action: Callable, what: str, max_retries: int):
    """Run action, retrying network failures with exponential backoff."""
    for attempt in range(max_retries):
        try:
            return action()
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status is not None and status < 500:
                raise DownloadError(f"Download of {what} failed: {e}") from e
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download of {what} failed after {max_retries} attempts: {e}"
                ) from e
            logger.warning(f"Download attempt {attempt + 1} failed: {e}")
            time.sleep(2**attempt)
        except RequestException as e:
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download of {what} failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise DownloadError(f"Download of {what} failed for unknown reason")


def download_file(
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic and checksum verification.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_sha256: Expected SHA256 hash (verified during download)
        timeout: Request timeout in seconds
        max_retries: Maximum number of retry attempts

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If download fails after retries
        ChecksumError: If checksum doesn't match expected value

    Example:
        >>> download_file(
        ...     "https://static.rust-lang.org/dist/rust-stable-x86_64-unknown-linux-gnu.tar.gz",
        ...     Path("/tmp/rust-stable.tar.gz"),
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    def attempt() -> Path:
        return _download_once(url, destination, expected_sha256, timeout)

    return _with_retries(attempt, url, max_retries)


def _download_once(
    url: str, destination: Path, expected_sha256: Optional[str], timeout: int
) -> Path:
    """Perform a single streaming download into destination."""
    logger.info(f"Downloading from {url}")

    response = requests.get(url, stream=True, timeout=timeout, allow_redirects=True)
    response.raise_for_status()

    hasher = StreamingHasher() if expected_sha256 else None

    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if chunk:
                f.write(chunk)
                if hasher:
                    hasher.update(chunk)

    if hasher and not hasher.verify(expected_sha256):
        actual_hash = hasher.finalize()
        destination.unlink()
        raise ChecksumError(
            f"Checksum mismatch for {destination.name}: "
            f"expected {expected_sha256}, got {actual_hash}"
        )

    logger.debug(f"Download complete: {destination}")
    return destination


def fetch_text(url: str, timeout: int = 30, max_retries: int = 3) -> str:
    """
    Fetch a small text resource such as a `.sha256` file.

    Raises:
        DownloadError: If the request fails after retries
    """

    def attempt() -> str:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
        response.raise_for_status()
        return response.text

    return _with_retries(attempt, url, max_retries)
