from __future__ import annotations

import logging
import os
import tempfile
import urllib.error
from pathlib import Path
from typing import Union
from urllib.parse import unquote, urlparse

from .catalog import http_get
from .errors import DownloadError

logger = logging.getLogger(__name__)


def cache_file_name(url: str) -> str:
    """Last path segment of `url`, or `unknown.mid` when there is none."""
    name = unquote(urlparse(url).path.rsplit("/", 1)[-1])
    return name or "unknown.mid"


def download_midi_file(url: str, cache_dir: Union[str, Path], timeout: float = 30.0) -> Path:
    """Return the cached copy of `url`, downloading it first if needed.

    The body is written to a temporary file in the cache directory and
    renamed into place, so an interrupted download never leaves a partial
    file behind under the final name.
    """
    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)
    path = cache_dir / cache_file_name(url)
    if path.exists():
        logger.debug("Using cached %s", path)
        return path

    logger.info("Downloading: %s", url)
    try:
        body = http_get(url, timeout=timeout)
    except (urllib.error.URLError, OSError) as e:
        raise DownloadError(f"Failed to download MIDI file {url}: {e}") from e

    fd, tmp = tempfile.mkstemp(dir=cache_dir, suffix=".part")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(body)
        os.replace(tmp, path)
    except OSError as e:
        Path(tmp).unlink(missing_ok=True)
        raise DownloadError(f"Failed to write {path}: {e}") from e
    return path
