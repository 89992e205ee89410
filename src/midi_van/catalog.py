"""Catalog of downloadable MIDI files scraped from an index web page."""

from __future__ import annotations

import logging
import ssl
import urllib.error
import urllib.request
from html.parser import HTMLParser
from typing import List, Optional, Sequence
from urllib.parse import urljoin

import certifi

from .errors import CatalogError

logger = logging.getLogger(__name__)

DEFAULT_INDEX_URL = "http://piano-midi.de/midi_files.htm"
DEFAULT_FALLBACK_PAGES = [
    "http://piano-midi.de/bach.htm",
    "http://piano-midi.de/mozart.htm",
    "http://piano-midi.de/beethoven.htm",
    "http://piano-midi.de/chopin.htm",
    "http://piano-midi.de/liszt.htm",
    "http://piano-midi.de/schumann.htm",
    "http://piano-midi.de/brahms.htm",
    "http://piano-midi.de/debussy.htm",
]
USER_AGENT = "midi-van/0.1"


def tls_context() -> ssl.SSLContext:
    return ssl.create_default_context(cafile=certifi.where())


def http_get(url: str, timeout: float = 20.0) -> bytes:
    """GET `url` and return the body; non-2xx and network errors raise."""
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    with urllib.request.urlopen(req, timeout=timeout, context=tls_context()) as resp:
        status = getattr(resp, "status", 200)
        if not 200 <= status < 300:
            raise urllib.error.HTTPError(url, status, "unexpected status", resp.headers, None)
        return resp.read()


class _LinkCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.hrefs: List[str] = []

    def handle_starttag(self, tag, attrs) -> None:
        if tag != "a":
            return
        for key, value in attrs:
            if key == "href" and value:
                self.hrefs.append(value)


def extract_midi_links(html: str, base_url: str) -> List[str]:
    """Absolute URLs of every link containing `.mid`, in page order, deduplicated."""
    parser = _LinkCollector()
    parser.feed(html)
    parser.close()
    seen = set()
    urls: List[str] = []
    for href in parser.hrefs:
        if ".mid" not in href.lower():
            continue
        url = urljoin(base_url, href.strip())
        if url in seen:
            continue
        seen.add(url)
        urls.append(url)
    return urls


def fetch_midi_urls_from_page(url: str, timeout: float = 20.0) -> List[str]:
    body = http_get(url, timeout=timeout)
    return extract_midi_links(body.decode("utf-8", errors="replace"), url)


def fetch_midi_urls(
    index_url: str = DEFAULT_INDEX_URL,
    fallback_pages: Optional[Sequence[str]] = None,
    timeout: float = 20.0,
) -> List[str]:
    """Collect MIDI file URLs from the index page, falling back to composer pages."""
    logger.info("Fetching MIDI file URLs from %s", index_url)
    try:
        urls = fetch_midi_urls_from_page(index_url, timeout=timeout)
    except (urllib.error.URLError, OSError) as e:
        raise CatalogError(f"Failed to fetch page {index_url}: {e}") from e

    if not urls:
        logger.info("No MIDI URLs found on main page, trying composer pages...")
        pages = DEFAULT_FALLBACK_PAGES if fallback_pages is None else fallback_pages
        seen = set()
        for page in pages:
            try:
                found = fetch_midi_urls_from_page(page, timeout=timeout)
            except (urllib.error.URLError, OSError) as e:
                logger.warning("Skipping %s: %s", page, e)
                continue
            for url in found:
                if url not in seen:
                    seen.add(url)
                    urls.append(url)

    if not urls:
        raise CatalogError("No MIDI files found")
    logger.info("Found %d MIDI file URLs", len(urls))
    return urls
