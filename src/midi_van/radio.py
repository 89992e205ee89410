"""Random playback: keep picking catalog files, fetching and playing them."""

from __future__ import annotations

import asyncio
import logging
import random
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence, Union

from .cache import download_midi_file
from .decode import load_midi_file
from .errors import CatalogError, DecodeError, DownloadError, PlaybackAborted, PlaybackError
from .player import Player, PlaybackSummary

logger = logging.getLogger(__name__)


async def play_path(player: Player, path: Union[str, Path]) -> PlaybackSummary:
    """Decode and play one local file."""
    decoded = await asyncio.to_thread(load_midi_file, path)
    return await player.play(decoded)


async def start_random_playback(
    player: Player,
    urls: Sequence[str],
    cache_dir: Union[str, Path],
    rng: Optional[random.Random] = None,
    pause_s: float = 2.0,
    max_files: Optional[int] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """Play random catalog entries until cancelled or `max_files` attempts.

    A file that cannot be downloaded, decoded or played is logged and
    skipped. Every attempt, failed or not, is followed by a `pause_s` wait
    unless it was the last one. Returns how many files played to the end.
    """
    if not urls:
        raise CatalogError("No MIDI URLs available")
    rng = rng or random.Random()
    choices = list(urls)
    completed = 0

    logger.info("Starting random playback over %d MIDI files", len(urls))
    attempts = 0
    while max_files is None or attempts < max_files:
        attempts += 1
        url = rng.choice(choices)
        try:
            path = await asyncio.to_thread(download_midi_file, url, cache_dir)
            await play_path(player, path)
        except PlaybackAborted:
            raise
        except (DownloadError, DecodeError, PlaybackError) as e:
            logger.error("Skipping %s: %s", url, e)
        else:
            completed += 1

        if pause_s > 0 and (max_files is None or attempts < max_files):
            logger.info("Waiting %.0f seconds before next song...", pause_s)
            await sleep(pause_s)
    return completed
