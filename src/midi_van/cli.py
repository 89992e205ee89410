from __future__ import annotations

import argparse
import asyncio
import logging
import random
from typing import List

from .catalog import fetch_midi_urls
from .config import PlayerConfig, load_player_config
from .devices import list_devices, open_device
from .errors import CatalogError, DecodeError, DeviceError, PlaybackError
from .player import Player
from .radio import play_path, start_random_playback


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="midi-van",
        description="Downloads and plays random classical piano MIDI files",
    )
    parser.add_argument("-d", "--device", default=None, help="MIDI output device name (substring match)")
    parser.add_argument(
        "-l",
        "--list-devices",
        action="store_true",
        help="List available MIDI devices and exit",
    )
    parser.add_argument("-c", "--cache-dir", default=None, help="Directory to cache downloaded MIDI files")
    parser.add_argument("--config", default=None, help="Optional JSON config file")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random file choice")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--file", default=None, help="Play a single local MIDI file instead of the catalog")
    return parser


def resolve_config(args: argparse.Namespace) -> PlayerConfig:
    cfg = load_player_config(args.config)
    if args.device:
        cfg.device = args.device
    if args.cache_dir:
        cfg.cache_dir = args.cache_dir
    if args.seed is not None:
        cfg.seed = args.seed
    if args.log_level:
        cfg.log_level = args.log_level.upper()
    return cfg


async def run(player: Player, cfg: PlayerConfig, file_path: str | None = None) -> int:
    if file_path:
        summary = await play_path(player, file_path)
        print(f"Playback completed in {summary.elapsed_s:.2f} seconds")
        return 0

    urls = await asyncio.to_thread(fetch_midi_urls, cfg.index_url, cfg.fallback_pages)
    print(f"Found {len(urls)} MIDI files to choose from")
    print("Starting random playback mode. Press Ctrl+C to exit.")
    await start_random_playback(
        player,
        urls,
        cfg.cache_dir,
        rng=random.Random(cfg.seed),
        pause_s=cfg.pause_s,
    )
    return 0


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = resolve_config(args)
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_devices:
        list_devices()
        return 0

    print("MIDI Van starting...")
    try:
        sink = open_device(cfg.device)
    except DeviceError as e:
        print(f"Error: {e}")
        return 1

    with sink:
        player = Player(sink)
        try:
            return asyncio.run(run(player, cfg, args.file))
        except KeyboardInterrupt:
            print("Stopped.")
            return 130
        except (CatalogError, DecodeError, PlaybackError) as e:
            print(f"Error: {e}")
            return 1


if __name__ == "__main__":
    raise SystemExit(main())
