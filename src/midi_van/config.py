from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .catalog import DEFAULT_FALLBACK_PAGES, DEFAULT_INDEX_URL


@dataclass
class PlayerConfig:
    device: Optional[str] = None
    cache_dir: str = "./midi_cache"
    index_url: str = DEFAULT_INDEX_URL
    fallback_pages: List[str] = field(default_factory=lambda: list(DEFAULT_FALLBACK_PAGES))
    pause_s: float = 2.0
    seed: Optional[int] = None
    log_level: str = "INFO"


def player_config_from_dict(raw: Dict[str, Any]) -> PlayerConfig:
    # Unknown keys are ignored
    cfg = PlayerConfig()
    if raw.get("device"):
        cfg.device = str(raw["device"])
    if "cache_dir" in raw:
        cfg.cache_dir = str(raw["cache_dir"])
    if "index_url" in raw:
        cfg.index_url = str(raw["index_url"])
    if isinstance(raw.get("fallback_pages"), list):
        cfg.fallback_pages = [str(p) for p in raw["fallback_pages"]]
    if "pause_s" in raw:
        cfg.pause_s = max(0.0, float(raw["pause_s"]))
    if raw.get("seed") is not None:
        cfg.seed = int(raw["seed"])
    if "log_level" in raw:
        cfg.log_level = str(raw["log_level"]).upper()
    return cfg


def _apply_env(cfg: PlayerConfig) -> PlayerConfig:
    device = os.environ.get("MIDI_VAN_DEVICE")
    if device:
        cfg.device = device
    cache_dir = os.environ.get("MIDI_VAN_CACHE_DIR")
    if cache_dir:
        cfg.cache_dir = cache_dir
    level = os.environ.get("MIDI_VAN_LOG_LEVEL")
    if level:
        cfg.log_level = level.upper()
    return cfg


def load_player_config(path: Optional[str] = None) -> PlayerConfig:
    """Read an optional JSON config, then apply MIDI_VAN_* environment overrides."""
    raw: Dict[str, Any] = {}
    if path:
        with open(path, "r") as f:
            raw = json.load(f)
    return _apply_env(player_config_from_dict(raw))
