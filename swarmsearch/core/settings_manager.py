"""
Settings Manager
Handles persistent engine settings in the user's data directory
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict
import copy
import json
import logging
import os
import threading

logger = logging.getLogger(__name__)


class SettingsManager:
    """Manages engine settings with persistence"""

    DEFAULT_SETTINGS = {
        # Sources
        "enabled_sources": {
            "tpb": True,
            "1337x": False,
            "kickass": True,
            "torrentgalaxy": True,
            "magnetdl": True,
            "torrent9": True,
            "rutracker": False,
        },
        "rutracker_username": "",
        "rutracker_password": "",
        "max_login_attempts": 3,

        # Timeouts
        "search_timeout_seconds": 3.0,
        "per_url_timeout_seconds": 3.0,
        "detail_timeout_seconds": 6.0,
        "max_workers": 16,

        # Ranking
        "min_score": 40,
        "topk_fraction": 0.25,
        "topk_min": 5,
        "topk_max": 15,
        "fallback_cap": 15,
        "content_filter_mode": "soft",  # "soft" | "hard"
    }

    def __init__(self):
        # Settings stored in user home
        data_dir = str(os.environ.get("SWARMSEARCH_DATA_DIR", "") or "").strip()
        self.settings_dir = Path(data_dir).expanduser() if data_dir else (Path.home() / ".swarmsearch")
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        self.settings_file = self.settings_dir / "settings.json"

        self._lock = threading.RLock()
        self._settings: Dict[str, Any] = {}
        self._load()

    def _defaults(self) -> Dict[str, Any]:
        return copy.deepcopy(self.DEFAULT_SETTINGS)

    def _load(self):
        """Load settings from file"""
        with self._lock:
            if self.settings_file.exists():
                try:
                    with open(self.settings_file, "r", encoding="utf-8") as f:
                        loaded = json.load(f)
                    if not isinstance(loaded, dict):
                        raise ValueError("settings file must hold a JSON object")
                    # Merge with defaults (adds new keys if they don't exist)
                    self._settings = {**self._defaults(), **loaded}
                    # Deep-merge nested source flags so new sources get default states.
                    loaded_sources = loaded.get("enabled_sources", {})
                    if not isinstance(loaded_sources, dict):
                        loaded_sources = {}
                    self._settings["enabled_sources"] = {
                        **self.DEFAULT_SETTINGS["enabled_sources"],
                        **loaded_sources,
                    }
                except (OSError, ValueError) as e:
                    logger.error("Error loading settings from %s: %s", self.settings_file, e)
                    self._settings = self._defaults()
            else:
                self._settings = self._defaults()

    def _save(self):
        """Save settings to file"""
        with self._lock:
            try:
                with open(self.settings_file, "w", encoding="utf-8") as f:
                    json.dump(self._settings, f, indent=2)
            except OSError as e:
                logger.error("Error saving settings to %s: %s", self.settings_file, e)

    def get(self, key: str, default=None) -> Any:
        """Get a setting value"""
        with self._lock:
            return self._settings.get(key, default)

    def set(self, key: str, value: Any):
        """Set a setting value and save"""
        with self._lock:
            self._settings[str(key)] = value
            self._save()

    def update(self, settings_dict: Dict[str, Any]):
        """Update multiple settings at once"""
        with self._lock:
            self._settings.update(dict(settings_dict or {}))
            self._save()

    def set_source_enabled(self, source_id: str, enabled: bool):
        with self._lock:
            flags = dict(self._settings.get("enabled_sources", {}) or {})
            flags[source_id] = bool(enabled)
            self._settings["enabled_sources"] = flags
            self._save()

    def get_all(self) -> Dict[str, Any]:
        """Get all settings"""
        with self._lock:
            return copy.deepcopy(self._settings)

    def reset(self):
        """Reset to default settings"""
        with self._lock:
            self._settings = self._defaults()
            self._save()


@dataclass(frozen=True)
class SearchConfig:
    """Search knobs, frozen for the lifetime of one coordinator"""
    search_timeout_seconds: float = 3.0
    per_url_timeout_seconds: float = 3.0
    detail_timeout_seconds: float = 6.0
    min_score: int = 40
    topk_fraction: float = 0.25
    topk_min: int = 5
    topk_max: int = 15
    fallback_cap: int = 15
    content_filter_mode: str = "soft"
    max_workers: int = 16

    @classmethod
    def from_settings(cls, settings) -> "SearchConfig":
        defaults = cls()
        if settings is None:
            return defaults

        def _get(key, cast):
            value = settings.get(key, getattr(defaults, key))
            try:
                return cast(value)
            except (TypeError, ValueError):
                logger.warning("Invalid value for %s: %r; using %r", key, value, getattr(defaults, key))
                return getattr(defaults, key)

        mode = str(_get("content_filter_mode", str)).strip().lower()
        if mode not in ("soft", "hard"):
            logger.warning("Unknown content_filter_mode %r; using %r", mode, defaults.content_filter_mode)
            mode = defaults.content_filter_mode

        return cls(
            search_timeout_seconds=max(0.1, _get("search_timeout_seconds", float)),
            per_url_timeout_seconds=max(0.1, _get("per_url_timeout_seconds", float)),
            detail_timeout_seconds=max(0.1, _get("detail_timeout_seconds", float)),
            min_score=_get("min_score", int),
            topk_fraction=_get("topk_fraction", float),
            topk_min=max(0, _get("topk_min", int)),
            topk_max=max(0, _get("topk_max", int)),
            fallback_cap=max(0, _get("fallback_cap", int)),
            content_filter_mode=mode,
            max_workers=max(1, _get("max_workers", int)),
        )
