"""
Settings Manager
Persisted runtime overrides for the staged thinking pipeline (settings.json).
Keys are namespaced by utils.pipeline_settings.override_key().
"""
import os
import json
from pathlib import Path
from typing import Any

from utils.logger import log_info, log_warning


def _candidate_settings_files() -> list[Path]:
    """Explicit env path first, then the container volume, then repo-local."""
    candidates = [
        os.getenv("STAGED_THINKING_SETTINGS_FILE", ""),
        "/app/data/settings.json",
        "config/settings.json",
    ]
    return [Path(c).expanduser() for c in dict.fromkeys(candidates) if c]


class SettingsManager:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(SettingsManager, cls).__new__(cls)
            cls._instance._load()
        return cls._instance

    def _load(self):
        self.settings: dict[str, Any] = {}
        candidates = _candidate_settings_files()
        self._settings_path = candidates[0]
        for candidate in candidates:
            if not candidate.exists():
                continue
            try:
                self.settings = json.loads(candidate.read_text())
                self._settings_path = candidate
                log_info(f"[Settings] Loaded {len(self.settings)} overrides from {candidate}")
                break
            except (OSError, ValueError) as e:
                log_warning(f"[Settings] Failed to load settings from {candidate}: {e}")

    def update(self, values: dict[str, Any]):
        """Set several keys with a single write. Raises RuntimeError if nothing is writable."""
        self.settings.update(values)
        payload = json.dumps(self.settings, indent=2)

        # zuerst die zuletzt genutzte Datei, dann die übrigen Kandidaten
        candidates = [self._settings_path]
        candidates.extend(p for p in _candidate_settings_files() if p != self._settings_path)

        last_error = None
        for path in candidates:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(payload)
                self._settings_path = path
                return
            except OSError as e:
                last_error = e

        raise RuntimeError(f"Failed to persist settings to any candidate path: {last_error}")

    @classmethod
    def reset(cls) -> "SettingsManager":
        """Drop the cached instance and re-read from disk."""
        cls._instance = None
        return cls()
