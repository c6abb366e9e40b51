"""
convertor.settings
~~~~~~~~~~~~~~~~~~
User preferences consumed by the scheduler, persisted to a JSON file in
the platform's standard config directory.

Config location
---------------
  Windows  : %APPDATA%\\Convertor\\settings.json
  macOS    : ~/Library/Application Support/Convertor/settings.json
  Linux    : ~/.config/Convertor/settings.json
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from convertor.models import AudioQuality, OutputFormat

log = logging.getLogger(__name__)

MIN_CONCURRENT_TASKS = 1
MAX_CONCURRENT_TASKS = 16


# ── Config directory ──────────────────────────────────────────────────────────

def _config_dir() -> Path:
    if sys.platform == "win32":
        base = Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"
    return base / "Convertor"


SETTINGS_FILE = _config_dir() / "settings.json"


# ── Model ─────────────────────────────────────────────────────────────────────

@dataclass
class Settings:
    default_output_format: OutputFormat = OutputFormat.AAC
    audio_quality: AudioQuality = AudioQuality.HIGH
    max_concurrent_tasks: int = 4
    output_directory: Path | None = None   # None → platform Documents folder
    ffmpeg_path: Path | None = None        # None → bundled bin/ffmpeg, then PATH

    def __post_init__(self):
        self.max_concurrent_tasks = clamp_concurrency(self.max_concurrent_tasks)


def clamp_concurrency(value: int) -> int:
    return max(MIN_CONCURRENT_TASKS, min(MAX_CONCURRENT_TASKS, int(value)))


# ── Public API ────────────────────────────────────────────────────────────────

def load_settings(path: Path | None = None) -> Settings:
    """
    Read the settings file and return a Settings instance.
    Returns defaults if the file is missing, empty, or malformed; invalid
    individual fields fall back to their defaults one by one.
    """
    path = path or SETTINGS_FILE
    if not path.exists():
        return Settings()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.warning("[SETTINGS] Ignoring unreadable settings file %s: %s", path, exc)
        return Settings()
    if not isinstance(payload, dict):
        return Settings()
    return _dict_to_settings(payload)


def save_settings(settings: Settings, path: Path | None = None) -> None:
    """
    Serialise *settings*, overwriting any previous data.
    I/O errors are logged so a config issue never crashes the app.
    """
    path = path or SETTINGS_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(_settings_to_dict(settings), indent=2), encoding="utf-8")
    except OSError as exc:
        log.warning("[SETTINGS] Could not save settings to %s: %s", path, exc)


# ── Serialisation helpers ─────────────────────────────────────────────────────

def _settings_to_dict(settings: Settings) -> dict:
    return {
        "default_output_format": settings.default_output_format.value,
        "audio_quality":         settings.audio_quality.value,
        "max_concurrent_tasks":  settings.max_concurrent_tasks,
        "output_directory":      str(settings.output_directory) if settings.output_directory else None,
        "ffmpeg_path":           str(settings.ffmpeg_path) if settings.ffmpeg_path else None,
    }


def _dict_to_settings(d: dict) -> Settings:
    defaults = Settings()

    try:
        output_format = OutputFormat(d.get("default_output_format"))
    except ValueError:
        output_format = defaults.default_output_format

    try:
        quality = AudioQuality(d.get("audio_quality"))
    except ValueError:
        quality = defaults.audio_quality

    try:
        max_tasks = int(d.get("max_concurrent_tasks", defaults.max_concurrent_tasks))
    except (TypeError, ValueError):
        max_tasks = defaults.max_concurrent_tasks

    output_directory = d.get("output_directory")
    ffmpeg_path = d.get("ffmpeg_path")

    return Settings(
        default_output_format = output_format,
        audio_quality         = quality,
        max_concurrent_tasks  = max_tasks,
        output_directory      = Path(output_directory) if output_directory else None,
        ffmpeg_path           = Path(ffmpeg_path) if ffmpeg_path else None,
    )
