"""
convertor.paths
~~~~~~~~~~~~~~~
Single source of truth for filesystem locations used across the app.
Import these instead of hard-coding strings anywhere else.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from PySide6.QtCore import QStandardPaths

from convertor.errors import FFmpegNotExecutable, FFmpegNotFound

# Project root = the directory that contains main.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent

BIN_DIR    = PROJECT_ROOT / "bin"
FFMPEG_BIN = BIN_DIR / "ffmpeg"


def resolve_ffmpeg(override: Path | None = None) -> Path:
    """
    Locate the ffmpeg executable and check that it can be run.

    Lookup order: *override* (from settings), the bundled ``bin/ffmpeg``,
    then ``ffmpeg`` on PATH.

    Raises:
        FFmpegNotFound       – nothing exists at the chosen location
        FFmpegNotExecutable  – it exists but is not an executable file
    """
    if override is not None:
        candidate = Path(override)
    elif FFMPEG_BIN.exists():
        candidate = FFMPEG_BIN
    else:
        found = shutil.which("ffmpeg")
        if found is None:
            raise FFmpegNotFound()
        candidate = Path(found)

    if not candidate.exists():
        raise FFmpegNotFound()
    if not candidate.is_file() or not os.access(candidate, os.X_OK):
        raise FFmpegNotExecutable()
    return candidate


def default_output_directory() -> Path:
    """The platform's standard documents location."""
    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.DocumentsLocation
    )
    return Path(location) if location else Path.home() / "Documents"
