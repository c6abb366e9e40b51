"""
convertor.probe
~~~~~~~~~~~~~~~
Short, synchronous ffmpeg invocations used only to read metadata.
Meant to be called from a worker thread, never from the scheduler's.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from convertor.command_builder import (
    build_duration_probe_command,
    build_picture_probe_command,
)
from convertor.errors import DurationParsingFailed
from convertor.progress import parse_duration

log = logging.getLogger(__name__)


# ── Public API ────────────────────────────────────────────────────────────────

def probe_duration(ffmpeg: Path, file: Path) -> float:
    """
    Return the duration of *file* in seconds.

    ffmpeg exits non-zero here (no output file was given); only the
    diagnostic text is inspected.

    Raises:
        DurationParsingFailed – the probe could not run or printed no duration
    """
    try:
        diagnostics = _run_ffmpeg(build_duration_probe_command(ffmpeg, file))
    except OSError as exc:
        log.warning("[PROBE] Duration probe could not run for '%s': %s", file.name, exc)
        raise DurationParsingFailed() from exc

    duration = parse_duration(diagnostics)
    log.debug("[PROBE] Duration of '%s' = %.2fs", file.name, duration)
    return duration


def has_attached_picture(ffmpeg: Path, file: Path) -> bool:
    """
    Return True if *file* carries a video stream (cover art).
    Any failure counts as "no picture" — the cover is nice to keep,
    never a reason to fail the conversion.
    """
    try:
        diagnostics = _run_ffmpeg(build_picture_probe_command(ffmpeg, file))
    except OSError as exc:
        log.warning("[PROBE] Cannot check for attached picture in '%s': %s", file.name, exc)
        return False

    found = "Stream #0:" in diagnostics and "Video:" in diagnostics
    log.debug("[PROBE] Attached picture in '%s': %s", file.name, found)
    return found


# ── Internal helpers ──────────────────────────────────────────────────────────

def _run_ffmpeg(cmd: list[str]) -> str:
    """Execute a probe and return its stderr text, whatever the exit code."""
    result = subprocess.run(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
    )
    return result.stderr
