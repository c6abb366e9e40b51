"""
convertor.scanner
~~~~~~~~~~~~~~~~~
Pure functions for deciding which files can be converted and where their
output goes. No Qt, no subprocess — easy to unit-test in isolation.
"""

from __future__ import annotations

from pathlib import Path

from convertor.models import OutputFormat

# Lossless sources we accept as input
AUDIO_EXTENSIONS: frozenset[str] = frozenset({".flac"})


# ── Public API ────────────────────────────────────────────────────────────────

def is_supported_input(path: Path) -> bool:
    return path.suffix.lower() in AUDIO_EXTENSIONS


def expand_inputs(paths: list[Path]) -> list[Path]:
    """
    Turn a mix of files and folders into a flat list of candidate files.

    Folders are scanned non-recursively and contribute their supported
    audio files in sorted order; plain files are passed through untouched
    (the scheduler decides whether to accept them).
    """
    expanded: list[Path] = []
    for path in paths:
        if path.is_dir():
            expanded.extend(sorted(_collect_audio_files(path)))
        else:
            expanded.append(path)
    return expanded


def build_output_path(
    input_file: Path,
    output_folder: Path,
    output_format: OutputFormat,
) -> Path:
    """
    Given an input file, return the expected output path.

    Example:
        input_file    = Path("/music/track01.flac")
        output_folder = Path("/converted")
        output_format = OutputFormat.ALAC
        → Path("/converted/track01.m4a")
    """
    return output_folder / (input_file.stem + output_format.container_extension)


# ── Internal helpers ──────────────────────────────────────────────────────────

def _collect_audio_files(folder: Path) -> list[Path]:
    """Return all supported audio files directly inside *folder*."""
    return [
        f for f in folder.iterdir()
        if f.is_file() and is_supported_input(f)
    ]
