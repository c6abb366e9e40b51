"""
convertor.command_builder
~~~~~~~~~~~~~~~~~~~~~~~~~
Builds ffmpeg CLI commands as plain list[str].

Keeping command construction separate means you can:
  - log / print the exact command before running it
  - paste it straight into a terminal for debugging
  - unit-test flag generation without running any process
"""

from __future__ import annotations

import shlex
from pathlib import Path

from convertor.models import AudioQuality, OutputFormat


def build_conversion_command(
    ffmpeg: Path,
    input_file: Path,
    output_file: Path,
    output_format: OutputFormat,
    quality: AudioQuality,
    has_picture: bool,
) -> list[str]:
    """
    Build the full ffmpeg command for converting one file.

    With an embedded cover the video stream is copied across and flagged
    as an attached picture; otherwise video is dropped. The bitrate cap
    only applies to lossy AAC.

    Example output:
        ['/path/to/ffmpeg', '-i', '/music/a.flac',
         '-map_metadata', '0', '-vn', '-c:a', 'aac',
         '-b:a', '192k', '-y', '/converted/a.m4a']
    """
    cmd = [str(ffmpeg), "-i", str(input_file), "-map_metadata", "0"]

    if has_picture:
        cmd += [
            "-map", "0:a",
            "-map", "0:v",
            "-c:a", output_format.codec,
            "-c:v", "copy",
            "-disposition:v", "attached_pic",
        ]
    else:
        cmd += ["-vn", "-c:a", output_format.codec]

    if output_format is OutputFormat.AAC and quality is not AudioQuality.LOSSLESS:
        cmd += ["-b:a", f"{quality.bitrate_kbps}k"]

    cmd += ["-y", str(output_file)]
    return cmd


def build_duration_probe_command(ffmpeg: Path, input_file: Path) -> list[str]:
    """
    ``ffmpeg -i <input>`` with no output: ffmpeg prints the stream summary
    (including ``Duration:``) to stderr and exits non-zero.
    """
    return [str(ffmpeg), "-i", str(input_file)]


def build_picture_probe_command(ffmpeg: Path, input_file: Path) -> list[str]:
    """Map any video stream to the null muxer so ffmpeg lists it."""
    return [str(ffmpeg), "-i", str(input_file), "-map", "0:v?", "-f", "null", "-"]


def command_as_string(cmd: list[str]) -> str:
    """Human-readable version of the command for logging."""
    return " ".join(shlex.quote(part) for part in cmd)
