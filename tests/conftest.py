import os
import stat
import sys
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from convertor.models import AudioQuality, ConversionJob, OutputFormat  # noqa: E402

# Stand-in for ffmpeg. Behaviour is steered by the input file name:
#   nodur  → probe prints "Duration: N/A"
#   cover  → probe lists a video stream
#   fail   → conversion exits 1
#   noout  → conversion exits 0 without writing the output
#   slow   → conversion hangs until terminated
FAKE_FFMPEG = """\
import os
import sys
import time

args = sys.argv[1:]
source = args[1] if len(args) > 1 else ""
name = os.path.basename(source)


def err(text):
    sys.stderr.write(text)
    sys.stderr.flush()


if not os.path.exists(source):
    err(source + ": No such file or directory\\n")
    sys.exit(1)

err("Input #0, flac, from '" + source + "':\\n")
if "nodur" in name:
    err("  Duration: N/A, bitrate: N/A\\n")
else:
    err("  Duration: 00:01:30.50, start: 0.000000, bitrate: 900 kb/s\\n")
err("  Stream #0:0: Audio: flac, 44100 Hz, stereo, s16\\n")
if "cover" in name:
    err("  Stream #0:1: Video: mjpeg (Baseline), yuvj420p, 500x500\\n")

if len(args) == 2:
    err("At least one output file must be specified\\n")
    sys.exit(1)
if args[-1] == "-":
    sys.exit(0)

if "fail" in name:
    err("Error while decoding stream #0:0: Invalid data found when processing input\\n")
    sys.exit(1)
if "slow" in name:
    time.sleep(60)
for stamp in ("00:00:22.62", "00:00:45.25", "00:01:07.87", "00:01:30.50"):
    err("size=     256kB time=" + stamp + " bitrate=  92.6kbits/s speed=50x\\r")
    time.sleep(0.05)
err("\\n")
if "noout" not in name:
    with open(args[-1], "wb") as f:
        f.write(b"ftypM4A ")
sys.exit(0)
"""


@pytest.fixture
def fake_ffmpeg(tmp_path) -> Path:
    path = tmp_path / "bin" / "ffmpeg"
    path.parent.mkdir()
    path.write_text(f"#!{sys.executable}\n" + FAKE_FFMPEG, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def music_dir(tmp_path) -> Path:
    folder = tmp_path / "music"
    folder.mkdir()
    return folder


@pytest.fixture
def make_flac(music_dir):
    def _make(name: str) -> Path:
        path = music_dir / name
        path.write_bytes(b"fLaC\x00\x00\x00\x22")
        return path
    return _make


@pytest.fixture
def make_job():
    def _make(path: Path, output_format=OutputFormat.AAC, quality=AudioQuality.HIGH) -> ConversionJob:
        return ConversionJob(source_path=path, output_format=output_format, quality=quality)
    return _make
