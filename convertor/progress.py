"""
convertor.progress
~~~~~~~~~~~~~~~~~~
Parsers for ffmpeg's human-readable diagnostic stream.

ffmpeg prints the input duration once near start-up:

    Duration: 00:03:25.47, start: 0.000000, bitrate: 1021 kb/s

and then keeps overwriting a single status line, separated by carriage
returns rather than newlines:

    size=    1024kB time=00:00:41.26 bitrate= 203.3kbits/s speed=82.5x\r
"""

from __future__ import annotations

import codecs
import re

from convertor.errors import DurationParsingFailed

_TIMESTAMP = r"(-?)(\d+):(\d{1,2}):(\d{1,2}(?:\.\d+)?)"
_DURATION_RE = re.compile(r"Duration:\s*" + _TIMESTAMP)
_TIME_RE = re.compile(r"time=\s*" + _TIMESTAMP)


# ── Pure functions ────────────────────────────────────────────────────────────

def parse_duration(probe_output: str) -> float:
    """
    Return the total duration, in seconds, reported by an ffmpeg probe.

    Raises:
        DurationParsingFailed – no line carries a ``Duration: HH:MM:SS`` value
                                (``Duration: N/A`` counts as missing)
    """
    for line in probe_output.splitlines():
        match = _DURATION_RE.search(line)
        if match:
            return _match_to_seconds(match)
    raise DurationParsingFailed()


def parse_progress(chunk: str, total_duration: float) -> float | None:
    """
    Return the fraction (0.0 – 1.0) of *total_duration* reached according
    to the last ``time=`` field in *chunk*, or None if the chunk carries no
    timestamp or the duration is unusable.
    """
    if total_duration <= 0:
        return None

    last = None
    for last in _TIME_RE.finditer(chunk):
        pass
    if last is None:
        return None

    elapsed = _match_to_seconds(last)
    return min(max(elapsed / total_duration, 0.0), 1.0)


def _match_to_seconds(match: re.Match) -> float:
    sign, h, m, s = match.groups()
    seconds = int(h) * 3600 + int(m) * 60 + float(s)
    return -seconds if sign else seconds


# ── Streaming helper ──────────────────────────────────────────────────────────

class ProgressTracker:
    """
    Feeds raw stderr chunks through parse_progress.

    Chunks are not line aligned: a multibyte character or a ``time=`` field
    can be cut in half. The tracker decodes incrementally and only parses
    text up to the last line terminator, holding the rest back until the
    next chunk completes it. Reported values never move backwards within
    one run.
    """

    MAX_TAIL = 4096

    def __init__(self, total_duration: float):
        self.total_duration = total_duration
        self.fraction = 0.0
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._tail = ""

    def feed(self, chunk: bytes) -> float | None:
        """Return the new fraction if this chunk advanced it, else None."""
        text = self._tail + self._decoder.decode(chunk)
        cut = max(text.rfind("\r"), text.rfind("\n"))
        complete, self._tail = text[:cut + 1], text[cut + 1:][-self.MAX_TAIL:]

        fraction = parse_progress(complete, self.total_duration)
        if fraction is None or fraction <= self.fraction:
            return None
        self.fraction = fraction
        return fraction
