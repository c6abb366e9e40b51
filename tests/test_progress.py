import pytest

from convertor.errors import DurationParsingFailed
from convertor.progress import ProgressTracker, parse_duration, parse_progress

PROBE_OUTPUT = """\
Input #0, flac, from 'song.flac':
  Metadata:
    TITLE           : Song
  Duration: 00:01:30.50, start: 0.000000, bitrate: 921 kb/s
  Stream #0:0: Audio: flac, 44100 Hz, stereo, s16
At least one output file must be specified
"""


class TestParseDuration:

    def test_reads_duration_line(self):
        assert parse_duration(PROBE_OUTPUT) == pytest.approx(90.5)

    def test_inline_fragment(self):
        assert parse_duration("... Duration: 00:01:30.50, ...") == pytest.approx(90.5)

    def test_hours_and_whole_seconds(self):
        assert parse_duration("Duration: 01:02:03, start: 0") == pytest.approx(3723.0)

    def test_missing_duration_fails(self):
        with pytest.raises(DurationParsingFailed):
            parse_duration("no duration here")

    def test_not_available_counts_as_missing(self):
        with pytest.raises(DurationParsingFailed):
            parse_duration("  Duration: N/A, bitrate: N/A\n")

    def test_error_message(self):
        with pytest.raises(DurationParsingFailed, match="Could not parse media duration"):
            parse_duration("")


class TestParseProgress:

    def test_half_way(self):
        chunk = "frame=10 time=00:00:45.00 bitrate=128.0kbits/s"
        assert parse_progress(chunk, 90.0) == pytest.approx(0.5)

    def test_zero_duration_yields_nothing(self):
        assert parse_progress("time=00:00:45.00", 0) is None

    def test_negative_duration_yields_nothing(self):
        assert parse_progress("time=00:00:45.00", -3.0) is None

    def test_clamps_to_one(self):
        assert parse_progress("time=00:02:00.00", 90.0) == 1.0

    def test_negative_time_clamps_to_zero(self):
        assert parse_progress("time=-00:00:00.02 bitrate=N/A", 90.0) == 0.0

    def test_chunk_without_timestamp(self):
        assert parse_progress("Stream mapping:\n  Stream #0:0 -> #0:0 (flac -> aac)\n", 90.0) is None

    def test_time_not_available(self):
        assert parse_progress("size=N/A time=N/A bitrate=N/A", 90.0) is None

    def test_last_carriage_return_segment_wins(self):
        chunk = "size=1kB time=00:00:09.00 bitrate=1\rsize=2kB time=00:00:18.00 bitrate=1\r"
        assert parse_progress(chunk, 90.0) == pytest.approx(0.2)


class TestProgressTracker:

    def test_field_split_across_chunks(self):
        tracker = ProgressTracker(90.0)
        assert tracker.feed(b"size=1kB tim") is None
        assert tracker.feed(b"e=00:00:4") is None
        assert tracker.feed(b"5.00 bitrate=1\r") == pytest.approx(0.5)

    def test_never_moves_backwards(self):
        tracker = ProgressTracker(90.0)
        assert tracker.feed(b"time=00:00:45.00\r") == pytest.approx(0.5)
        assert tracker.feed(b"time=00:00:30.00\r") is None
        assert tracker.fraction == pytest.approx(0.5)
        assert tracker.feed(b"time=00:01:30.00\r") == pytest.approx(1.0)

    def test_multibyte_character_split(self):
        tracker = ProgressTracker(90.0)
        encoded = "Ÿ time=00:00:45.00\r".encode("utf-8")
        assert tracker.feed(encoded[:1]) is None
        assert tracker.feed(encoded[1:]) == pytest.approx(0.5)

    def test_unknown_duration(self):
        tracker = ProgressTracker(0.0)
        assert tracker.feed(b"time=00:00:45.00\r") is None
