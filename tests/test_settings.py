import json
from pathlib import Path

from convertor.models import AudioQuality, OutputFormat
from convertor.settings import Settings, load_settings, save_settings


def test_defaults():
    settings = Settings()
    assert settings.default_output_format is OutputFormat.AAC
    assert settings.audio_quality is AudioQuality.HIGH
    assert settings.max_concurrent_tasks == 4
    assert settings.output_directory is None


def test_concurrency_is_clamped():
    assert Settings(max_concurrent_tasks=0).max_concurrent_tasks == 1
    assert Settings(max_concurrent_tasks=64).max_concurrent_tasks == 16


def test_round_trip(tmp_path):
    path = tmp_path / "settings.json"
    original = Settings(
        default_output_format=OutputFormat.ALAC,
        audio_quality=AudioQuality.LOSSLESS,
        max_concurrent_tasks=8,
        output_directory=tmp_path / "out",
    )
    save_settings(original, path)
    assert load_settings(path) == original


def test_missing_file_gives_defaults(tmp_path):
    assert load_settings(tmp_path / "nope.json") == Settings()


def test_malformed_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_settings(path) == Settings()


def test_bad_fields_fall_back_individually(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "default_output_format": "mp3",
        "audio_quality": "very-high",
        "max_concurrent_tasks": "lots",
        "output_directory": "/srv/music",
    }), encoding="utf-8")

    settings = load_settings(path)
    assert settings.default_output_format is OutputFormat.AAC
    assert settings.audio_quality is AudioQuality.VERY_HIGH
    assert settings.max_concurrent_tasks == 4
    assert settings.output_directory == Path("/srv/music")


def test_quality_bitrates():
    assert [q.bitrate_kbps for q in AudioQuality] == [96, 128, 192, 256, 0]
