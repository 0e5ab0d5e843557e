import os
from pathlib import Path

import pytest

from video_thumbnails.config import Settings, load_env_file, validate_frame_count, validate_quality


def test_defaults():
    settings = Settings.from_env({})
    assert settings.random_frame_count == 5
    assert settings.compression_quality == 0.8
    assert settings.ffmpeg == "ffmpeg"
    assert settings.output_dir == Path("artifacts/thumbnails")


def test_from_env_overrides():
    settings = Settings.from_env(
        {
            "VIDTHUMB_RANDOM_FRAMES": "12",
            "VIDTHUMB_QUALITY": "0.34",
            "VIDTHUMB_FFMPEG": "/opt/ffmpeg",
            "VIDTHUMB_OUTPUT_DIR": "/tmp/thumbs",
        }
    )
    assert settings.random_frame_count == 12
    assert settings.compression_quality == 0.3
    assert settings.ffmpeg == "/opt/ffmpeg"
    assert settings.output_dir == Path("/tmp/thumbs")


@pytest.mark.parametrize(
    "env",
    [
        {"VIDTHUMB_RANDOM_FRAMES": "0"},
        {"VIDTHUMB_RANDOM_FRAMES": "21"},
        {"VIDTHUMB_RANDOM_FRAMES": "many"},
        {"VIDTHUMB_QUALITY": "0.05"},
        {"VIDTHUMB_QUALITY": "1.2"},
    ],
)
def test_from_env_rejects_out_of_range(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)


def test_validators():
    assert validate_frame_count(1) == 1
    assert validate_frame_count(20) == 20
    with pytest.raises(ValueError):
        validate_frame_count(True)
    assert validate_quality(0.1) == 0.1
    assert validate_quality(1) == 1.0
    assert validate_quality(0.66) == 0.7


def test_load_env_file_keeps_existing_values(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("# comment\nVIDTHUMB_QUALITY=0.5\nVIDTHUMB_FFMPEG = /usr/local/bin/ffmpeg\nbroken line\n")
    monkeypatch.setenv("VIDTHUMB_QUALITY", "0.9")
    monkeypatch.setenv("VIDTHUMB_FFMPEG", "")
    monkeypatch.delenv("VIDTHUMB_FFMPEG")
    load_env_file([env_file, tmp_path / "missing.env"])
    assert os.environ["VIDTHUMB_QUALITY"] == "0.9"
    assert os.environ["VIDTHUMB_FFMPEG"] == "/usr/local/bin/ffmpeg"
