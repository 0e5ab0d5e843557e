"""Settings for the thumbnail toolchain, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from image_compression.compressor import DEFAULT_QUALITY, MAX_QUALITY, MIN_QUALITY

MIN_RANDOM_FRAMES = 1
MAX_RANDOM_FRAMES = 20
DEFAULT_RANDOM_FRAMES = 5
DEFAULT_OUTPUT_DIR = Path("artifacts/thumbnails")


def load_env_file(candidates: Iterable[Path] | None = None) -> None:
    """Best-effort load VIDTHUMB_* style values from .env files.

    Checks the cwd .env and then HOME/.env. Values already in the
    environment are never overwritten.
    """

    if candidates is None:
        candidates = [Path.cwd() / ".env", Path.home() / ".env"]

    for path in candidates:
        if not path.exists():
            continue
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            if key in os.environ:
                continue
            os.environ[key] = value.strip()


def validate_frame_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValueError(f"random frame count must be an integer (got {count!r})")
    if not MIN_RANDOM_FRAMES <= count <= MAX_RANDOM_FRAMES:
        raise ValueError(
            f"random frame count must be between {MIN_RANDOM_FRAMES} and {MAX_RANDOM_FRAMES} (got {count})"
        )
    return count


def validate_quality(quality: float) -> float:
    """Check range and snap to the 0.1 step."""

    quality = float(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(f"compression quality must be between {MIN_QUALITY} and {MAX_QUALITY} (got {quality})")
    return round(quality, 1)


@dataclass
class Settings:
    random_frame_count: int = DEFAULT_RANDOM_FRAMES
    compression_quality: float = DEFAULT_QUALITY
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"
    output_dir: Path = DEFAULT_OUTPUT_DIR

    def __post_init__(self) -> None:
        self.random_frame_count = validate_frame_count(self.random_frame_count)
        self.compression_quality = validate_quality(self.compression_quality)
        self.output_dir = Path(self.output_dir)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        try:
            count = int(env.get("VIDTHUMB_RANDOM_FRAMES", DEFAULT_RANDOM_FRAMES))
            quality = float(env.get("VIDTHUMB_QUALITY", DEFAULT_QUALITY))
        except ValueError as exc:
            raise ValueError(f"Invalid VIDTHUMB_* setting: {exc}") from exc
        return cls(
            random_frame_count=count,
            compression_quality=quality,
            ffmpeg=env.get("VIDTHUMB_FFMPEG", "ffmpeg"),
            ffprobe=env.get("VIDTHUMB_FFPROBE", "ffprobe"),
            output_dir=Path(env.get("VIDTHUMB_OUTPUT_DIR", str(DEFAULT_OUTPUT_DIR))),
        )
