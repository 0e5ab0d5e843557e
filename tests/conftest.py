from __future__ import annotations

import random
from typing import Dict, List, Set

import pytest
from PIL import Image

from frame_sampling.frame_sampler import FrameDecoder, VideoHandle
from video_thumbnails.errors import DecodeFailure
from video_thumbnails.pipeline import ThumbnailPipeline
from video_thumbnails.sink import SourceResolver


class FakeDecoder(FrameDecoder):
    """Decoder stand-in that serves solid-colour frames without ffmpeg."""

    def __init__(self, videos: Dict[str, VideoHandle] | None = None, size=(64, 36)) -> None:
        super().__init__()
        self.videos = videos or {}
        self.size = size
        self.fail_at: Set[float] = set()
        self.fail_all = False
        self.calls: List[float] = []

    def open(self, source: str) -> VideoHandle:
        if source not in self.videos:
            raise FileNotFoundError(2, "No such file", source)
        return self.videos[source]

    def decode_frame(self, source, timestamp):
        self.calls.append(timestamp)
        if self.fail_all or timestamp in self.fail_at:
            raise DecodeFailure(f"cannot decode {timestamp}")
        shade = int(timestamp * 10) % 256
        return Image.new("RGB", self.size, (shade, 100, 200))


class PassthroughResolver(SourceResolver):
    def resolve(self, raw):
        return str(raw)


@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder(
        {
            "ten.mp4": VideoHandle("ten.mp4", 10.0, True, 64, 36, "h264"),
            "other.mp4": VideoHandle("other.mp4", 4.0, True, 64, 36, "h264"),
            "empty.mp4": VideoHandle("empty.mp4", 0.0, False),
            "audio.m4a": VideoHandle("audio.m4a", 30.0, False),
        }
    )


@pytest.fixture
def pipeline(decoder):
    with ThumbnailPipeline(decoder=decoder, resolver=PassthroughResolver(), rng=random.Random(7)) as pipe:
        yield pipe
