import io

import pytest
from PIL import Image, ImageChops, ImageStat

from image_compression import compressor
from image_compression.compressor import bounded_size, compress, compress_batch, reencode
from video_thumbnails.errors import EncodeFailure, RoundTripDecodeFailure


def _noise(size=(64, 48)) -> Image.Image:
    return Image.effect_noise(size, 60).convert("RGB")


@pytest.mark.parametrize(
    "size, expected",
    [
        ((1920, 1080), (1920, 1080)),
        ((640, 480), (640, 480)),
        ((4000, 2000), (1920, 960)),
        ((2000, 4000), (960, 1920)),
        ((3000, 3000), (1920, 1920)),
        ((3840, 2160), (1920, 1080)),
        ((10000, 3), (1920, 1)),
    ],
)
def test_bounded_size(size, expected):
    assert bounded_size(*size) == expected


def test_scenario_4000x2000_at_half_quality():
    out = compress(Image.new("RGB", (4000, 2000), (10, 120, 30)), 0.5)
    assert out.size == (1920, 960)
    buf = io.BytesIO()
    out.save(buf, format="PNG")
    assert Image.open(io.BytesIO(buf.getvalue())).size == (1920, 960)


def test_small_image_keeps_dimensions_and_changes_pixels():
    src = _noise()
    out = compress(src, 0.1)
    assert out.size == src.size
    assert out is not src
    assert out.format == "JPEG"
    assert out.tobytes() != src.tobytes()


def test_tall_image_aspect_preserved():
    out = compress(Image.new("RGB", (1000, 2500)), 0.8)
    assert max(out.size) == 1920
    assert out.size[0] / out.size[1] == pytest.approx(1000 / 2500, abs=0.01)


def test_higher_quality_means_less_loss():
    src = _noise((200, 200))

    def loss(quality):
        diff = ImageChops.difference(src, reencode(src, quality))
        return sum(ImageStat.Stat(diff).mean)

    assert loss(1.0) < loss(0.1)


def test_rgba_and_palette_inputs_are_encoded():
    for mode in ("RGBA", "P", "L"):
        out = compress(Image.new(mode, (32, 32)), 0.8)
        assert out.mode == "RGB"


@pytest.mark.parametrize("quality", [0.0, -3, 1.5])
def test_out_of_range_quality_is_clamped(quality):
    assert compress(_noise(), quality).size == (64, 48)


def test_encode_failure_falls_back_to_resized(monkeypatch):
    def broken_save(self, *args, **kwargs):
        raise OSError("encoder missing")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    src = Image.new("RGB", (3840, 2160))
    with pytest.raises(EncodeFailure):
        reencode(src, 0.8)
    out = compress(src, 0.8)
    assert out.size == (1920, 1080)
    assert out.format is None


def test_round_trip_failure_falls_back_to_resized(monkeypatch):
    def broken_open(*args, **kwargs):
        raise OSError("cannot identify image file")

    monkeypatch.setattr(compressor.Image, "open", broken_open)
    src = _noise()
    with pytest.raises(RoundTripDecodeFailure):
        reencode(src, 0.8)
    assert compress(src, 0.8) is src


def test_batch_keeps_length_and_substitutes_originals():
    bad = object()
    images = [_noise(), bad, Image.new("RGB", (4000, 2000))]
    out = compress_batch(images, 0.8)
    assert len(out) == 3
    assert out[1] is bad
    assert out[0].size == (64, 48)
    assert out[2].size == (1920, 960)


def test_batch_of_nothing():
    assert compress_batch([], 0.5) == []
