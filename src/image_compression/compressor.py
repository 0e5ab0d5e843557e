"""Downscale and lossy re-encode thumbnails for distribution."""

from __future__ import annotations

import io
import logging
from typing import Iterable, List, Tuple

from PIL import Image

from video_thumbnails.errors import EncodeFailure, RoundTripDecodeFailure


logger = logging.getLogger(__name__)

MAX_DIMENSION = 1920
DEFAULT_QUALITY = 0.8
MIN_QUALITY = 0.1
MAX_QUALITY = 1.0


def bounded_size(width: int, height: int, max_dimension: int = MAX_DIMENSION) -> Tuple[int, int]:
    """Fit (width, height) inside ``max_dimension`` keeping aspect ratio. Never upscales."""

    if width <= max_dimension and height <= max_dimension:
        return width, height

    aspect_ratio = width / height
    if width > height:
        new_w, new_h = max_dimension, max_dimension / aspect_ratio
    else:
        new_w, new_h = max_dimension * aspect_ratio, max_dimension
    return max(1, round(new_w)), max(1, round(new_h))


def resize_to_bound(image: Image.Image, max_dimension: int = MAX_DIMENSION) -> Image.Image:
    size = bounded_size(*image.size, max_dimension=max_dimension)
    if size == image.size:
        return image
    return image.resize(size, Image.Resampling.LANCZOS)


def _clamp_quality(quality: float) -> float:
    return max(MIN_QUALITY, min(MAX_QUALITY, float(quality)))


def reencode(image: Image.Image, quality: float) -> Image.Image:
    """JPEG-encode ``image`` and decode the bytes back into a fresh image.

    Raises:
        EncodeFailure: the encoder rejected the image.
        RoundTripDecodeFailure: the encoded bytes could not be read back.
    """

    jpeg_quality = max(1, min(100, round(_clamp_quality(quality) * 100)))
    if image.mode != "RGB":
        image = image.convert("RGB")

    buf = io.BytesIO()
    try:
        image.save(buf, format="JPEG", quality=jpeg_quality)
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"JPEG encode failed: {exc}") from exc

    try:
        decoded = Image.open(io.BytesIO(buf.getvalue()))
        decoded.load()
    except (OSError, ValueError) as exc:
        raise RoundTripDecodeFailure(f"JPEG decode failed: {exc}") from exc
    return decoded


def compress(image: Image.Image, quality: float = DEFAULT_QUALITY) -> Image.Image:
    """Resize to the bound, then lossy round trip.

    Encoding problems fall back to the resized image rather than raising.
    """

    resized = resize_to_bound(image)
    try:
        return reencode(resized, quality)
    except (EncodeFailure, RoundTripDecodeFailure) as exc:
        logger.warning("Compression fell back to resized image: %s", exc)
        return resized


def compress_batch(images: Iterable[Image.Image], quality: float = DEFAULT_QUALITY) -> List[Image.Image]:
    """Compress every image; a failing image is replaced by its original."""

    result: List[Image.Image] = []
    for idx, image in enumerate(images):
        try:
            result.append(compress(image, quality))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Keeping original for image %d: %s", idx + 1, exc)
            result.append(image)
    return result
