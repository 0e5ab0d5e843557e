"""Pipeline that loads a video, generates thumbnails, compresses and saves them."""

from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List

from PIL import Image

from frame_sampling.frame_sampler import FrameDecoder, VideoHandle
from frame_sampling.timestamps import SelectionPolicy, plan
from image_compression.compressor import DEFAULT_QUALITY, compress_batch

from .config import validate_quality
from .errors import DecodeFailure, NoVideoLoaded, PipelineBusy, VideoNotPlayable, describe
from .sink import DirectorySink, SourceResolver, save_all


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thumbnail:
    timestamp: float
    image: Image.Image


class ThumbnailPipeline:
    """Single owner of the loaded video and its thumbnails.

    Only one of load/generate/compress may run at a time; a second call
    while busy raises PipelineBusy. Thumbnail lists are always replaced
    whole, never patched in place.
    """

    def __init__(
        self,
        decoder: FrameDecoder | None = None,
        resolver: SourceResolver | None = None,
        compression_quality: float = DEFAULT_QUALITY,
        rng: random.Random | None = None,
    ) -> None:
        self.decoder = decoder or FrameDecoder()
        if not self.decoder.exact:
            raise ValueError("ThumbnailPipeline needs a zero-tolerance decoder")
        self.resolver = resolver or SourceResolver()
        self.compression_quality = validate_quality(compression_quality)
        self.rng = rng or random.Random()

        self.handle: VideoHandle | None = None
        self.thumbnails: List[Thumbnail] = []
        self.compressed: List[Image.Image] = []
        self.error_message: str | None = None

        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="thumb-compress")

    # -- state helpers -------------------------------------------------
    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _begin(self, operation: str) -> None:
        if not self._lock.acquire(blocking=False):
            raise PipelineBusy(f"Cannot {operation}: another operation is running")

    def _fail(self, exc: BaseException) -> None:
        self.error_message = describe(exc)
        logger.error("%s", self.error_message)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "ThumbnailPipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- operations ----------------------------------------------------
    def load(self, source) -> VideoHandle:
        """Open ``source`` and make it the current video.

        On failure the previously loaded video and thumbnails are kept.
        """

        self._begin("load")
        try:
            self.error_message = None
            resolved = self.resolver.resolve(source)
            handle = self.decoder.open(resolved)
            if not handle.playable:
                raise VideoNotPlayable(f"{resolved} has no playable video stream")
            self.handle = handle
            self.thumbnails = []
            self.compressed = []
            logger.info("Loaded %s (%.2fs, %dx%d)", resolved, handle.duration, handle.width, handle.height)
            return handle
        except Exception as exc:
            self._fail(exc)
            raise
        finally:
            self._lock.release()

    def generate(self, policy: SelectionPolicy | str, count: int | None = None) -> List[Thumbnail]:
        """Sample thumbnails from the loaded video according to ``policy``."""

        self._begin("generate")
        try:
            if self.handle is None:
                raise NoVideoLoaded()
            policy = SelectionPolicy(policy)
            handle = self.handle
            times = plan(policy, handle.duration, count=count, rng=self.rng)
            logger.info("Sampling %d frame(s) with policy %s", len(times), policy.value)

            if policy is SelectionPolicy.FIRST_FRAME:
                frames = [(ts, self.decoder.decode_frame(handle.source, ts)) for ts in times]
            else:
                frames = self.decoder.decode_frames(handle.source, times)
                if not frames:
                    raise DecodeFailure(f"None of the {len(times)} requested frames could be decoded")

            self.thumbnails = [Thumbnail(ts, image) for ts, image in frames]
            self.compressed = []
            self.error_message = None
            return list(self.thumbnails)
        except Exception as exc:
            self._fail(exc)
            raise
        finally:
            self._lock.release()

    def compress_all_async(self, quality: float | None = None) -> Future:
        """Compress the current thumbnails on the background worker.

        The returned future resolves to the new compressed list once it
        has been stored on the pipeline.
        """

        self._begin("compress")
        try:
            quality = self.compression_quality if quality is None else validate_quality(quality)
            images = [t.image for t in self.thumbnails]
            job = self._executor.submit(compress_batch, images, quality)
            self.compression_quality = quality
        except Exception as exc:
            self._fail(exc)
            self._lock.release()
            raise

        result: Future = Future()

        def _store(done: Future) -> None:
            try:
                compressed = done.result()
                self.compressed = compressed
                self.error_message = None
                logger.info("Compressed %d thumbnail(s) at quality %.1f", len(compressed), self.compression_quality)
            except Exception as exc:  # noqa: BLE001
                self._fail(exc)
                self._lock.release()
                result.set_exception(exc)
                return
            self._lock.release()
            result.set_result(list(compressed))

        job.add_done_callback(_store)
        return result

    def compress_all(self, quality: float | None = None) -> List[Image.Image]:
        return self.compress_all_async(quality).result()

    def preferred_images(self) -> List[Image.Image]:
        if self.compressed:
            return list(self.compressed)
        return [t.image for t in self.thumbnails]

    def save_all(self, sink: DirectorySink) -> List[str]:
        """Persist the preferred image set; returns error messages."""

        errors = save_all(self.preferred_images(), sink)
        if errors:
            self.error_message = errors[-1]
        return errors
