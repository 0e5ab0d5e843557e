"""Frame decoding utilities using ffmpeg/ffprobe."""

from __future__ import annotations

import io
import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from PIL import Image

from video_thumbnails.errors import DecodeFailure, VideoNotPlayable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VideoHandle:
    """An opened, queryable video source."""

    source: str
    duration: float
    playable: bool
    width: int = 0
    height: int = 0
    codec: str = ""


def _parse_seconds(value: Any) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    return seconds if seconds > 0 else 0.0


class FrameDecoder:
    """Opens videos with ffprobe and decodes single frames with ffmpeg.

    With both tolerances at zero (the default) ffmpeg seeks accurately and
    returns the frame at the requested time. Any non-zero tolerance allows
    ffmpeg to snap to the nearest keyframe instead, which is much faster.
    """

    def __init__(
        self,
        ffmpeg: str = "ffmpeg",
        ffprobe: str = "ffprobe",
        tolerance_before: float = 0.0,
        tolerance_after: float = 0.0,
    ) -> None:
        if tolerance_before < 0 or tolerance_after < 0:
            raise ValueError("tolerances must be >= 0")
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe
        self.tolerance_before = tolerance_before
        self.tolerance_after = tolerance_after

    @property
    def exact(self) -> bool:
        return self.tolerance_before == 0 and self.tolerance_after == 0

    def _probe(self, source: str) -> Dict[str, Any]:
        cmd = [
            self.ffprobe,
            "-v",
            "error",
            "-show_format",
            "-show_streams",
            "-of",
            "json",
            source,
        ]
        result = subprocess.run(cmd, check=False, capture_output=True, text=True)
        if result.returncode != 0:
            detail = (result.stderr or "").strip().splitlines()
            raise VideoNotPlayable(
                f"ffprobe could not read {source}: {detail[-1] if detail else f'exit {result.returncode}'}"
            )
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise VideoNotPlayable(f"ffprobe returned unreadable output for {source}") from exc

    def open(self, source: str) -> VideoHandle:
        """Probe ``source`` and describe it as a :class:`VideoHandle`.

        Raises FileNotFoundError when ffprobe itself is missing and
        VideoNotPlayable when ffprobe rejects the source.
        """

        data = self._probe(source)
        streams = [s for s in data.get("streams", []) if s.get("codec_type") == "video"]
        video = streams[0] if streams else {}

        duration = _parse_seconds(data.get("format", {}).get("duration"))
        if not duration and video:
            duration = _parse_seconds(video.get("duration"))

        handle = VideoHandle(
            source=source,
            duration=duration,
            playable=bool(video) and duration > 0,
            width=int(video.get("width") or 0),
            height=int(video.get("height") or 0),
            codec=str(video.get("codec_name") or ""),
        )
        logger.debug("Probed %s: %s", source, handle)
        return handle

    def _decode_cmd(self, source: str, timestamp: float) -> List[str]:
        cmd = [self.ffmpeg, "-v", "error"]
        if not self.exact:
            cmd.append("-noaccurate_seek")
        cmd += [
            "-ss",
            f"{timestamp:.3f}",
            "-i",
            source,
            "-frames:v",
            "1",
            "-f",
            "image2pipe",
            "-vcodec",
            "png",
            "pipe:1",
        ]
        return cmd

    def decode_frame(self, source: str, timestamp: float) -> Image.Image:
        """Decode the frame at ``timestamp`` seconds into a Pillow image."""

        cmd = self._decode_cmd(source, timestamp)
        try:
            result = subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as exc:
            raise DecodeFailure(f"ffmpeg not found: {self.ffmpeg}") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode("utf-8", "replace").strip()
            raise DecodeFailure(f"ffmpeg failed at {timestamp:.3f}s: {stderr or exc}") from exc

        if not result.stdout:
            # ffmpeg exits 0 with no output when seeking past the last frame
            raise DecodeFailure(f"No frame at {timestamp:.3f}s")
        try:
            image = Image.open(io.BytesIO(result.stdout))
            image.load()
        except Exception as exc:  # noqa: BLE001
            raise DecodeFailure(f"Unreadable frame data at {timestamp:.3f}s: {exc}") from exc
        return image

    def decode_frames(
        self, source: str, timestamps: Iterable[float]
    ) -> List[Tuple[float, Image.Image]]:
        """Decode each timestamp in order, skipping ones that fail."""

        decoded: List[Tuple[float, Image.Image]] = []
        for ts in timestamps:
            try:
                decoded.append((ts, self.decode_frame(source, ts)))
            except DecodeFailure as exc:
                logger.warning("Skipping frame: %s", exc)
                continue
        return decoded
