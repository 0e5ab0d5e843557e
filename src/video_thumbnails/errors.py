"""Error types raised across the thumbnail toolchain."""

from __future__ import annotations


class ThumbnailError(RuntimeError):
    """Base class; ``code`` is a stable tag for callers and logs."""

    code = "thumbnail_error"
    default_message = "Thumbnail processing failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NoVideoLoaded(ThumbnailError):
    code = "no_video_loaded"
    default_message = "No video loaded"


class VideoNotPlayable(ThumbnailError):
    code = "video_not_playable"
    default_message = "Video cannot be played"


class InvalidDuration(ThumbnailError):
    code = "invalid_duration"
    default_message = "Video duration is invalid"


class DecodeFailure(ThumbnailError):
    code = "decode_failure"
    default_message = "Failed to decode frame"


class EncodeFailure(ThumbnailError):
    code = "encode_failure"
    default_message = "Failed to encode image"


class RoundTripDecodeFailure(ThumbnailError):
    code = "round_trip_decode_failure"
    default_message = "Failed to decode re-encoded image"


class PersistenceFailure(ThumbnailError):
    code = "persistence_failure"
    default_message = "Failed to save image"


class PipelineBusy(ThumbnailError):
    code = "pipeline_busy"
    default_message = "Another operation is already running"


def describe(exc: BaseException) -> str:
    """Return a user-facing line for ``exc``."""

    if isinstance(exc, ThumbnailError):
        return f"{exc} [{exc.code}]"
    if isinstance(exc, FileNotFoundError):
        return f"File not found: {exc.filename or exc}"
    return f"{type(exc).__name__}: {exc}"
