"""CLI entry point for the video thumbnail toolchain."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List

from frame_sampling.frame_sampler import FrameDecoder
from frame_sampling.timestamps import SelectionPolicy

from . import __version__
from .config import Settings, load_env_file, validate_frame_count, validate_quality
from .errors import ThumbnailError, describe
from .pipeline import ThumbnailPipeline
from .sink import DirectorySink


def _frame_count(value: str) -> int:
    try:
        return validate_frame_count(int(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _quality(value: str) -> float:
    try:
        return validate_quality(float(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract preview thumbnails from a video")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("video", help="Path or URL of the video file")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in SelectionPolicy],
        default=SelectionPolicy.SMART.value,
        help="Frame selection policy (default: smart = first frame + 3 random)",
    )
    parser.add_argument(
        "--count",
        type=_frame_count,
        default=None,
        help="Number of frames for the random policy (1-20, default from VIDTHUMB_RANDOM_FRAMES or 5)",
    )
    parser.add_argument("--compress", action="store_true", help="Downscale and re-encode before saving")
    parser.add_argument(
        "--quality",
        type=_quality,
        default=None,
        help="Compression quality 0.1-1.0 (default from VIDTHUMB_QUALITY or 0.8)",
    )
    parser.add_argument("--out", type=Path, default=None, help="Directory for thumbnail_<n>.png files")
    parser.add_argument("--no-overwrite", action="store_true", help="Fail instead of replacing existing files")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible random timestamps")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: List[str] | None = None) -> int:
    # Load .env if present (ignored if values already in env)
    load_env_file()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        parser.error(str(exc))

    count = args.count or settings.random_frame_count
    quality = args.quality if args.quality is not None else settings.compression_quality
    out_dir = args.out or settings.output_dir

    decoder = FrameDecoder(ffmpeg=settings.ffmpeg, ffprobe=settings.ffprobe)
    rng = random.Random(args.seed) if args.seed is not None else None

    with ThumbnailPipeline(decoder=decoder, compression_quality=quality, rng=rng) as pipeline:
        try:
            print(f"[load] {args.video}")
            handle = pipeline.load(args.video)
            print(f"[load] duration {handle.duration:.2f}s, {handle.width}x{handle.height}")

            thumbs = pipeline.generate(args.policy, count=count)
            stamps = ", ".join(f"{t.timestamp:.2f}s" for t in thumbs)
            print(f"[generate] {len(thumbs)} frame(s) at {stamps}")

            if args.compress:
                compressed = pipeline.compress_all()
                print(f"[compress] {len(compressed)} image(s) at quality {pipeline.compression_quality:.1f}")
        except (ThumbnailError, OSError) as exc:
            print(f"Error: {describe(exc)}", file=sys.stderr)
            return 1

        sink = DirectorySink(out_dir, overwrite=not args.no_overwrite)
        errors = pipeline.save_all(sink)
        saved = len(pipeline.preferred_images()) - len(errors)
        print(f"[save] {saved} file(s) -> {out_dir}")
        for message in errors:
            print(f"Error: {message}", file=sys.stderr)
        return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
