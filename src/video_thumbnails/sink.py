"""Source resolution and image persistence."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List

from PIL import Image

from .errors import PersistenceFailure


logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset(
    {"mp4", "mov", "avi", "mkv", "m4v", "flv", "wmv", "webm", "mpg", "mpeg", "3gp"}
)
THUMBNAIL_EXT = "png"

_URL_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def thumbnail_name(index: int) -> str:
    """File name for the ``index``-th (1-based) thumbnail."""

    return f"thumbnail_{index}.{THUMBNAIL_EXT}"


class SourceResolver:
    """Turn user input (path or URL) into a source string for the decoder."""

    def resolve(self, raw: str | Path) -> str:
        text = str(raw).strip()
        if _URL_RE.match(text):
            return text

        path = Path(text).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(2, "Video file not found", str(path))
        if not path.is_file():
            raise IsADirectoryError(21, "Not a file", str(path))

        ext = path.suffix.lower().lstrip(".")
        if ext and ext not in VIDEO_EXTENSIONS:
            logger.warning("Unrecognised video extension .%s; letting ffmpeg sniff %s", ext, path.name)
        return str(path)


class DirectorySink:
    """Writes images as PNG files inside one directory."""

    def __init__(self, directory: Path | str, overwrite: bool = True) -> None:
        self.directory = Path(directory)
        self.overwrite = overwrite

    def _write(self, image: Image.Image, out_path: Path) -> None:
        if out_path.exists() and not self.overwrite:
            raise PersistenceFailure(f"{out_path} already exists")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            image.save(out_path, format="PNG")
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(f"Could not save {out_path.name}: {exc}") from exc

    def save(self, image: Image.Image, suggested_name: str) -> str | None:
        """Save ``image``; return an error message instead of raising."""

        out_path = self.directory / Path(suggested_name).name
        try:
            self._write(image, out_path)
        except PersistenceFailure as exc:
            logger.error("%s", exc)
            return str(exc)
        logger.info("Saved %s", out_path)
        return None


def save_all(images: Iterable[Image.Image], sink: DirectorySink) -> List[str]:
    """Save each image as thumbnail_<n>.png; return the error messages."""

    errors: List[str] = []
    for idx, image in enumerate(images, start=1):
        error = sink.save(image, thumbnail_name(idx))
        if error:
            errors.append(error)
    return errors
