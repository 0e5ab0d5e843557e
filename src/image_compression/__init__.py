"""Package for thumbnail compression components."""

from .compressor import DEFAULT_QUALITY, MAX_DIMENSION, compress, compress_batch

__all__ = ["compress", "compress_batch", "DEFAULT_QUALITY", "MAX_DIMENSION"]
