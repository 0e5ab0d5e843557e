"""Video thumbnail extraction and compression toolchain."""

__version__ = "0.1.0"
