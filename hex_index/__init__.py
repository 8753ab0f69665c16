"""hex-index: a personal reading library built from syndication feeds."""

__version__ = "0.1.0"
