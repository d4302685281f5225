"""rubyscan: discover Ruby gems and loose scripts in a directory tree."""

__version__ = "0.1.0"
