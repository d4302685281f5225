"""Manifest and script discovery utilities."""

from __future__ import annotations

import os
from pathlib import Path

MANIFEST_SUFFIX = ".gemspec"
SCRIPT_SUFFIX = ".rb"

# Directory segments whose contents are never reported (case-sensitive).
EXCLUDED_SEGMENTS = frozenset({"spec", "specs", "test", "tests"})


def _walk(directory: Path, suffix: str) -> list[Path]:
    """Collect files ending in ``suffix``, pruning test/spec directories."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_SEGMENTS)
        for name in filenames:
            if name.endswith(suffix):
                path = Path(dirpath) / name
                if path.is_file():
                    found.append(path)
    return sorted(found)


def find_manifests(root: Path) -> list[Path]:
    """Find ``*.gemspec`` files beneath root, sorted by path."""
    return _walk(root, MANIFEST_SUFFIX)


def find_scripts(directory: Path) -> list[Path]:
    """Find ``*.rb`` files beneath directory, sorted by path."""
    return _walk(directory, SCRIPT_SUFFIX)
