"""Companion file (Gemfile) lookup and loading."""

from __future__ import annotations

from pathlib import Path

import structlog

from rubyscan.exceptions import CompanionFileError
from rubyscan.scanner.models import DependencyDeclaration
from rubyscan.scanner.parsers import gemfile

log = structlog.get_logger("rubyscan.scanner")

COMPANION_FILES = ("Gemfile", "gems.rb")


def find_companion(directory: Path) -> Path | None:
    for name in COMPANION_FILES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_companion(path: Path) -> list[DependencyDeclaration]:
    """Declared dependencies of a Gemfile, unfiltered; empty when unreadable."""
    try:
        return gemfile.parse(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, CompanionFileError) as exc:
        log.warning("companion.unreadable", path=str(path), error=str(exc))
        return []
