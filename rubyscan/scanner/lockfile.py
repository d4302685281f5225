"""Lock resolver: substitute locked versions for declared requirements."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import structlog

from rubyscan.exceptions import LockfileError
from rubyscan.scanner.models import DependencyDeclaration, LockedVersionTable, ResolvedDependency
from rubyscan.scanner.parsers import gemfile_lock

log = structlog.get_logger("rubyscan.scanner")

LOCKFILE_NAMES = ("Gemfile.lock", "gems.locked")


def find_lockfile(directory: Path) -> Path | None:
    for name in LOCKFILE_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_locked_versions(directory: Path) -> LockedVersionTable:
    """Locked versions for ``directory``; an empty table when absent or unreadable."""
    path = find_lockfile(directory)
    if path is None:
        return LockedVersionTable()
    try:
        entries = gemfile_lock.parse(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, LockfileError) as exc:
        log.warning("lockfile.unreadable", path=str(path), error=str(exc))
        return LockedVersionTable()
    return LockedVersionTable(entries, source=str(path))


def resolve(
    dependencies: Iterable[DependencyDeclaration], table: LockedVersionTable
) -> list[ResolvedDependency]:
    """Locked version when the table has the name, the declared requirement otherwise.

    Sorted by name so the output is identical between runs.
    """
    resolved = [
        ResolvedDependency(
            name=dep.name,
            version=table.get(dep.name, dep.requirement),
            path=dep.path,
        )
        for dep in dependencies
    ]
    return sorted(resolved, key=lambda dep: dep.name)
