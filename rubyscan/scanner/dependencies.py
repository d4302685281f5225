"""Dependency normalization, scope validity, and per-unit deduplication."""

from __future__ import annotations

from typing import Iterable

import structlog

from rubyscan.scanner.models import DEV_GROUPS, DependencyDeclaration

log = structlog.get_logger("rubyscan.scanner")


def normalize(raw: Iterable[DependencyDeclaration], path: str) -> list[DependencyDeclaration]:
    """Tag each declaration with the path of the file that declared it."""
    return [dep.tagged(path) for dep in raw]


def is_valid(dep: DependencyDeclaration) -> bool:
    """Runtime dependencies are valid; development type or dev/test groups are not.

    For a gemspec the type is ``runtime`` or ``development``; for a Gemfile
    the groups are usually ``test`` or ``development``.
    """
    if dep.type == "development":
        return False
    return not (dep.groups & DEV_GROUPS)


def dedupe_and_filter(
    declarations: Iterable[DependencyDeclaration],
    manifest_names: set[str] | frozenset[str],
) -> list[DependencyDeclaration]:
    """Keep one declaration per name, dropping self-references and dev/test names.

    ``declarations`` is the manifest's list followed by the companion file's,
    so the manifest declaration wins ties. A single development or test
    declaration of a name rejects that name for the whole unit.
    """
    groups: dict[str, list[DependencyDeclaration]] = {}
    for dep in declarations:
        groups.setdefault(dep.name, []).append(dep)

    kept: list[DependencyDeclaration] = []
    for name, members in groups.items():
        if name in manifest_names:
            log.debug("deps.self_reference_dropped", name=name)
            continue
        rejected = next((dep for dep in members if not is_valid(dep)), None)
        if rejected is not None:
            log.debug("deps.dev_scoped_dropped", name=name, path=rejected.path)
            continue
        kept.append(members[0])
    return kept
