"""Scan pipeline: manifests, scripts, dependencies, lockfiles, units."""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from rubyscan.scanner.assembler import build_gem_unit, build_scripts_unit, sort_units
from rubyscan.scanner.companion import find_companion, load_companion
from rubyscan.scanner.dependencies import dedupe_and_filter, normalize
from rubyscan.scanner.discovery import find_manifests, find_scripts
from rubyscan.scanner.loader import ManifestEngine, load_manifests
from rubyscan.scanner.lockfile import load_locked_versions, resolve
from rubyscan.scanner.models import DependencyDeclaration, DiscoveryUnit, ScanContext
from rubyscan.scanner.secondary import SECONDARY_MANIFEST, load_secondary_manifest

log = structlog.get_logger("rubyscan.scanner")

# Scanning Ruby's own repository would turn the whole stdlib into one unit.
DEFAULT_STDLIB_REPO = "github.com/ruby/ruby"


def stdlib_repo() -> str:
    return os.environ.get("RUBYSCAN_STDLIB_REPO", DEFAULT_STDLIB_REPO)


def scan(
    root: Path,
    repo: str | None = None,
    engine: ManifestEngine | None = None,
) -> list[DiscoveryUnit]:
    """Scan a local directory tree and return its units sorted by name.

    The process working directory is neither read nor changed; every path
    is resolved against ``root``.
    """
    root = root.resolve()
    manifests = find_manifests(root)
    records = load_manifests(root, engine, manifests)
    # metadata.gz stands in only for a tree with no gemspec at all, not one whose
    # gemspecs were all skipped.
    if not manifests:
        secondary = load_secondary_manifest(root)
        if secondary is not None:
            records[root / SECONDARY_MANIFEST] = secondary

    manifest_names = {record.name for record in records.values()}
    units: list[DiscoveryUnit] = []
    claimed: set[str] = set()
    covered: set[str] = set(manifest_names)

    for manifest_path, record in records.items():
        context = ScanContext(root=root, manifest_dir=manifest_path.parent)
        record.dependencies = normalize(record.dependencies, record.path)
        declared = record.dependencies + _companion_dependencies(context)
        kept = dedupe_and_filter(declared, manifest_names)
        record.resolved = resolve(kept, load_locked_versions(context.manifest_dir))

        scripts = [context.relative(p) for p in find_scripts(context.manifest_dir)]
        claimed.update(scripts)
        covered.update(dep.name for dep in record.resolved)
        units.append(build_gem_unit(record, scripts, context.relative(context.manifest_dir)))
        log.debug(
            "scanner.gem_unit",
            name=record.name,
            path=record.path,
            dependencies=len(record.resolved),
            files=len(scripts),
        )

    if repo == stdlib_repo():
        log.info("scanner.stdlib_scripts_skipped", repo=repo)
    else:
        context = ScanContext(root=root, manifest_dir=root)
        orphans = [
            rel
            for rel in (context.relative(p) for p in find_scripts(root))
            if rel not in claimed
        ]
        if orphans:
            kept = [
                dep
                for dep in dedupe_and_filter(_companion_dependencies(context), manifest_names)
                if dep.name not in covered
            ]
            units.append(build_scripts_unit(orphans, resolve(kept, load_locked_versions(root))))
            log.debug("scanner.scripts_unit", files=len(orphans), dependencies=len(kept))

    return sort_units(units)


def _companion_dependencies(context: ScanContext) -> list[DependencyDeclaration]:
    companion = find_companion(context.manifest_dir)
    if companion is None:
        return []
    return normalize(load_companion(companion), context.relative(companion))
