"""Unit assembler: build discovery units and serialize them."""

from __future__ import annotations

import json
from typing import Iterable

from rubyscan.scanner.models import (
    UNIT_TYPE_GEM,
    UNIT_TYPE_SCRIPTS,
    DiscoveryUnit,
    ManifestRecord,
    ResolvedDependency,
)

# Appended to every gem unit's Files: the gem's own directory is authoritative
# over any broader script sweep.
CURRENT_DIR = "."

SCRIPTS_UNIT_NAME = "."
SCRIPTS_DATA_NAME = "rubyscripts"


def build_gem_unit(record: ManifestRecord, scripts: Iterable[str], unit_dir: str) -> DiscoveryUnit:
    """``scripts`` are root-relative paths of the .rb files co-located with the gem."""
    return DiscoveryUnit(
        name=record.name,
        version=record.version,
        type=UNIT_TYPE_GEM,
        dir=unit_dir,
        licenses=tuple(record.licenses) if record.licenses is not None else None,
        license=record.license,
        files=(*sorted(scripts), CURRENT_DIR),
        dependencies=tuple(record.resolved),
        data=record.data(),
    )


def build_scripts_unit(
    scripts: Iterable[str], dependencies: Iterable[ResolvedDependency]
) -> DiscoveryUnit:
    files = sorted(scripts)
    return DiscoveryUnit(
        name=SCRIPTS_UNIT_NAME,
        type=UNIT_TYPE_SCRIPTS,
        dir=CURRENT_DIR,
        files=tuple(files),
        dependencies=tuple(dependencies),
        data={"files": files, "name": SCRIPTS_DATA_NAME},
    )


def sort_units(units: Iterable[DiscoveryUnit]) -> list[DiscoveryUnit]:
    return sorted(units, key=lambda unit: unit.name)


def serialize(units: Iterable[DiscoveryUnit]) -> str:
    """Compact JSON array; callers pass units already sorted by name."""
    return json.dumps(
        [unit.to_dict() for unit in units],
        separators=(",", ":"),
        ensure_ascii=False,
    )
