"""Data models for the gem scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping

UNIT_TYPE_GEM = "rubygem"
UNIT_TYPE_SCRIPTS = "ruby"

DEV_GROUPS = frozenset({"development", "test"})


@dataclass(frozen=True)
class ScanContext:
    """Explicit stand-in for the working directory while a manifest is read.

    ``root`` is the scan root; ``manifest_dir`` is the directory of the
    manifest (or companion file) currently being processed.
    """

    root: Path
    manifest_dir: Path

    def relative(self, path: Path) -> str:
        """Root-relative POSIX path; the root itself is ``"."``."""
        rel = path.relative_to(self.root).as_posix()
        return rel or "."


@dataclass
class DependencyDeclaration:
    """A single declared dependency edge."""

    name: str
    requirement: str
    path: str = ""
    type: str = "runtime"  # "runtime" | "development"
    groups: frozenset[str] = frozenset()

    def tagged(self, path: str) -> DependencyDeclaration:
        return DependencyDeclaration(
            name=self.name,
            requirement=self.requirement,
            path=path,
            type=self.type,
            groups=self.groups,
        )


@dataclass(frozen=True)
class ResolvedDependency:
    """A dependency after lockfile lookup."""

    name: str
    version: str
    path: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version, "path": self.path}


@dataclass
class ManifestRecord:
    """One parsed gemspec (or decoded metadata.gz)."""

    name: str
    path: str
    version: str | None = None
    license: str | None = None
    licenses: list[str] | None = None
    dependencies: list[DependencyDeclaration] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    resolved: list[ResolvedDependency] = field(default_factory=list)

    def data(self) -> dict[str, Any]:
        """Raw manifest fields, as emitted in a unit's ``Data``."""
        out: dict[str, Any] = dict(self.extra)
        out["name"] = self.name
        if self.version is not None:
            out["version"] = self.version
        if self.license is not None:
            out["license"] = self.license
        if self.licenses is not None:
            out["licenses"] = list(self.licenses)
        if self.files:
            out["files"] = list(self.files)
        if self.dependencies:
            out["dependencies"] = [
                {"name": d.name, "requirement": d.requirement, "type": d.type}
                for d in self.dependencies
            ]
        return {k: out[k] for k in sorted(out)}


class LockedVersionTable(Mapping[str, str]):
    """Read-only name -> locked version view of one lockfile."""

    def __init__(self, entries: Mapping[str, str] | None = None, source: str | None = None):
        self._entries = dict(entries or {})
        self.source = source

    def __getitem__(self, name: str) -> str:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"LockedVersionTable({len(self._entries)} entries, source={self.source!r})"


@dataclass(frozen=True)
class DiscoveryUnit:
    """The externally visible result record."""

    name: str
    type: str
    dir: str
    files: tuple[str, ...]
    dependencies: tuple[ResolvedDependency, ...]
    data: Mapping[str, Any]
    version: str | None = None
    licenses: tuple[str, ...] | None = None
    license: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Version": self.version,
            "Type": self.type,
            "Dir": self.dir,
            "Licenses": list(self.licenses) if self.licenses is not None else None,
            "License": self.license,
            "Files": list(self.files),
            "Dependencies": [d.to_dict() for d in self.dependencies],
            "Data": dict(self.data),
            "Ops": {"depresolve": None, "graph": None},
        }
