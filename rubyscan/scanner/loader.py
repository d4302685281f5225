"""Manifest loader: strict gemspec parse with a pattern-based fallback."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from rubyscan.exceptions import ManifestParseError
from rubyscan.scanner.discovery import find_manifests
from rubyscan.scanner.models import ManifestRecord, ScanContext
from rubyscan.scanner.parsers.gemspec import GemspecParser

log = structlog.get_logger("rubyscan.scanner")

# Fields that never reach the output: tool-version markers and the build date,
# which would make the output differ between otherwise identical checkouts.
_STRIPPED_FIELDS = ("rubygems_version", "specification_version", "date")

# The two call shapes the fallback extracts: spec.add_runtime_dependency / spec.add_dependency
_FALLBACK_CALL_RE = re.compile(
    r"^\s*[A-Za-z_][A-Za-z0-9_]*\.(add_runtime_dependency|add_dependency)\b(.*)$"
)


@runtime_checkable
class ManifestEngine(Protocol):
    """Interface of the strict manifest reader."""

    def load(self, path: Path, content: str, context: ScanContext) -> ManifestRecord: ...


def load_manifests(
    root: Path,
    engine: ManifestEngine | None = None,
    manifests: list[Path] | None = None,
) -> dict[Path, ManifestRecord]:
    """Parse every gemspec under root; unreadable ones are skipped with a warning.

    ``manifests`` overrides discovery when the caller has already walked the tree.
    """
    engine = engine or GemspecParser()
    if manifests is None:
        manifests = find_manifests(root)
    records: dict[Path, ManifestRecord] = {}
    for manifest in manifests:
        context = ScanContext(root=root, manifest_dir=manifest.parent)
        record = load_manifest(manifest, context, engine)
        if record is not None:
            records[manifest] = record
    return records


def load_manifest(
    path: Path, context: ScanContext, engine: ManifestEngine
) -> ManifestRecord | None:
    rel_path = context.relative(path)
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        log.warning("loader.manifest_unreadable", path=rel_path, error=str(exc))
        return None

    try:
        return normalize_record(engine.load(path, content, context))
    except ManifestParseError as exc:
        log.info("loader.strict_parse_failed", path=rel_path, reason=exc.reason)

    synthetic = synthesize_fallback_manifest(rel_path, content)
    try:
        record = engine.load(path, synthetic, context)
    except ManifestParseError as exc:
        log.warning("loader.manifest_skipped", path=rel_path, reason=exc.reason)
        return None
    log.info(
        "loader.fallback_parsed",
        path=rel_path,
        dependencies=len(record.dependencies),
    )
    return normalize_record(record)


def synthesize_fallback_manifest(name: str, content: str) -> str:
    """Build a minimal gemspec holding only the runtime dependency calls of ``content``.

    The name is the manifest's own path. Lines are matched as text; nothing
    in ``content`` is evaluated here.
    """
    calls: list[str] = []
    for line in content.splitlines():
        m = _FALLBACK_CALL_RE.match(line)
        if m:
            calls.append(f"  spec.{m.group(1)}{m.group(2)}")
    quoted = name.replace("\\", "\\\\").replace("'", "\\'")
    lines = ["Gem::Specification.new do |spec|", f"  spec.name = '{quoted}'", *calls, "end"]
    return "\n".join(lines) + "\n"


def normalize_record(record: ManifestRecord) -> ManifestRecord:
    """Sort files, drop empty metadata, strip non-reproducible fields."""
    record.files = sorted(set(record.files))
    if record.extra.get("metadata") == {}:
        del record.extra["metadata"]
    for name in _STRIPPED_FIELDS:
        record.extra.pop(name, None)
    return record
