"""Secondary-manifest fallback: a packed ``metadata.gz`` at the scan root."""

from __future__ import annotations

from pathlib import Path

import structlog

from rubyscan.exceptions import SecondaryManifestError
from rubyscan.scanner.loader import normalize_record
from rubyscan.scanner.models import ManifestRecord
from rubyscan.scanner.parsers import gem_metadata

log = structlog.get_logger("rubyscan.scanner")

SECONDARY_MANIFEST = "metadata.gz"


def load_secondary_manifest(root: Path) -> ManifestRecord | None:
    """Decode ``root/metadata.gz`` into a record, or None when absent or broken."""
    path = root / SECONDARY_MANIFEST
    if not path.is_file():
        return None
    try:
        data = gem_metadata.decode(path.read_bytes())
        record = gem_metadata.to_record(data, SECONDARY_MANIFEST)
    except (OSError, SecondaryManifestError) as exc:
        log.warning("secondary.unreadable", path=SECONDARY_MANIFEST, error=str(exc))
        return None
    log.info("secondary.loaded", name=record.name)
    return normalize_record(record)
