"""Parse Bundler's Gemfile.lock to capture locked gem versions."""

from __future__ import annotations

import re

from rubyscan.exceptions import LockfileError

# Sections whose "specs:" block lists installed gems.
_SOURCE_SECTIONS = frozenset({"GEM", "PATH", "GIT", "PLUGIN SOURCE"})

# "    nokogiri (1.15.4-x86_64-linux)" -> name, version, platform
_NAME_VERSION_RE = re.compile(r"^ {4}(?! )(\S+)(?: \(([^-)]*)(?:-([^)]*))?\))?(!)?$")

_CONFLICT_MARKERS = ("<<<<<<<", ">>>>>>>")


def parse(content: str) -> dict[str, str]:
    """Return ``{name: version}`` for every locked gem.

    The platform suffix is dropped; the first entry for a name wins, so a gem
    locked for several platforms resolves to one version.
    """
    if any(marker in content for marker in _CONFLICT_MARKERS):
        raise LockfileError("lockfile contains unresolved merge conflict markers")

    versions: dict[str, str] = {}
    section: str | None = None
    in_specs = False

    for raw_line in content.splitlines():
        line = raw_line.rstrip()
        if not line:
            continue
        if not line.startswith(" "):
            section = line.strip()
            in_specs = False
            continue
        if section not in _SOURCE_SECTIONS:
            continue

        indent = len(line) - len(line.lstrip(" "))
        if indent == 2:
            in_specs = line.strip() == "specs:"
            continue
        if not in_specs or indent != 4:
            continue

        m = _NAME_VERSION_RE.match(line)
        if m and m.group(2):
            versions.setdefault(m.group(1), m.group(2))

    return versions
