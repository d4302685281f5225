"""Canonical text for RubyGems version requirements."""

from __future__ import annotations

import re
from typing import Iterable

DEFAULT_REQUIREMENT = ">= 0"

# Matches: optional operator followed by a version, e.g. ">=1.0", "~> 2.3", "1.0"
_CONSTRAINT_RE = re.compile(r"^\s*(=|!=|>=|<=|>|<|~>)?\s*([0-9A-Za-z][0-9A-Za-z.\-+]*)\s*$")


def normalize_constraint(raw: str) -> str:
    """``">=1.0"`` -> ``">= 1.0"``; a bare version gets ``"= "`` like RubyGems does."""
    m = _CONSTRAINT_RE.match(raw)
    if not m:
        return raw.strip()
    return f"{m.group(1) or '='} {m.group(2)}"


def requirement_string(constraints: Iterable[str]) -> str:
    """Join constraints the way ``Gem::Requirement#to_s`` does."""
    parts: list[str] = []
    for raw in constraints:
        for piece in raw.split(","):
            if piece.strip():
                parts.append(normalize_constraint(piece))
    return ", ".join(dict.fromkeys(parts)) or DEFAULT_REQUIREMENT
