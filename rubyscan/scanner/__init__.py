"""Gem scanner: discover gemspecs and loose scripts and resolve their dependencies."""

from rubyscan.scanner.assembler import serialize
from rubyscan.scanner.models import DiscoveryUnit, ResolvedDependency
from rubyscan.scanner.scanner import scan

__all__ = ["DiscoveryUnit", "ResolvedDependency", "scan", "serialize"]
