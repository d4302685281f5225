"""Decoder for packed gem metadata (``metadata.gz``: gzip'd YAML gem spec)."""

from __future__ import annotations

import datetime
import gzip
import zlib
from typing import Any

import yaml

from rubyscan.exceptions import ManifestParseError, SecondaryManifestError
from rubyscan.scanner.models import DependencyDeclaration, ManifestRecord
from rubyscan.scanner.parsers.gemspec import record_from_fields
from rubyscan.scanner.parsers.requirement import DEFAULT_REQUIREMENT


class GemSpecYamlLoader(yaml.SafeLoader):
    """SafeLoader that turns ``!ruby/object:Gem::*`` nodes into plain values."""


def _construct_ruby_object(loader: yaml.SafeLoader, suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.MappingNode):
        value: Any = loader.construct_mapping(node, deep=True)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_scalar(node)

    if suffix == "object:Gem::Version":
        return str(value.get("version")) if isinstance(value, dict) else str(value)
    if suffix == "object:Gem::Requirement":
        return _requirement_string(value)
    return value


GemSpecYamlLoader.add_multi_constructor("!ruby/", _construct_ruby_object)


def decode(raw: bytes) -> dict[str, Any]:
    """Decompress and load the YAML specification into plain Python values."""
    try:
        text = gzip.decompress(raw)
    except (OSError, EOFError, zlib.error) as exc:
        raise SecondaryManifestError(f"cannot decompress metadata: {exc}") from exc
    try:
        data = yaml.load(text, Loader=GemSpecYamlLoader)
    except yaml.YAMLError as exc:
        raise SecondaryManifestError(f"cannot parse metadata YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise SecondaryManifestError("metadata is not a gem specification mapping")
    return _jsonable(data)


def to_record(data: dict[str, Any], path: str) -> ManifestRecord:
    """Map a decoded specification onto a ManifestRecord."""
    fields = dict(data)
    dependencies: list[DependencyDeclaration] = []
    entries = fields.pop("dependencies", None) or []
    if not isinstance(entries, list):
        raise SecondaryManifestError("dependencies must be a list")
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        requirement = entry.get("requirement") or entry.get("version_requirements")
        dependencies.append(
            DependencyDeclaration(
                name=str(entry["name"]),
                requirement=str(requirement or DEFAULT_REQUIREMENT),
                type=str(entry.get("type") or "runtime").lstrip(":"),
            )
        )
    try:
        return record_from_fields(fields, path, dependencies)
    except ManifestParseError as exc:
        raise SecondaryManifestError(exc.reason) from exc


def _requirement_string(value: Any) -> str:
    requirements = value.get("requirements") if isinstance(value, dict) else None
    parts: list[str] = []
    for pair in requirements or []:
        if isinstance(pair, list) and len(pair) == 2:
            parts.append(f"{pair[0]} {pair[1]}")
    return ", ".join(parts) or DEFAULT_REQUIREMENT


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lstrip(":"): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
