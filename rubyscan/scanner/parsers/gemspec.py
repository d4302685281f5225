"""Gemspec engine: reads ``*.gemspec`` files through a fixed literal grammar.

A gemspec is Ruby code, but the overwhelming majority of them are a single
``Gem::Specification.new do |spec| ... end`` block of attribute assignments
and ``add_*_dependency`` calls. Those statements are evaluated with
:mod:`rubyscan.scanner.parsers.ruby_literals`; the file is never executed.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import structlog

from rubyscan.exceptions import (
    ManifestParseError,
    RubySyntaxError,
    UnsupportedExpressionError,
)
from rubyscan.scanner.models import DependencyDeclaration, ManifestRecord, ScanContext
from rubyscan.scanner.parsers.requirement import requirement_string
from rubyscan.scanner.parsers.ruby_literals import RubyLiteralParser, flatten_strings

log = structlog.get_logger("rubyscan.parsers")

# Gem::Specification.new [name, version] do |spec|   (or { |spec| )
_SPEC_BLOCK_RE = re.compile(
    r"Gem::Specification\.new\b([^\n]*?)(?:\bdo\b|\{)\s*\|\s*([a-z_][A-Za-z0-9_]*)\s*\|"
)

# VERSION = "1.2.3" style constants, in the gemspec or lib/**/version.rb
_CONSTANT_RE = re.compile(r"^\s*([A-Z][A-Z0-9_]*)\s*=\s*(['\"])([^'\"\n]*)\2", re.M)

DEPENDENCY_METHODS: dict[str, str] = {
    "add_runtime_dependency": "runtime",
    "add_dependency": "runtime",
    "add_development_dependency": "development",
}


class GemspecParser:
    """Strict gemspec reader: returns a record or raises :class:`ManifestParseError`."""

    detection_method = "gemspec"
    file_patterns = ["*.gemspec"]

    def load(self, path: Path, content: str, context: ScanContext) -> ManifestRecord:
        rel_path = context.relative(path)
        block = _SPEC_BLOCK_RE.search(content)
        if not block:
            raise ManifestParseError(rel_path, "no Gem::Specification.new block")

        constants = collect_constants(content, context.manifest_dir)
        attrs: dict[str, Any] = {}
        metadata: dict[str, Any] = {}
        dependencies: list[DependencyDeclaration] = []

        header = block.group(1).strip()
        if header:
            attrs.update(_header_attributes(header, constants))

        var = block.group(2)
        statement_re = re.compile(rf"^[ \t]*{re.escape(var)}\.([a-z_][A-Za-z0-9_]*)", re.M)
        resume = block.end()
        for m in statement_re.finditer(content, block.end()):
            if m.start() < resume:
                continue
            method = m.group(1)
            parser = RubyLiteralParser(content, constants, context.manifest_dir)
            parser.pos = m.end()
            lineno = content.count("\n", 0, m.start()) + 1
            try:
                if method in DEPENDENCY_METHODS:
                    dependencies.append(_dependency_call(parser, DEPENDENCY_METHODS[method]))
                elif method == "metadata" and parser.peek() == "[":
                    parser.pos += 1
                    key = parser.expression()
                    parser.expect("]")
                    if _assignment(parser):
                        metadata[str(key)] = parser.expression()
                elif _assignment(parser):
                    attrs[method] = parser.expression()
            except RubySyntaxError as exc:
                raise ManifestParseError(rel_path, f"line {lineno}: {exc}") from exc
            except UnsupportedExpressionError as exc:
                if method in DEPENDENCY_METHODS or method == "name":
                    raise ManifestParseError(rel_path, f"line {lineno}: {exc}") from exc
                log.debug(
                    "gemspec.attribute_skipped",
                    path=rel_path,
                    attribute=method,
                    line=lineno,
                    reason=str(exc),
                )
                continue
            resume = parser.finish()

        if metadata:
            existing = attrs.get("metadata")
            attrs["metadata"] = {**(existing if isinstance(existing, dict) else {}), **metadata}
        return record_from_fields(attrs, rel_path, dependencies)


def record_from_fields(
    attrs: dict[str, Any],
    path: str,
    dependencies: list[DependencyDeclaration],
) -> ManifestRecord:
    """Build a ManifestRecord from raw specification attributes.

    Shared with the metadata.gz reader so both produce identical shapes.
    """
    fields = dict(attrs)
    name = fields.pop("name", None)
    if not isinstance(name, str) or not name.strip():
        raise ManifestParseError(path, "missing gem name")

    version = fields.pop("version", None)
    license = fields.pop("license", None)
    licenses = _string_list(fields.pop("licenses", None), "licenses", path)
    if license is not None and licenses is None:
        licenses = [str(license)]
    files = _string_list(fields.pop("files", None), "files", path)

    return ManifestRecord(
        name=name,
        path=path,
        version=str(version) if version is not None else None,
        license=str(license) if license is not None else None,
        licenses=licenses,
        dependencies=dependencies,
        files=files or [],
        extra=fields,
    )


def _string_list(value: Any, field: str, path: str) -> list[str] | None:
    """A string or list of strings as a list; any other shape fails the manifest."""
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ManifestParseError(path, f"{field} must be a list of strings")


def collect_constants(content: str, manifest_dir: Path) -> dict[str, str]:
    """String constants visible to the gemspec; the gemspec's own win."""
    constants: dict[str, str] = {}
    for m in _CONSTANT_RE.finditer(content):
        constants.setdefault(m.group(1), m.group(3))
    lib_dir = manifest_dir / "lib"
    if lib_dir.is_dir():
        for version_file in sorted(lib_dir.rglob("version.rb")):
            try:
                text = version_file.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            for m in _CONSTANT_RE.finditer(text):
                constants.setdefault(m.group(1), m.group(3))
    return constants


def _assignment(parser: RubyLiteralParser) -> bool:
    """Consume ``=`` (but not ``==``) after an attribute; False for other calls."""
    parser.skip_space()
    if parser.peek() == "=" and parser.peek(2) not in ("==", "=~"):
        parser.pos += 1
        return True
    return False


def _dependency_call(parser: RubyLiteralParser, dep_type: str) -> DependencyDeclaration:
    if parser.peek() == "(":
        parser.pos += 1
        args, _ = parser.arguments(")")
    else:
        args, _ = parser.arguments()
    if not args or not isinstance(args[0], str) or not args[0].strip():
        raise UnsupportedExpressionError("dependency without a name")
    return DependencyDeclaration(
        name=args[0].strip(),
        requirement=requirement_string(flatten_strings(args[1:])),
        type=dep_type,
    )


def _header_attributes(header: str, constants: dict[str, str]) -> dict[str, Any]:
    """``Gem::Specification.new "name", "1.0" do |s|`` supplies name and version."""
    parser = RubyLiteralParser(header, constants)
    if parser.peek() == "(":
        parser.pos += 1
        closer: str | None = ")"
    else:
        closer = None
    try:
        args, _ = parser.arguments(closer, tolerant=True)
    except UnsupportedExpressionError:
        return {}
    out: dict[str, Any] = {}
    for key, value in zip(("name", "version"), args):
        if isinstance(value, str):
            out[key] = value
    return out
