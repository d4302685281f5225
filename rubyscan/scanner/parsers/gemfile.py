"""Parser for Bundler Gemfiles (``Gemfile`` / ``gems.rb``)."""

from __future__ import annotations

import re

import structlog

from rubyscan.exceptions import CompanionFileError, RubySyntaxError, UnsupportedExpressionError
from rubyscan.scanner.models import DependencyDeclaration
from rubyscan.scanner.parsers.requirement import requirement_string
from rubyscan.scanner.parsers.ruby_literals import RubyLiteralParser, flatten_strings

log = structlog.get_logger("rubyscan.parsers")

# gem "name", "~> 1.0", group: :test
_GEM_RE = re.compile(r"^gem\b(?!\s*=)")

# group :development, :test do
_GROUP_RE = re.compile(r"^group\b")

# Lines that open a block closed by a later ``end``
_DO_RE = re.compile(r"\bdo\s*(?:\|[^|]*\|)?\s*$")
_OPENER_RE = re.compile(r"^(?:if|unless|case|begin|while|until|def|class|module)\b")
_END_RE = re.compile(r"^end\b")
_TRAILING_END_RE = re.compile(r"\bend\s*$")

DEFAULT_GROUP = "default"


def parse(content: str) -> list[DependencyDeclaration]:
    """Return every ``gem`` declaration, unfiltered, in file order.

    Raises :class:`CompanionFileError` when a ``gem`` line is malformed Ruby.
    """
    deps: list[DependencyDeclaration] = []
    # One entry per open block; group blocks carry their group names.
    stack: list[frozenset[str]] = []

    for lineno, line in _logical_lines(content):
        if _END_RE.match(line):
            if stack:
                stack.pop()
            continue

        if _GROUP_RE.match(line) and _DO_RE.search(line):
            stack.append(_block_groups(line, lineno))
            continue

        if _GEM_RE.match(line):
            active = frozenset().union(*stack) if stack else frozenset()
            dep = _gem_declaration(line, lineno, active)
            if dep is not None:
                deps.append(dep)
            continue

        if (_DO_RE.search(line) or _OPENER_RE.match(line)) and not _TRAILING_END_RE.search(line):
            stack.append(frozenset())

    return deps


def _logical_lines(content: str) -> list[tuple[int, str]]:
    """Strip comments and blanks; join lines continued by a trailing comma or backslash."""
    out: list[tuple[int, str]] = []
    pending = ""
    start = 0
    for lineno, raw in enumerate(content.splitlines(), 1):
        line = _strip_comment(raw).strip()
        if not line and not pending:
            continue
        if not pending:
            start = lineno
        pending = f"{pending} {line}".strip() if pending else line
        if pending.endswith("\\"):
            pending = pending[:-1].rstrip()
            continue
        if pending.endswith(","):
            continue
        out.append((start, pending))
        pending = ""
    if pending:
        out.append((start, pending.rstrip(",")))
    return out


def _strip_comment(line: str) -> str:
    quote: str | None = None
    escaped = False
    for i, ch in enumerate(line):
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "#":
            return line[:i]
    return line


def _call_arguments(line: str, keyword: str, lineno: int) -> tuple[list, dict]:
    parser = RubyLiteralParser(line)
    parser.pos = len(keyword)
    parser.skip_space()
    closer = None
    if parser.peek() == "(":
        parser.pos += 1
        closer = ")"
    try:
        return parser.arguments(closer, tolerant=True)
    except RubySyntaxError as exc:
        raise CompanionFileError(f"line {lineno}: {exc}") from exc


def _block_groups(line: str, lineno: int) -> frozenset[str]:
    try:
        args, _ = _call_arguments(line, "group", lineno)
    except UnsupportedExpressionError:
        log.debug("gemfile.group_unreadable", line=lineno)
        return frozenset()
    return frozenset(flatten_strings(args, strict=False))


def _gem_declaration(
    line: str, lineno: int, block_groups: frozenset[str]
) -> DependencyDeclaration | None:
    try:
        args, kwargs = _call_arguments(line, "gem", lineno)
    except UnsupportedExpressionError as exc:
        log.debug("gemfile.gem_unreadable", line=lineno, reason=str(exc))
        return None
    if not args or not isinstance(args[0], str) or not args[0].strip():
        log.debug("gemfile.gem_without_name", line=lineno)
        return None

    groups = set(block_groups)
    for key in ("group", "groups"):
        value = kwargs.get(key)
        if value is not None:
            groups.update(flatten_strings([value], strict=False))

    return DependencyDeclaration(
        name=args[0].strip(),
        requirement=requirement_string(flatten_strings(args[1:], strict=False)),
        groups=frozenset(groups or {DEFAULT_GROUP}),
    )
