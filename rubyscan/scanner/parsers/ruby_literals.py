"""Evaluator for the literal subset of Ruby found in gemspecs and Gemfiles.

Nothing is executed. The reader understands string, symbol, number, array
and hash literals, heredocs, ``%w``-style literals, constant references
resolved from a supplied table, ``Dir[...]`` / ``Dir.glob`` and the
``git ls-files`` idiom (both evaluated against ``base_dir``), ``+``
concatenation and a handful of side-effect free trailing methods. Anything
else raises :class:`UnsupportedExpressionError`; malformed text raises
:class:`RubySyntaxError`.
"""

from __future__ import annotations

import glob
import os
import re
import textwrap
from pathlib import Path
from typing import Any, Iterable, Mapping

import structlog

from rubyscan.exceptions import RubySyntaxError, UnsupportedExpressionError

log = structlog.get_logger("rubyscan.parsers")

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*[?!]?")
_CONST_PATH_RE = re.compile(r"(?:::)?[A-Z][A-Za-z0-9_]*(?:::[A-Z][A-Za-z0-9_]*)*")
_NUMBER_RE = re.compile(r"-?\d[\d_]*(\.\d[\d_]*)?(?![A-Za-z_])")
_SYMBOL_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*[?!=]?)")
_LABEL_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*[?!]?):(?!:)")
_HEREDOC_RE = re.compile(r"<<([~-]?)(['\"]?)([A-Za-z_][A-Za-z0-9_]*)\2")
_PERCENT_RE = re.compile(r"%([qQwWiI]?)([^\sA-Za-z0-9])")
_CHAIN_RE = re.compile(r"[ \t]*(?:\n[ \t]*)*\.(?![.\d])")
_BLOCK_START_RE = re.compile(r"[ \t]*(?:\{|do\b)")
_DIR_METHOD_RE = re.compile(r"\.(glob|chdir)\b")
_INTERPOLATION_RE = re.compile(r"#\{([^}]*)\}")

_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "s": " ",
    "e": "\x1b",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}

# Methods whose result is the receiver for every value we can produce.
_PASSTHROUGH_METHODS = frozenset({"freeze", "dup", "to_a", "to_str", "itself"})

# Keywords that open a block closed by ``end`` wherever they appear ...
_BLOCK_OPENERS = frozenset({"do", "begin", "case", "def", "class", "module"})
# ... and those that only do so at the start of a statement.
_STATEMENT_OPENERS = frozenset({"if", "unless", "while", "until"})


class RubyLiteralParser:
    """Cursor over Ruby source that evaluates one literal expression at a time."""

    def __init__(
        self,
        text: str,
        constants: Mapping[str, str] | None = None,
        base_dir: Path | None = None,
    ) -> None:
        self.text = text
        self.pos = 0
        self.constants = dict(constants or {})
        self.base_dir = base_dir
        self._heredoc_end: int | None = None

    # ── cursor helpers ───────────────────────────────────────────────────

    def peek(self, size: int = 1) -> str:
        return self.text[self.pos : self.pos + size]

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def at_keyword(self, word: str) -> bool:
        if not self.text.startswith(word, self.pos):
            return False
        after = self.text[self.pos + len(word) : self.pos + len(word) + 1]
        return not (after.isalnum() or after == "_")

    def skip_space(self, newlines: bool = False) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch in " \t\r":
                self.pos += 1
            elif text.startswith("\\\n", self.pos):
                self.pos += 2
            elif ch == "#":
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end
            elif ch == "\n" and newlines:
                self.pos += 1
                if self._heredoc_end is not None:
                    self.pos = max(self.pos, self._heredoc_end)
                    self._heredoc_end = None
            else:
                break

    def expect(self, token: str) -> None:
        self.skip_space(newlines=True)
        if not self.text.startswith(token, self.pos):
            if self.at_end():
                raise RubySyntaxError(f"expected {token!r} before end of input")
            raise UnsupportedExpressionError(f"expected {token!r} at offset {self.pos}")
        self.pos += len(token)

    def finish(self) -> int:
        """Offset where the caller should resume, past any pending heredoc body."""
        end = self.pos
        if self._heredoc_end is not None:
            end = max(end, self._heredoc_end)
            self._heredoc_end = None
        return end

    # ── expressions ──────────────────────────────────────────────────────

    def expression(self) -> Any:
        self.skip_space()
        value = self._postfix(self._primary())
        while True:
            save = self.pos
            self.skip_space()
            if self.peek() == "+" and self.peek(2) != "+=":
                self.pos += 1
                self.skip_space(newlines=True)
                value = _concat(value, self._postfix(self._primary()))
            else:
                self.pos = save
                return value

    def arguments(
        self, closer: str | None = None, tolerant: bool = False
    ) -> tuple[list[Any], dict[str, Any]]:
        """Parse a comma separated argument list.

        With ``closer`` the list runs to that bracket (which is consumed);
        without it the list ends with the line, as in a paren-less call.
        Trailing ``key: value`` and ``key => value`` pairs are collected as
        keyword arguments. With ``tolerant`` an argument outside the grammar
        is skipped instead of raising.
        """
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        newlines = closer is not None
        self.skip_space(newlines=newlines)
        while True:
            if closer is not None and self.peek() == closer:
                self.pos += 1
                return args, kwargs
            if closer is None and (self.at_end() or self.peek() == "\n"):
                return args, kwargs
            if self.at_end():
                raise RubySyntaxError(f"unterminated argument list, expected {closer!r}")
            try:
                self._argument(args, kwargs, newlines)
            except UnsupportedExpressionError as exc:
                if not tolerant or isinstance(exc, RubySyntaxError):
                    raise
                log.debug("ruby.argument_skipped", reason=str(exc))
                self._skip_argument(closer)
            self.skip_space(newlines=newlines)
            if self.peek() == ",":
                self.pos += 1
                self.skip_space(newlines=True)
                continue
            if closer is None:
                return args, kwargs
            if self.peek() != closer:
                if self.at_end():
                    raise RubySyntaxError(f"unterminated argument list, expected {closer!r}")
                raise UnsupportedExpressionError(f"unexpected {self.peek()!r} in argument list")

    def skip_block(self) -> None:
        """Skip a ``{ ... }`` or ``do ... end`` block without evaluating it."""
        self.skip_space()
        if self.peek() == "{":
            self.pos += 1
            self._skip_balanced("}")
            self.pos += 1
            return
        if not self.at_keyword("do"):
            raise UnsupportedExpressionError(f"expected a block at offset {self.pos}")
        self.pos += 2
        self.pos = find_block_end(self.text, self.pos)

    # ── internals ────────────────────────────────────────────────────────

    def _argument(self, args: list[Any], kwargs: dict[str, Any], newlines: bool) -> None:
        label = _LABEL_RE.match(self.text, self.pos)
        if label:
            self.pos = label.end()
            kwargs[label.group(1)] = self.expression()
            return
        splat = self.peek() == "*" and self.peek(2) != "**"
        if splat:
            self.pos += 1
        value = self.expression()
        save = self.pos
        self.skip_space(newlines=newlines)
        if self.text.startswith("=>", self.pos):
            self.pos += 2
            kwargs[_to_str(value)] = self.expression()
            return
        self.pos = save
        if splat and isinstance(value, list):
            args.extend(value)
        else:
            args.append(value)

    def _primary(self) -> Any:
        self.skip_space()
        text, pos = self.text, self.pos
        if pos >= len(text):
            raise RubySyntaxError("unexpected end of input")
        ch = text[pos]
        if ch in "\"'":
            return self._quoted(ch)
        if ch == "`":
            return self._command()
        if ch == "[":
            self.pos += 1
            return self._array()
        if ch == "{":
            self.pos += 1
            return self._hash()
        if ch == "(":
            self.pos += 1
            value = self.expression()
            self.expect(")")
            return value
        if ch == "%":
            m = _PERCENT_RE.match(text, pos)
            if m:
                return self._percent(m)
        if ch == "<":
            m = _HEREDOC_RE.match(text, pos)
            if m:
                return self._heredoc(m)
        if ch == ":":
            if text.startswith(':"', pos) or text.startswith(":'", pos):
                self.pos += 1
                return self._quoted(text[pos + 1])
            m = _SYMBOL_RE.match(text, pos)
            if m:
                self.pos = m.end()
                return m.group(1)
        m = _NUMBER_RE.match(text, pos)
        if m:
            self.pos = m.end()
            raw = m.group(0).replace("_", "")
            return float(raw) if m.group(1) else int(raw)
        m = _CONST_PATH_RE.match(text, pos)
        if m:
            self.pos = m.end()
            return self._constant(m.group(0))
        m = _IDENT_RE.match(text, pos)
        if m and m.group(0) in ("true", "false", "nil"):
            self.pos = m.end()
            return {"true": True, "false": False, "nil": None}[m.group(0)]
        raise UnsupportedExpressionError(
            f"unsupported expression at offset {pos}: {text[pos:pos + 24]!r}"
        )

    def _postfix(self, value: Any) -> Any:
        while True:
            m = _CHAIN_RE.match(self.text, self.pos)
            if not m or (self._heredoc_end is not None and "\n" in m.group(0)):
                return value
            name = _IDENT_RE.match(self.text, m.end())
            if not name:
                return value
            self.pos = name.end()
            method = name.group(0)
            args: list[Any] = []
            if self.peek() == "(":
                self.pos += 1
                args, _ = self.arguments(")", tolerant=True)
            has_block = bool(_BLOCK_START_RE.match(self.text, self.pos))
            if has_block:
                self.skip_block()
            value = _apply_method(method, value, args, has_block)

    def _constant(self, path: str) -> Any:
        bare = path.lstrip(":")
        if bare == "Dir":
            return self._dir_call()
        if bare in ("Gem::Version", "Gem::Requirement") and self.text.startswith(".new", self.pos):
            self.pos += 4
            if self.peek() == "(":
                self.pos += 1
                args, _ = self.arguments(")")
            else:
                args, _ = self.arguments()
            return ", ".join(flatten_strings(args))
        name = bare.rsplit("::", 1)[-1]
        if name in self.constants:
            return self.constants[name]
        raise UnsupportedExpressionError(f"unresolved constant {bare}")

    def _dir_call(self) -> Any:
        if self.peek() == "[":
            self.pos += 1
            args, _ = self.arguments("]", tolerant=True)
            return self._glob(args)
        m = _DIR_METHOD_RE.match(self.text, self.pos)
        if not m:
            raise UnsupportedExpressionError(f"unsupported Dir call at offset {self.pos}")
        self.pos = m.end()
        if m.group(1) == "glob":
            if self.peek() == "(":
                self.pos += 1
                args, _ = self.arguments(")", tolerant=True)
            else:
                args, _ = self.arguments(tolerant=True)
            return self._glob(args)

        # Dir.chdir(dir) do <expr> end: the manifest directory is already the base.
        if self.peek() == "(":
            self.pos += 1
            self.arguments(")", tolerant=True)
        self.skip_space()
        if self.at_keyword("do"):
            self.pos += 2
            closer = "end"
        elif self.peek() == "{":
            self.pos += 1
            closer = "}"
        else:
            raise UnsupportedExpressionError("Dir.chdir without a block")
        self.skip_space(newlines=True)
        if self.peek() == "|":
            params_end = self.text.find("|", self.pos + 1)
            if params_end == -1:
                raise RubySyntaxError("unterminated block parameters")
            self.pos = params_end + 1
            self.skip_space(newlines=True)
        value = self.expression()
        self.skip_space(newlines=True)
        if not self.text.startswith(closer, self.pos):
            raise UnsupportedExpressionError("Dir.chdir block with more than one statement")
        self.pos += len(closer)
        return value

    def _glob(self, patterns: list[Any]) -> list[str]:
        if self.base_dir is None:
            raise UnsupportedExpressionError("glob without a base directory")
        found: list[str] = []
        seen: set[str] = set()
        for pattern in flatten_strings(patterns, strict=False):
            for expanded in expand_braces(pattern):
                hits = glob.glob(expanded, root_dir=str(self.base_dir), recursive=True)
                for hit in sorted(hits):
                    rel = Path(hit).as_posix()
                    if rel in seen or not (self.base_dir / hit).is_file():
                        continue
                    seen.add(rel)
                    found.append(rel)
        return found

    def _command(self) -> Any:
        end = self.text.find("`", self.pos + 1)
        if end == -1:
            raise RubySyntaxError("unterminated command literal")
        command = self.text[self.pos + 1 : end].strip()
        self.pos = end + 1
        if not command.startswith("git ls-files"):
            raise UnsupportedExpressionError(f"shell command {command!r}")
        if self.base_dir is None:
            raise UnsupportedExpressionError("git ls-files without a base directory")
        return list_tracked_files(self.base_dir)

    def _quoted(self, quote: str) -> str:
        text = self.text
        self.pos += 1
        out: list[str] = []
        while True:
            if self.pos >= len(text):
                raise RubySyntaxError("unterminated string literal")
            ch = text[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(out)
            if ch == "\\":
                nxt = text[self.pos + 1 : self.pos + 2]
                self.pos += 2
                if quote == "'":
                    out.append(nxt if nxt in ("\\", "'") else "\\" + nxt)
                else:
                    out.append(self._escape(nxt))
                continue
            if quote == '"' and text.startswith("#{", self.pos):
                out.append(self._interpolate())
                continue
            out.append(ch)
            self.pos += 1

    def _delimited(self, opener: str, interpolate: bool) -> str:
        text = self.text
        closer = _PAIRS.get(opener, opener)
        depth = 0
        out: list[str] = []
        while True:
            if self.pos >= len(text):
                raise RubySyntaxError("unterminated percent literal")
            ch = text[self.pos]
            if ch == "\\":
                nxt = text[self.pos + 1 : self.pos + 2]
                self.pos += 2
                if interpolate:
                    out.append(self._escape(nxt))
                else:
                    out.append(nxt if nxt in (opener, closer, "\\") else "\\" + nxt)
                continue
            if interpolate and text.startswith("#{", self.pos):
                out.append(self._interpolate())
                continue
            if ch == opener and opener != closer:
                depth += 1
            elif ch == closer:
                if depth == 0:
                    self.pos += 1
                    return "".join(out)
                depth -= 1
            out.append(ch)
            self.pos += 1

    def _percent(self, m: re.Match[str]) -> Any:
        kind, opener = m.group(1), m.group(2)
        self.pos = m.end()
        if kind in ("w", "i"):
            return self._delimited(opener, interpolate=False).split()
        if kind in ("W", "I"):
            return self._delimited(opener, interpolate=True).split()
        return self._delimited(opener, interpolate=kind != "q")

    def _escape(self, nxt: str) -> str:
        text = self.text
        if nxt == "x":
            m = re.compile(r"[0-9A-Fa-f]{1,2}").match(text, self.pos)
            if m:
                self.pos = m.end()
                return chr(int(m.group(0), 16))
            return "x"
        if nxt == "u":
            m = re.compile(r"\{([0-9A-Fa-f]+)\}|([0-9A-Fa-f]{4})").match(text, self.pos)
            if m:
                self.pos = m.end()
                codepoint = int(m.group(1) or m.group(2), 16)
                if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
                    raise RubySyntaxError(f"invalid code point U+{codepoint:X}")
                return chr(codepoint)
            return "u"
        if nxt and nxt in "01234567":
            m = re.compile(r"[0-7]{0,2}").match(text, self.pos)
            digits = nxt + (m.group(0) if m else "")
            self.pos += len(digits) - 1
            return chr(int(digits, 8))
        if nxt == "\n":
            return ""
        return _ESCAPES.get(nxt, nxt)

    def _interpolate(self) -> str:
        self.pos += 2
        value = self.expression()
        self.expect("}")
        return _to_str(value)

    def _array(self) -> list[Any]:
        items: list[Any] = []
        while True:
            self.skip_space(newlines=True)
            if self.peek() == "]":
                self.pos += 1
                return items
            splat = self.peek() == "*"
            if splat:
                self.pos += 1
            value = self.expression()
            if splat and isinstance(value, list):
                items.extend(value)
            else:
                items.append(value)
            self.skip_space(newlines=True)
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "]":
                if self.at_end():
                    raise RubySyntaxError("unterminated array literal")
                raise UnsupportedExpressionError(f"unexpected {self.peek()!r} in array")

    def _hash(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        while True:
            self.skip_space(newlines=True)
            if self.peek() == "}":
                self.pos += 1
                return out
            label = _LABEL_RE.match(self.text, self.pos)
            if label:
                self.pos = label.end()
                key = label.group(1)
            else:
                key = _to_str(self.expression())
                self.expect("=>")
            out[key] = self.expression()
            self.skip_space(newlines=True)
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "}":
                if self.at_end():
                    raise RubySyntaxError("unterminated hash literal")
                raise UnsupportedExpressionError(f"unexpected {self.peek()!r} in hash")

    def _heredoc(self, m: re.Match[str]) -> str:
        text = self.text
        flavour, quote, ident = m.group(1), m.group(2), m.group(3)
        self.pos = m.end()
        if self._heredoc_end is not None:
            cursor = self._heredoc_end
        else:
            newline = text.find("\n", self.pos)
            if newline == -1:
                raise RubySyntaxError(f"heredoc {ident} has no body")
            cursor = newline + 1
        lines: list[str] = []
        while True:
            newline = text.find("\n", cursor)
            line_end = len(text) if newline == -1 else newline
            line = text[cursor:line_end]
            if (line.strip() if flavour else line) == ident:
                break
            if newline == -1:
                raise RubySyntaxError(f"unterminated heredoc {ident}")
            lines.append(line)
            cursor = newline + 1
        self._heredoc_end = len(text) if newline == -1 else newline + 1
        body = "".join(line + "\n" for line in lines)
        if flavour == "~":
            body = textwrap.dedent(body)
        if quote != "'":
            body = _INTERPOLATION_RE.sub(self._interpolate_match, body)
        return body

    def _interpolate_match(self, m: re.Match[str]) -> str:
        inner = RubyLiteralParser(m.group(1), self.constants, self.base_dir)
        return _to_str(inner.expression())

    def _skip_argument(self, closer: str | None) -> None:
        stops = "," + (closer or "\n")
        self._skip_balanced(stops)

    def _skip_balanced(self, stops: str) -> None:
        """Advance to the next top-level character in ``stops``."""
        text = self.text
        depth = 0
        while self.pos < len(text):
            ch = text[self.pos]
            if ch in "\"'`":
                self._skip_quoted(ch)
                continue
            if ch == "#":
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end
                continue
            if depth == 0 and ch in stops:
                return
            if ch in "([{":
                depth += 1
            elif ch in ")]}":
                if depth == 0:
                    return
                depth -= 1
            self.pos += 1
        if "\n" not in stops:
            raise RubySyntaxError("unbalanced brackets")

    def _skip_quoted(self, quote: str) -> None:
        text = self.text
        self.pos += 1
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\":
                self.pos += 2
                continue
            self.pos += 1
            if ch == quote:
                return
        raise RubySyntaxError("unterminated string literal")


def evaluate(
    text: str,
    pos: int = 0,
    *,
    constants: Mapping[str, str] | None = None,
    base_dir: Path | None = None,
) -> tuple[Any, int]:
    """Evaluate the expression starting at ``pos``; return ``(value, resume_offset)``."""
    parser = RubyLiteralParser(text, constants, base_dir)
    parser.pos = pos
    value = parser.expression()
    return value, parser.finish()


def find_block_end(text: str, pos: int) -> int:
    """Return the offset just past the ``end`` closing a block opened before ``pos``."""
    depth = 1
    while pos < len(text):
        ch = text[pos]
        if ch in "\"'`":
            quote = ch
            pos += 1
            while pos < len(text) and text[pos] != quote:
                pos += 2 if text[pos] == "\\" else 1
            pos += 1
            continue
        if ch == "#":
            newline = text.find("\n", pos)
            pos = len(text) if newline == -1 else newline
            continue
        prev = text[pos - 1] if pos else "\n"
        ident = _IDENT_RE.match(text, pos)
        if ident and not (prev.isalnum() or prev in "_.:@$"):
            word = ident.group(0)
            if word in _BLOCK_OPENERS:
                depth += 1
            elif word in _STATEMENT_OPENERS and _starts_statement(text, pos):
                depth += 1
            elif word == "end":
                depth -= 1
                if depth == 0:
                    return pos + 3
            pos += len(word)
            continue
        pos += 1
    raise RubySyntaxError("unterminated do ... end block")


def _starts_statement(text: str, pos: int) -> bool:
    line_start = max(text.rfind("\n", 0, pos), text.rfind(";", 0, pos)) + 1
    before = text[line_start:pos].strip()
    return before == "" or before.endswith("=")


def expand_braces(pattern: str) -> list[str]:
    """Expand Ruby glob alternation (``{a,b}``), which :mod:`glob` lacks."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    for end in range(start, len(pattern)):
        if pattern[end] == "{":
            depth += 1
        elif pattern[end] == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]
    options: list[str] = []
    depth = 0
    current = ""
    for ch in pattern[start + 1 : end]:
        if ch == "," and depth == 0:
            options.append(current)
            current = ""
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current += ch
    options.append(current)
    head, tail = pattern[:start], pattern[end + 1 :]
    out: list[str] = []
    for option in options:
        out.extend(expand_braces(head + option + tail))
    return out


def list_tracked_files(base_dir: Path) -> list[str]:
    """Approximate ``git ls-files`` by listing every file outside ``.git``."""
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(base_dir):
        dirnames[:] = [d for d in dirnames if d != ".git"]
        for name in filenames:
            files.append((Path(dirpath) / name).relative_to(base_dir).as_posix())
    return sorted(files)


def flatten_strings(values: Iterable[Any], strict: bool = True) -> list[str]:
    """Flatten nested lists of strings; non-strings raise unless ``strict`` is off."""
    out: list[str] = []
    for value in values:
        if isinstance(value, list):
            out.extend(flatten_strings(value, strict))
        elif isinstance(value, str):
            out.append(value)
        elif strict:
            raise UnsupportedExpressionError(f"expected a string, got {value!r}")
    return out


def _apply_method(method: str, value: Any, args: list[Any], has_block: bool) -> Any:
    if has_block:
        # reject { }, select { }, map { }: the receiver stands in for the result
        log.debug("ruby.block_ignored", method=method)
        return value
    if method in _PASSTHROUGH_METHODS:
        return value
    if method == "to_s":
        return _to_str(value)
    if isinstance(value, str):
        if method == "strip":
            return value.strip()
        if method == "chomp":
            return value[:-1] if value.endswith("\n") else value
        if method == "split":
            sep = args[0] if args and isinstance(args[0], str) else None
            return [part for part in value.split(sep) if part] if sep else value.split()
    if isinstance(value, list):
        if method == "sort":
            return sorted(value, key=str)
        if method == "uniq":
            return list(dict.fromkeys(value))
        if method == "compact":
            return [v for v in value if v is not None]
        if method == "flatten":
            return _flatten(value)
        if method == "split":
            return value
    raise UnsupportedExpressionError(f"unsupported method .{method} on {type(value).__name__}")


def _concat(left: Any, right: Any) -> Any:
    if isinstance(left, list) and isinstance(right, list):
        return left + right
    if isinstance(left, str) and isinstance(right, str):
        return left + right
    raise UnsupportedExpressionError("'+' between incompatible values")


def _flatten(values: list[Any]) -> list[Any]:
    out: list[Any] = []
    for value in values:
        if isinstance(value, list):
            out.extend(_flatten(value))
        else:
            out.append(value)
    return out


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)
