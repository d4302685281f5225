"""Shared pytest fixtures for rubyscan tests."""

from pathlib import Path

import pytest


@pytest.fixture
def write_tree(tmp_path):
    """Write ``{relative_path: content}`` under tmp_path and return tmp_path.

    ``bytes`` content is written as-is; ``str`` content as UTF-8 text.
    """

    def _write(files: dict[str, str | bytes], root: Path | None = None) -> Path:
        base = root or tmp_path
        for rel, content in files.items():
            path = base / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return base

    return _write
