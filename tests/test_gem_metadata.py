"""Tests for the packed gem metadata (metadata.gz) reader."""

from __future__ import annotations

import gzip

import pytest

from rubyscan.exceptions import SecondaryManifestError
from rubyscan.scanner.parsers import gem_metadata
from rubyscan.scanner.secondary import load_secondary_manifest

METADATA_YAML = """\
--- !ruby/object:Gem::Specification
name: packed
version: !ruby/object:Gem::Version
  version: 1.2.0
platform: ruby
authors:
- Jane Doe
autorequire:
bindir: bin
date: 2023-05-01 00:00:00.000000000 Z
dependencies:
- !ruby/object:Gem::Dependency
  name: rack
  requirement: !ruby/object:Gem::Requirement
    requirements:
    - - ">="
      - !ruby/object:Gem::Version
        version: '2.0'
    - - "<"
      - !ruby/object:Gem::Version
        version: '4'
  type: :runtime
  prerelease: false
  version_requirements: !ruby/object:Gem::Requirement
    requirements:
    - - ">="
      - !ruby/object:Gem::Version
        version: '2.0'
- !ruby/object:Gem::Dependency
  name: minitest
  requirement: !ruby/object:Gem::Requirement
    requirements:
    - - "~>"
      - !ruby/object:Gem::Version
        version: '5.0'
  type: :development
  prerelease: false
files:
- lib/packed.rb
- README.md
licenses:
- MIT
metadata: {}
required_ruby_version: !ruby/object:Gem::Requirement
  requirements:
  - - ">="
    - !ruby/object:Gem::Version
      version: '3.0'
rubygems_version: 3.4.10
specification_version: 4
summary: A packed gem
"""


def packed(text: str = METADATA_YAML) -> bytes:
    return gzip.compress(text.encode("utf-8"))


class TestDecode:
    def test_ruby_tags_become_plain_values(self):
        data = gem_metadata.decode(packed())
        assert data["name"] == "packed"
        assert data["version"] == "1.2.0"
        assert data["required_ruby_version"] == ">= 3.0"
        assert data["dependencies"][0]["requirement"] == ">= 2.0, < 4"
        assert data["dependencies"][0]["type"] == ":runtime"

    def test_timestamps_are_strings(self):
        data = gem_metadata.decode(packed())
        assert data["date"].startswith("2023-05-01")

    def test_symbol_keys_lose_colon(self):
        data = gem_metadata.decode(packed("name: x\n:extra: 1\n"))
        assert data == {"name": "x", "extra": 1}

    def test_not_gzip(self):
        with pytest.raises(SecondaryManifestError, match="decompress"):
            gem_metadata.decode(b"plain text")

    def test_invalid_yaml(self):
        with pytest.raises(SecondaryManifestError, match="YAML"):
            gem_metadata.decode(packed("name: [unclosed\n"))

    def test_not_a_mapping(self):
        with pytest.raises(SecondaryManifestError):
            gem_metadata.decode(packed("- just\n- a list\n"))

    def test_arbitrary_python_tags_rejected(self):
        with pytest.raises(SecondaryManifestError):
            gem_metadata.decode(packed("!!python/object/apply:os.system ['true']\n"))


class TestToRecord:
    def test_record(self):
        record = gem_metadata.to_record(gem_metadata.decode(packed()), "metadata.gz")
        assert record.name == "packed"
        assert record.version == "1.2.0"
        assert record.licenses == ["MIT"]
        assert record.license is None
        assert record.path == "metadata.gz"
        assert [(d.name, d.requirement, d.type) for d in record.dependencies] == [
            ("rack", ">= 2.0, < 4", "runtime"),
            ("minitest", "~> 5.0", "development"),
        ]

    def test_missing_name(self):
        with pytest.raises(SecondaryManifestError):
            gem_metadata.to_record({"version": "1.0"}, "metadata.gz")

    @pytest.mark.parametrize(
        "fields",
        [{"files": 5}, {"licenses": 5}, {"files": [1, 2]}, {"dependencies": 5}],
    )
    def test_malformed_field_shapes(self, fields):
        with pytest.raises(SecondaryManifestError):
            gem_metadata.to_record({"name": "packed", **fields}, "metadata.gz")


class TestLoadSecondaryManifest:
    def test_normalized(self, write_tree):
        root = write_tree({"metadata.gz": packed()})
        record = load_secondary_manifest(root)
        assert record.files == ["README.md", "lib/packed.rb"]
        assert "date" not in record.extra
        assert "rubygems_version" not in record.extra
        assert "specification_version" not in record.extra
        assert "metadata" not in record.extra
        assert record.extra["summary"] == "A packed gem"

    def test_absent(self, tmp_path):
        assert load_secondary_manifest(tmp_path) is None

    def test_broken(self, write_tree):
        root = write_tree({"metadata.gz": b"\x1f\x8b garbage"})
        assert load_secondary_manifest(root) is None

    def test_malformed_shape_is_swallowed(self, write_tree):
        root = write_tree({"metadata.gz": packed("name: packed\nfiles: 5\n")})
        assert load_secondary_manifest(root) is None
