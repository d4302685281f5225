"""Tests for Gemfile and Gemfile.lock parsing, lookup, and lock resolution."""

from __future__ import annotations

import pytest

from rubyscan.exceptions import CompanionFileError, LockfileError
from rubyscan.scanner.companion import find_companion, load_companion
from rubyscan.scanner.lockfile import find_lockfile, load_locked_versions, resolve
from rubyscan.scanner.models import DependencyDeclaration, LockedVersionTable, ResolvedDependency
from rubyscan.scanner.parsers import gemfile, gemfile_lock
from rubyscan.scanner.parsers.requirement import normalize_constraint, requirement_string

GEMFILE = """\
source "https://rubygems.org"

gemspec

gem "rails", "~> 7.0"
gem "pg", ">= 1.1", require: false # database

group :development, :test do
  gem "rspec-rails"
  group :test do
    gem "capybara"
  end
end

gem "rubocop", group: :development
gem "puma", groups: [:production]

platforms :jruby do
  gem "jruby-openssl"
end

if ENV["CI"]
  gem "simplecov"
end

gem "nokogiri"
"""

GEMFILE_LOCK = """\
GEM
  remote: https://rubygems.org/
  specs:
    foo (2.3.1)
      bar (>= 1.0)
    nokogiri (1.15.4-x86_64-linux)
      racc (~> 1.4)
    nokogiri (1.15.4-arm64-darwin)

PATH
  remote: .
  specs:
    mygem (0.1.0)
      foo (>= 2.0)

PLATFORMS
  ruby

DEPENDENCIES
  foo (>= 2.0)
  mygem!

BUNDLED WITH
   2.4.10
"""


# ── Gemfile parsing ──────────────────────────────────────────────────────


class TestGemfileParser:
    def test_declarations_and_groups(self):
        deps = {d.name: (d.requirement, d.groups) for d in gemfile.parse(GEMFILE)}
        assert deps == {
            "rails": ("~> 7.0", frozenset({"default"})),
            "pg": (">= 1.1", frozenset({"default"})),
            "rspec-rails": (">= 0", frozenset({"development", "test"})),
            "capybara": (">= 0", frozenset({"development", "test"})),
            "rubocop": (">= 0", frozenset({"development"})),
            "puma": (">= 0", frozenset({"production"})),
            "jruby-openssl": (">= 0", frozenset({"default"})),
            "simplecov": (">= 0", frozenset({"default"})),
            "nokogiri": (">= 0", frozenset({"default"})),
        }

    def test_file_order_preserved(self):
        names = [d.name for d in gemfile.parse(GEMFILE)]
        assert names[:3] == ["rails", "pg", "rspec-rails"]
        assert names[-1] == "nokogiri"

    def test_declarations_are_runtime_typed(self):
        assert {d.type for d in gemfile.parse(GEMFILE)} == {"runtime"}

    def test_continuation_lines(self):
        content = 'gem "foo",\n    git: "https://github.com/x/foo",\n    branch: "main"\ngem "bar"\n'
        deps = gemfile.parse(content)
        assert [(d.name, d.requirement) for d in deps] == [("foo", ">= 0"), ("bar", ">= 0")]

    def test_parenthesized_gem_call(self):
        deps = gemfile.parse('gem("faraday", "~> 2.0", ">= 2.7")\n')
        assert deps[0].requirement == "~> 2.0, >= 2.7"

    def test_unreadable_gem_line_skipped(self):
        deps = gemfile.parse('gem NAME_FROM_ENV\ngem "ok"\n')
        assert [d.name for d in deps] == ["ok"]

    def test_hash_in_string_is_not_a_comment(self):
        deps = gemfile.parse('gem "foo", git: "https://example.com/#fragment"\n')
        assert [d.name for d in deps] == ["foo"]

    def test_malformed_gem_line(self):
        with pytest.raises(CompanionFileError):
            gemfile.parse('gem "oops\n')

    def test_invalid_code_point(self):
        with pytest.raises(CompanionFileError, match="invalid code point"):
            gemfile.parse('gem "rack"\ngem "x\\u{110000}"\n')


class TestCompanionLoading:
    def test_gemfile_preferred_over_gems_rb(self, write_tree):
        root = write_tree({"Gemfile": "", "gems.rb": ""})
        assert find_companion(root) == root / "Gemfile"

    def test_gems_rb(self, write_tree):
        root = write_tree({"gems.rb": ""})
        assert find_companion(root) == root / "gems.rb"

    def test_absent(self, tmp_path):
        assert find_companion(tmp_path) is None

    def test_malformed_companion_yields_nothing(self, write_tree):
        root = write_tree({"Gemfile": 'gem "oops\n'})
        assert load_companion(root / "Gemfile") == []

    def test_invalid_code_point_yields_nothing(self, write_tree):
        root = write_tree({"Gemfile": 'gem "x\\u{110000}"\n'})
        assert load_companion(root / "Gemfile") == []


# ── Gemfile.lock parsing ─────────────────────────────────────────────────


class TestGemfileLockParser:
    def test_locked_versions(self):
        assert gemfile_lock.parse(GEMFILE_LOCK) == {
            "foo": "2.3.1",
            "nokogiri": "1.15.4",
            "mygem": "0.1.0",
        }

    def test_nested_requirements_are_not_locked(self):
        locked = gemfile_lock.parse(GEMFILE_LOCK)
        assert "bar" not in locked
        assert "racc" not in locked

    def test_git_section(self):
        content = (
            "GIT\n"
            "  remote: https://github.com/x/widget.git\n"
            "  revision: abc123\n"
            "  specs:\n"
            "    widget (0.4.0)\n"
        )
        assert gemfile_lock.parse(content) == {"widget": "0.4.0"}

    def test_merge_conflict(self):
        content = GEMFILE_LOCK.replace("    foo (2.3.1)\n", "<<<<<<< HEAD\n    foo (2.3.1)\n")
        with pytest.raises(LockfileError):
            gemfile_lock.parse(content)

    def test_empty(self):
        assert gemfile_lock.parse("") == {}


class TestLockedVersionTable:
    def test_load(self, write_tree):
        root = write_tree({"Gemfile.lock": GEMFILE_LOCK})
        table = load_locked_versions(root)
        assert table["foo"] == "2.3.1"
        assert table.source == str(root / "Gemfile.lock")
        assert len(table) == 3

    def test_gems_locked(self, write_tree):
        root = write_tree({"gems.locked": GEMFILE_LOCK})
        assert find_lockfile(root) == root / "gems.locked"

    def test_absent_lockfile_is_empty(self, tmp_path):
        assert dict(load_locked_versions(tmp_path)) == {}

    def test_malformed_lockfile_is_empty(self, write_tree):
        root = write_tree({"Gemfile.lock": "<<<<<<< HEAD\n=======\n>>>>>>> other\n"})
        table = load_locked_versions(root)
        assert len(table) == 0
        assert table.source is None


class TestResolve:
    def _dep(self, name, requirement=">= 0"):
        return DependencyDeclaration(name=name, requirement=requirement, path="a.gemspec")

    def test_locked_version_replaces_requirement(self):
        table = LockedVersionTable({"foo": "2.3.1"})
        assert resolve([self._dep("foo", ">= 2.0")], table) == [
            ResolvedDependency("foo", "2.3.1", "a.gemspec")
        ]

    def test_unlocked_keeps_requirement(self):
        assert resolve([self._dep("foo", ">= 2.0")], LockedVersionTable()) == [
            ResolvedDependency("foo", ">= 2.0", "a.gemspec")
        ]

    def test_lookup_is_case_sensitive(self):
        table = LockedVersionTable({"Foo": "1.0"})
        assert resolve([self._dep("foo", "~> 0.9")], table)[0].version == "~> 0.9"

    def test_sorted_by_name(self):
        deps = [self._dep("zlib"), self._dep("abbrev"), self._dep("json")]
        names = [d.name for d in resolve(deps, LockedVersionTable())]
        assert names == ["abbrev", "json", "zlib"]


class TestRequirement:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (">=1.0", ">= 1.0"),
            ("~> 2.3", "~> 2.3"),
            ("1.0", "= 1.0"),
            ("  < 4 ", "< 4"),
            ("!= 1.2.3.beta", "!= 1.2.3.beta"),
        ],
    )
    def test_normalize_constraint(self, raw, expected):
        assert normalize_constraint(raw) == expected

    def test_default(self):
        assert requirement_string([]) == ">= 0"

    def test_comma_joined_and_deduplicated(self):
        assert requirement_string([">= 1.0, < 2", ">=1.0"]) == ">= 1.0, < 2"
