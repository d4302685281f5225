"""Tests for the rubyscan CLI."""

from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from rubyscan.cli import main
from rubyscan.core.logging import resolve_level, setup_logging

QUIET = {"RUBYSCAN_LOG_LEVEL": "ERROR"}

GEMSPEC = """\
Gem::Specification.new do |s|
  s.name = "a"
  s.version = "0.1.0"
  s.add_runtime_dependency "b", ">= 1.0"
end
"""


@pytest.fixture
def runner():
    return CliRunner(env=QUIET)


class TestScanCommand:
    def test_outputs_sorted_json_units(self, runner, write_tree, monkeypatch):
        root = write_tree({"a.gemspec": GEMSPEC, "script.rb": "", "tools/x.rb": ""})
        monkeypatch.chdir(root)
        result = runner.invoke(main, ["scan", "--repo", "github.com/acme/widgets"])
        assert result.exit_code == 0, result.output
        units = json.loads(result.stdout)
        assert [u["Name"] for u in units] == ["a"]
        assert units[0]["Files"] == ["script.rb", "tools/x.rb", "."]
        assert units[0]["Dependencies"] == [{"name": "b", "version": ">= 1.0", "path": "a.gemspec"}]

    def test_empty_directory(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(main, ["scan"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "[]"

    def test_stdlib_repo_flag(self, runner, write_tree, monkeypatch):
        monkeypatch.chdir(write_tree({"lib/set.rb": ""}))
        result = runner.invoke(main, ["scan", "--repo", "github.com/ruby/ruby"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == []

    def test_subdir_is_accepted(self, runner, write_tree, monkeypatch):
        monkeypatch.chdir(write_tree({"hello.rb": ""}))
        result = runner.invoke(main, ["scan", "--subdir", "lib/foo"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["Name"] == "."

    def test_positional_arguments_rejected(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with patch("rubyscan.cli.scan") as mock_scan:
            result = runner.invoke(main, ["scan", "some/dir"])
        assert result.exit_code == 2
        assert "no args may be specified" in result.stderr
        assert result.stdout == ""
        mock_scan.assert_not_called()

    def test_scans_working_directory(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with patch("rubyscan.cli.scan", return_value=[]) as mock_scan:
            result = runner.invoke(main, ["scan", "--repo", "r"])
        assert result.exit_code == 0
        mock_scan.assert_called_once_with(tmp_path, repo="r")

    def test_logs_stay_off_stdout(self, write_tree, monkeypatch):
        root = write_tree({"dyn.gemspec": "Gem::Specification.new do |s|\n  s.name = ENV['X']\nend\n"})
        monkeypatch.chdir(root)
        result = CliRunner(env={"RUBYSCAN_LOG_LEVEL": "DEBUG"}).invoke(main, ["-v", "scan"])
        assert result.exit_code == 0
        units = json.loads(result.stdout)
        assert [u["Name"] for u in units] == ["dyn.gemspec"]
        assert "loader.strict_parse_failed" in result.stderr

    def test_help(self, runner):
        result = runner.invoke(main, ["scan", "--help"])
        assert result.exit_code == 0
        assert "--repo" in result.output
        assert "--subdir" in result.output


class TestSetupLogging:
    def test_level_from_environment(self):
        with patch.dict("os.environ", {"RUBYSCAN_LOG_LEVEL": "warning"}):
            setup_logging()
        assert logging.getLogger("rubyscan").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        with patch.dict("os.environ", {"RUBYSCAN_LOG_LEVEL": "loud"}):
            assert resolve_level() == "INFO"

    def test_verbose_forces_debug(self):
        with patch.dict("os.environ", {"RUBYSCAN_LOG_LEVEL": "ERROR"}):
            setup_logging(verbose=True)
        assert logging.getLogger("rubyscan").level == logging.DEBUG

    def test_json_format(self):
        with patch.dict("os.environ", {"RUBYSCAN_LOG_FORMAT": "json"}):
            setup_logging()
        handler = logging.getLogger().handlers[0]
        assert handler.formatter is not None
