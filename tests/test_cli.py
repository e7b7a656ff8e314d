"""
Tests for CLI commands — sync, status, config check, and global options.
"""

import json
import warnings
from pathlib import Path

import pytest
from click.testing import CliRunner

from modsync.adapters.mock import MockPackageAdapter
from modsync.adapters.registry import AdapterRegistry
from modsync.main import cli

UNTRUSTED_ORIGIN = "https://nuget.corp.local/v2"


@pytest.fixture
def gallery(monkeypatch) -> MockPackageAdapter:
    """Replace the PowerShellGet backend with a mock for every command."""
    mock = MockPackageAdapter(adapter_name="powershellget")
    mock.add_installed("Pester", "5.4.0")
    mock.add_remote("Pester", "5.5.0")
    mock.add_installed("PSReadLine", "2.3.4")
    mock.add_remote("PSReadLine", "2.3.4")
    mock.add_remote("PSScriptAnalyzer", "1.22.0")

    def _registry(config):
        reg = AdapterRegistry()
        reg.register(mock)
        return reg

    monkeypatch.setattr("modsync.core.use_cases.sync.default_registry", _registry)
    monkeypatch.setattr("modsync.core.use_cases.status.default_registry", _registry)
    # Keep log lines out of captured output
    monkeypatch.setenv("MODSYNC_LOG_LEVEL", "CRITICAL")
    monkeypatch.delenv("MODSYNC_LOG_FILE", raising=False)
    return mock


@pytest.fixture
def config_file(write_config) -> Path:
    return write_config("packages: [Pester, PSReadLine]\n")


def _invoke(config: Path, *args: str, input: str | None = None):
    return CliRunner().invoke(cli, ["--config", str(config), *args], input=input)


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "modsync" in result.output
        assert "sync" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_sync_help_lists_flags(self):
        result = CliRunner().invoke(cli, ["sync", "--help"])
        assert result.exit_code == 0
        for flag in ("--install", "--update", "--scope", "--dry-run", "--what-if", "--force"):
            assert flag in result.output


class TestSyncCommand:
    def test_update_forced(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester", "--update", "--force")
        assert result.exit_code == 0
        assert "Pester" in result.output
        assert "1 changed" in result.output
        assert gallery.install_calls[0].params["version"] == "5.5.0"

    def test_prompt_accepted(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester", "--update", input="y\n")
        assert result.exit_code == 0
        assert "Update Pester?" in result.output
        assert len(gallery.install_calls) == 1

    def test_prompt_declined(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester", "--update", input="n\n")
        assert result.exit_code == 0
        assert "Declined" in result.output
        assert gallery.install_calls == []

    def test_names_from_config(self, gallery, config_file):
        result = _invoke(config_file, "sync", "--dry-run")
        assert result.exit_code == 0
        assert "Pester" in result.output
        assert "PSReadLine" in result.output

    def test_names_from_stdin(self, gallery, config_file):
        result = _invoke(config_file, "sync", "--install", "--dry-run", input="PSScriptAnalyzer\n")
        assert result.exit_code == 0
        assert "Would install PSScriptAnalyzer" in result.output
        assert ("query_installed", "Pester") not in gallery.call_log
        assert gallery.install_calls == []

    def test_stdin_names_need_force(self, gallery, config_file):
        result = _invoke(config_file, "sync", "--install", input="PSScriptAnalyzer\n")
        assert result.exit_code == 0
        assert "--force" in result.output
        assert "PSScriptAnalyzer" in result.output
        assert gallery.install_calls == []

    def test_piped_names_read_without_deprecation(self, gallery, config_file):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            result = _invoke(config_file, "sync", "--dry-run", input="PSReadLine\n")
        assert result.exit_code == 0
        assert ("query_installed", "PSReadLine") in gallery.call_log
        assert not [
            w for w in caught
            if issubclass(w.category, DeprecationWarning) and "modsync" in w.filename
        ]

    def test_no_confirmation_warning_when_nothing_changes(self, gallery, config_file):
        result = _invoke(config_file, "sync", "PSReadLine", "--update", "--json")
        assert result.exit_code == 0
        assert "No interactive confirmation" not in result.output
        assert json.loads(result.output)["report"]["changed"] == 0

    def test_end_of_input_declines_remaining_prompts(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Alpha", "Beta", "--install", input="")
        assert result.exit_code == 0
        assert "Aborted" not in result.output
        assert ("query_installed", "Alpha") in gallery.call_log
        assert ("query_installed", "Beta") in gallery.call_log
        assert gallery.install_calls == []
        assert "2 checked, 0 changed" in result.output

    def test_end_of_input_after_first_answer(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester", "PSScriptAnalyzer", "--update", "--install", input="y\n")
        assert result.exit_code == 0
        assert len(gallery.install_calls) == 1
        assert gallery.install_calls[0].params["name"] == "Pester"

    def test_what_if_alias(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester", "--update", "--what-if")
        assert result.exit_code == 0
        assert "[dry-run]" in result.output
        assert gallery.install_calls == []

    def test_scope_case_insensitive(self, gallery, config_file):
        result = _invoke(config_file, "sync", "PSScriptAnalyzer", "--install", "--force", "--scope", "allusers")
        assert result.exit_code == 0
        assert gallery.install_calls[0].params["scope"] == "AllUsers"

    def test_bad_scope(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester", "--scope", "Machine")
        assert result.exit_code == 2

    def test_fatal_issue_exits_nonzero(self, gallery, config_file):
        result = _invoke(config_file, "sync", "PSScriptAnalyzer", "Pester")
        assert result.exit_code == 1
        assert "not installed" in result.output
        assert "Update available for Pester" in result.output
        assert "1 failed" in result.output

    def test_warning_only_exits_zero(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester")
        assert result.exit_code == 0
        assert "1 warning(s)" in result.output

    def test_untrusted_source(self, gallery, config_file):
        gallery.add_installed("Corp.Tools", "1.0.0", origin=UNTRUSTED_ORIGIN)
        result = _invoke(config_file, "sync", "Corp.Tools", "--update", "--force")
        assert result.exit_code == 1
        assert "unsupported source" in result.output
        assert gallery.install_calls == []

    def test_verbose_shows_issue_context(self, gallery, config_file):
        result = _invoke(config_file, "--verbose", "sync", "PSScriptAnalyzer")
        assert result.exit_code == 1
        assert "[NotInstalled]" in result.output
        assert "reason: NotInstalled" in result.output

    def test_json(self, gallery, config_file):
        result = _invoke(config_file, "sync", "Pester", "--update", "--force", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["names"] == ["Pester"]
        assert data["report"]["status"] == "ok"
        assert data["report"]["outcomes"][0]["status"] == "updated"

    def test_json_failure(self, gallery, config_file):
        result = _invoke(config_file, "sync", "PSScriptAnalyzer", "--force", "--json")
        assert result.exit_code == 1
        data = json.loads(result.output)
        issue = data["report"]["outcomes"][0]["issues"][0]
        assert issue["kind"] == "NotInstalled"
        assert issue["severity"] == "error"

    def test_bad_config(self, gallery, write_config):
        config = write_config("timeout: nope\n")
        result = _invoke(config, "sync", "Pester")
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestStatusCommand:
    def test_status(self, gallery, write_config):
        config = write_config("packages: [Pester, PSReadLine, PSScriptAnalyzer]\n")
        result = _invoke(config, "status")
        assert result.exit_code == 0
        assert "PSGallery" in result.output
        assert "→ 5.5.0" in result.output
        assert "up to date" in result.output
        assert "not installed" in result.output
        assert gallery.install_calls == []

    def test_status_untrusted(self, gallery, config_file):
        gallery.add_installed("Corp.Tools", "1.0.0", origin=UNTRUSTED_ORIGIN)
        result = _invoke(config_file, "status", "Corp.Tools")
        assert result.exit_code == 0
        assert UNTRUSTED_ORIGIN in result.output

    def test_status_json(self, gallery, config_file):
        result = _invoke(config_file, "status", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        names = [p["name"] for p in data["packages"]]
        assert names == ["Pester", "PSReadLine"]
        assert data["packages"][0]["update_available"] is True

    def test_status_missing_config(self, gallery, tmp_path: Path):
        result = _invoke(tmp_path / "missing.yml", "status")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestConfigCheckCommand:
    def test_valid_config(self, gallery, config_file):
        result = _invoke(config_file, "config", "check")
        assert result.exit_code == 0
        assert "valid" in result.output.lower()
        assert "Pester, PSReadLine" in result.output

    def test_valid_config_json(self, gallery, config_file):
        result = _invoke(config_file, "config", "check", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["config"]["packages"] == ["Pester", "PSReadLine"]

    def test_invalid_config(self, gallery, write_config):
        config = write_config("scope: Machine\n")
        result = _invoke(config, "config", "check")
        assert result.exit_code == 1
        assert "errors" in result.output.lower()

    def test_invalid_config_json(self, gallery, write_config):
        config = write_config("packages: [Pester, '  ']\n")
        result = _invoke(config, "config", "check", "--json")
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["valid"] is False
        assert data["errors"]

    def test_warnings_shown(self, gallery, write_config):
        config = write_config("packages: [Pester, PESTER]\n")
        result = _invoke(config, "config", "check")
        assert result.exit_code == 0
        assert "Duplicate package names" in result.output
