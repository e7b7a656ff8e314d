"""
Tests for use cases — sync and status orchestration.
"""

from pathlib import Path

import pytest

from modsync.adapters.mock import MockPackageAdapter
from modsync.adapters.powershell.powershellget import PowerShellGetAdapter
from modsync.adapters.registry import AdapterRegistry
from modsync.core.models import DEFAULT_PACKAGES, SyncConfig
from modsync.core.use_cases.status import check_package, get_status
from modsync.core.use_cases.sync import default_registry, resolve_names, run_sync


@pytest.fixture
def gallery() -> MockPackageAdapter:
    """Mock registered under the production adapter name."""
    mock = MockPackageAdapter(adapter_name="powershellget")
    mock.add_installed("Pester", "5.4.0")
    mock.add_remote("Pester", "5.5.0")
    mock.add_installed("PSReadLine", "2.3.4")
    mock.add_remote("PSReadLine", "2.3.4")
    mock.add_remote("PSScriptAnalyzer", "1.22.0")
    return mock


@pytest.fixture
def gallery_registry(gallery: MockPackageAdapter) -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.register(gallery)
    return reg


class TestResolveNames:
    def test_explicit_names(self):
        assert resolve_names(["Pester", " PSReadLine "], SyncConfig()) == ["Pester", "PSReadLine"]

    def test_blank_names_dropped(self):
        assert resolve_names(["", "  "], SyncConfig(packages=["Pester"])) == ["Pester"]

    def test_falls_back_to_config(self):
        assert resolve_names(None, SyncConfig()) == list(DEFAULT_PACKAGES)

    def test_duplicates_kept(self):
        assert resolve_names(["Pester", "Pester"], SyncConfig()) == ["Pester", "Pester"]


class TestDefaultRegistry:
    def test_uses_configured_executable(self):
        reg = default_registry(SyncConfig(powershell="powershell.exe", timeout=60))
        adapter = reg.get("powershellget")
        assert isinstance(adapter, PowerShellGetAdapter)
        assert adapter.executable == "powershell.exe"


class TestRunSync:
    def test_update(self, write_config, gallery, gallery_registry):
        config = write_config("packages: [Pester, PSReadLine]\n")
        result = run_sync(config_path=config, update=True, force=True, registry=gallery_registry)
        assert result.error is None
        assert result.names == ["Pester", "PSReadLine"]
        statuses = {o.name: o.status for o in result.report.outcomes}
        assert statuses == {"Pester": "updated", "PSReadLine": "up_to_date"}
        assert gallery.install_calls[0].params["version"] == "5.5.0"

    def test_config_flags_apply(self, write_config, gallery, gallery_registry):
        config = write_config("""\
            packages: [PSScriptAnalyzer]
            install: true
            scope: AllUsers
        """)
        result = run_sync(config_path=config, force=True, registry=gallery_registry)
        assert result.report.outcomes[0].status == "installed"
        assert gallery.install_calls[0].params["scope"] == "AllUsers"

    def test_flags_override_config(self, write_config, gallery, gallery_registry):
        config = write_config("packages: [PSScriptAnalyzer]\ninstall: true\n")
        result = run_sync(config_path=config, install=False, force=True, registry=gallery_registry)
        assert result.report.outcomes[0].status == "failed"
        assert gallery.install_calls == []

    def test_names_override_config(self, write_config, gallery_registry):
        config = write_config("packages: [Pester]\n")
        result = run_sync(names=["PSReadLine"], config_path=config, registry=gallery_registry)
        assert result.names == ["PSReadLine"]

    def test_dry_run(self, write_config, gallery, gallery_registry):
        config = write_config("packages: [Pester]\n")
        result = run_sync(config_path=config, update=True, dry_run=True, registry=gallery_registry)
        assert result.report.dry_run
        assert result.report.outcomes[0].status == "planned"
        assert gallery.install_calls == []

    def test_confirm_callback(self, write_config, gallery, gallery_registry):
        config = write_config("packages: [Pester]\n")
        asked = []
        result = run_sync(
            config_path=config, update=True, registry=gallery_registry,
            confirm=lambda q: asked.append(q) or False,
        )
        assert asked == ["Update Pester?"]
        assert result.report.outcomes[0].status == "declined"

    def test_bad_config(self, write_config, gallery_registry):
        config = write_config("scope: Machine\n")
        result = run_sync(config_path=config, registry=gallery_registry)
        assert result.report is None
        assert "Invalid configuration" in result.error

    def test_empty_name_list(self, write_config, gallery_registry):
        config = write_config("packages: []\n")
        result = run_sync(config_path=config, registry=gallery_registry)
        assert "No packages to process" in result.error

    def test_unknown_adapter(self, write_config, gallery_registry):
        config = write_config("packages: [Pester]\n")
        result = run_sync(config_path=config, registry=gallery_registry, adapter_name="winget")
        assert "No adapter registered" in result.error

    def test_on_outcome_streams(self, write_config, gallery_registry):
        config = write_config("packages: [Pester, PSReadLine]\n")
        seen = []
        run_sync(config_path=config, registry=gallery_registry, on_outcome=lambda o: seen.append(o.name))
        assert seen == ["Pester", "PSReadLine"]

    def test_to_dict(self, write_config, gallery_registry):
        config = write_config("packages: [Pester]\n")
        d = run_sync(config_path=config, registry=gallery_registry).to_dict()
        assert d["names"] == ["Pester"]
        assert d["report"]["outcomes"][0]["status"] == "warning"

    def test_to_dict_error(self, tmp_path: Path, gallery_registry):
        d = run_sync(config_path=tmp_path / "missing.yml", registry=gallery_registry).to_dict()
        assert set(d) == {"error"}


class TestStatus:
    def test_rows(self, write_config, gallery, gallery_registry):
        config = write_config("packages: [Pester, PSReadLine, PSScriptAnalyzer]\n")
        result = get_status(config_path=config, registry=gallery_registry)
        assert result.error is None
        rows = {r.name: r for r in result.packages}

        assert rows["Pester"].installed_version == "5.4.0"
        assert rows["Pester"].latest_version == "5.5.0"
        assert rows["Pester"].update_available is True
        assert rows["Pester"].trusted is True

        assert rows["PSReadLine"].update_available is False

        assert rows["PSScriptAnalyzer"].installed_version is None
        assert rows["PSScriptAnalyzer"].latest_version == "1.22.0"
        assert rows["PSScriptAnalyzer"].trusted is None

        assert gallery.install_calls == []

    def test_untrusted_skips_repository(self, gallery):
        gallery.add_installed("Internal.Tools", "1.0.0", origin="https://nuget.corp.local/v2")
        row = check_package("Internal.Tools", gallery, SyncConfig())
        assert row.trusted is False
        assert row.latest_version is None
        assert ("find_latest", "Internal.Tools") not in gallery.call_log

    def test_query_errors_are_rows(self, gallery):
        gallery.set_failure("query_installed", "Pester", "broken")
        row = check_package("Pester", gallery, SyncConfig())
        assert row.error == "query installed failed: broken"

        gallery.reset()
        gallery.set_failure("find_latest", "Pester", "offline")
        row = check_package("Pester", gallery, SyncConfig())
        assert row.installed_version == "5.4.0"
        assert row.error == "find latest failed: offline"

    def test_backend_unavailable(self, write_config):
        reg = AdapterRegistry()
        reg.register(MockPackageAdapter(adapter_name="powershellget", available=False))
        result = get_status(config_path=write_config("packages: [Pester]\n"), registry=reg)
        assert "not available" in result.error
        assert result.to_dict() == {"error": result.error}

    def test_to_dict(self, write_config, gallery_registry):
        d = get_status(names=["Pester"], config_path=write_config("{}\n"), registry=gallery_registry).to_dict()
        assert d["repository"] == {"name": "PSGallery", "trusted_host": "www.powershellgallery.com"}
        assert d["backend"]["available"] is True
        assert d["packages"][0]["name"] == "Pester"
