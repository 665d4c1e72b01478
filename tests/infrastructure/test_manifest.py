"""Tests for YAML manifest loading."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from siteplan.domain.descriptors import ProxyTarget, StaticFiles
from siteplan.domain.types import RestartPolicy
from siteplan.infrastructure.manifest import ManifestError, load_manifest, parse_manifest
from tests.conftest import HYBRID_MANIFEST


class TestLoadManifest:
    def test_hybrid_manifest(self, write_manifest: Callable[[str], Path]) -> None:
        descriptors = load_manifest(write_manifest(HYBRID_MANIFEST))
        assert [d.display_name for d in descriptors] == ["site", "api", "erp"]

        site, api, erp = descriptors
        assert isinstance(site.backend, StaticFiles)
        assert site.backend.root_directory == "/var/www/example"
        assert site.cache_policy[0].extensions == ("css", "js")
        assert site.headers == {"X-Frame-Options": "SAMEORIGIN"}

        assert isinstance(api.backend, ProxyTarget)
        assert api.path_prefix == "/api/"
        assert api.backend.port == 3000
        assert api.backend.process is not None
        assert api.backend.process.working_directory == "/srv/api"
        assert api.backend.process.environment == {"NODE_ENV": "production"}

        assert isinstance(erp.backend, ProxyTarget)
        assert erp.backend.process is not None
        assert erp.backend.process.restart is RestartPolicy.ON_FAILURE

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="cannot read"):
            load_manifest(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, write_manifest: Callable[[str], Path]) -> None:
        with pytest.raises(ManifestError, match="invalid YAML"):
            load_manifest(write_manifest("apps: [\n  - domain: x.com\n"))

    def test_empty_file(self, write_manifest: Callable[[str], Path]) -> None:
        with pytest.raises(ManifestError, match="'apps' list"):
            load_manifest(write_manifest(""))

    def test_empty_apps(self, write_manifest: Callable[[str], Path]) -> None:
        assert load_manifest(write_manifest("apps: []\n")) == []


class TestParseManifest:
    def test_not_a_mapping(self) -> None:
        with pytest.raises(ManifestError, match="mapping"):
            parse_manifest(["x.com"])

    def test_apps_not_a_list(self) -> None:
        with pytest.raises(ManifestError, match="'apps' must be a list"):
            parse_manifest({"apps": {"domain": "x.com"}})

    def test_defaults(self) -> None:
        (descriptor,) = parse_manifest({"apps": [{"domain": "x.com", "static": {"root": "/srv"}}]})
        assert descriptor.path_prefix == "/"
        assert descriptor.name is None
        assert isinstance(descriptor.backend, StaticFiles)
        assert descriptor.backend.index == "index.html"

    def test_both_backends_rejected(self) -> None:
        app = {"domain": "x.com", "static": {"root": "/srv"}, "proxy": {"port": 3000}}
        with pytest.raises(ManifestError, match=r"apps\[0\].*exactly one"):
            parse_manifest({"apps": [app]})

    def test_no_backend_rejected(self) -> None:
        with pytest.raises(ManifestError, match="exactly one"):
            parse_manifest({"apps": [{"domain": "x.com"}]})

    def test_unknown_key_reports_location(self) -> None:
        apps = [
            {"domain": "x.com", "proxy": {"port": 3000}},
            {"domain": "y.com", "proxy": {"port": 3001, "host": "0.0.0.0"}},
        ]
        with pytest.raises(ManifestError, match=r"apps\[1\]: proxy\.host"):
            parse_manifest({"apps": apps})

    def test_missing_domain(self) -> None:
        with pytest.raises(ManifestError, match=r"apps\[0\]: domain"):
            parse_manifest({"apps": [{"proxy": {"port": 3000}}]})

    def test_bad_restart_policy(self) -> None:
        app = {"domain": "x.com", "proxy": {"port": 1, "process": {"command": "a", "restart": "x"}}}
        with pytest.raises(ManifestError, match="restart"):
            parse_manifest({"apps": [app]})

    def test_out_of_range_port_loads(self) -> None:
        (descriptor,) = parse_manifest({"apps": [{"domain": "x.com", "proxy": {"port": 70000}}]})
        assert isinstance(descriptor.backend, ProxyTarget)
        assert descriptor.backend.port == 70000

    def test_env_values_become_strings(self) -> None:
        process = {"command": "run", "env": {"WORKERS": 4, "DEBUG": False, "NAME": "api"}}
        app = {"domain": "x.com", "proxy": {"port": 3000, "process": process}}
        (descriptor,) = parse_manifest({"apps": [app]})
        assert isinstance(descriptor.backend, ProxyTarget)
        assert descriptor.backend.process is not None
        assert descriptor.backend.process.environment == {
            "WORKERS": "4",
            "DEBUG": "False",
            "NAME": "api",
        }

    def test_empty_cache_extensions_rejected(self) -> None:
        app = {"domain": "x.com", "static": {"root": "/srv"}, "cache": [{"extensions": []}]}
        with pytest.raises(ManifestError, match="cache"):
            parse_manifest({"apps": [app]})
