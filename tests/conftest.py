"""Shared pytest fixtures and test helpers for siteplan tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from siteplan.domain.descriptors import (
    ApplicationDescriptor,
    CacheRule,
    ProcessSpec,
    ProxyTarget,
    StaticFiles,
)
from siteplan.services.telemetry import disable_telemetry

HYBRID_MANIFEST = """\
apps:
  - name: site
    domain: example.com
    static:
      root: /var/www/example
    cache:
      - extensions: [css, js]
        expires: 30d
    headers:
      X-Frame-Options: SAMEORIGIN
  - name: api
    domain: example.com
    path: /api/
    proxy:
      port: 3000
      process:
        command: node server.js
        directory: /srv/api
        env:
          NODE_ENV: production
  - name: erp
    domain: erp.example.org
    proxy:
      port: 8000
      process:
        command: /srv/erp/env/bin/gunicorn app:wsgi -b 127.0.0.1:8000
        directory: /srv/erp
        restart: on-failure
"""


@pytest.fixture(autouse=True)
def _isolate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Run every test from an empty directory with clean env and logging."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SITEPLAN_CONFIG", raising=False)
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[str], Path]:
    """Write YAML text to ``apps.yaml`` in the temp dir and return its path."""

    def _write(text: str, name: str = "apps.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Descriptor builders (used across domain and service test modules)
# ---------------------------------------------------------------------------


def proxy(domain: str, port: int, path: str = "/", **kwargs: Any) -> ApplicationDescriptor:
    """Build a proxy descriptor."""
    process = kwargs.pop("process", None)
    if isinstance(process, str):
        process = ProcessSpec(command=process)
    return ApplicationDescriptor(
        domain=domain,
        path_prefix=path,
        backend=ProxyTarget(port=port, process=process),
        **kwargs,
    )


def static(
    domain: str, root: str = "/var/www/site", path: str = "/", **kwargs: Any
) -> ApplicationDescriptor:
    """Build a static-files descriptor; ``cache`` maps expiry to extensions."""
    cache = kwargs.pop("cache", {})
    return ApplicationDescriptor(
        domain=domain,
        path_prefix=path,
        backend=StaticFiles(root_directory=root),
        cache_policy=tuple(
            CacheRule(extensions=tuple(exts), expires=expires) for expires, exts in cache.items()
        ),
        **kwargs,
    )
