"""YAML manifest loading — the input source for descriptors.

The manifest only has to be the right *shape* here. Whether a domain,
path, or port is actually usable is decided later by the validator, so a
port of ``70000`` loads fine and is reported as ``invalid_port``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from siteplan.domain.descriptors import (
    ApplicationDescriptor,
    CacheRule,
    ProcessSpec,
    ProxyTarget,
    StaticFiles,
)
from siteplan.domain.types import RestartPolicy

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """The manifest could not be read or has the wrong shape."""


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class _CacheEntry(_Section):
    extensions: list[str] = Field(min_length=1)
    expires: str = "30d"


class _ProcessEntry(_Section):
    command: str
    directory: str | None = None
    restart: RestartPolicy = RestartPolicy.ALWAYS
    user: str | None = None
    env: dict[str, str | int | float | bool] = Field(default_factory=dict)


class _StaticEntry(_Section):
    root: str
    index: str = "index.html"


class _ProxyEntry(_Section):
    port: int
    process: _ProcessEntry | None = None


class _AppEntry(_Section):
    name: str | None = None
    domain: str
    path: str = "/"
    static: _StaticEntry | None = None
    proxy: _ProxyEntry | None = None
    cache: list[_CacheEntry] = Field(default_factory=list)
    headers: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _one_backend(self) -> Self:
        if (self.static is None) == (self.proxy is None):
            raise ValueError("exactly one of 'static' or 'proxy' is required")
        return self

    def to_descriptor(self) -> ApplicationDescriptor:
        backend: StaticFiles | ProxyTarget
        if self.static is not None:
            backend = StaticFiles(root_directory=self.static.root, index=self.static.index)
        else:
            assert self.proxy is not None
            process = None
            if self.proxy.process is not None:
                spec = self.proxy.process
                process = ProcessSpec(
                    command=spec.command,
                    working_directory=spec.directory,
                    restart=spec.restart,
                    user=spec.user,
                    environment={k: str(v) for k, v in spec.env.items()},
                )
            backend = ProxyTarget(port=self.proxy.port, process=process)
        return ApplicationDescriptor(
            name=self.name,
            domain=self.domain,
            path_prefix=self.path,
            backend=backend,
            cache_policy=tuple(
                CacheRule(extensions=tuple(c.extensions), expires=c.expires) for c in self.cache
            ),
            headers=self.headers,
        )


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(part) for part in err["loc"])
    return f"{where}: {err['msg']}" if where else err["msg"]


def parse_manifest(data: Any) -> list[ApplicationDescriptor]:
    """Convert already-parsed manifest data into descriptors, in order."""
    if not isinstance(data, dict) or "apps" not in data:
        raise ManifestError("manifest must be a mapping with an 'apps' list")
    apps = data["apps"]
    if not isinstance(apps, list):
        raise ManifestError("'apps' must be a list")

    descriptors: list[ApplicationDescriptor] = []
    for index, raw in enumerate(apps):
        try:
            entry = _AppEntry.model_validate(raw)
        except ValidationError as exc:
            raise ManifestError(f"apps[{index}]: {_first_error(exc)}") from exc
        descriptors.append(entry.to_descriptor())
    return descriptors


def load_manifest(path: Path) -> list[ApplicationDescriptor]:
    """Read a YAML manifest from *path*.

    Raises:
        ManifestError: unreadable file, YAML syntax error, or bad shape.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"cannot read {path}: {exc.strerror or exc}") from exc

    try:
        data = YAML(typ="safe", pure=True).load(text)
    except YAMLError as exc:
        raise ManifestError(f"invalid YAML in {path}: {exc}") from exc

    descriptors = parse_manifest(data)
    logger.debug("Loaded %d app(s) from %s", len(descriptors), path)
    return descriptors
