"""Application descriptors — one declarative record per hosted app.

Descriptors are frozen value objects. Construction only enforces shape
(which backend, which fields); range and syntax checks belong to
:func:`siteplan.domain.validation.validate` so that bad input is reported
as data instead of failing at parse time.
"""

from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from siteplan.domain.types import BackendKind, RestartPolicy

ROOT_PATH = "/"


class CacheRule(BaseModel):
    """Cache duration for static files matching a set of extensions."""

    model_config = {"frozen": True}

    extensions: tuple[str, ...]
    expires: str = "30d"

    @property
    def pattern(self) -> str:
        """Case-insensitive location regex matching the extensions."""
        alternatives = "|".join(re.escape(ext.lstrip(".")) for ext in self.extensions)
        return rf"\.({alternatives})$"


class ProcessSpec(BaseModel):
    """How a supervisor should run the process behind a proxied port."""

    model_config = {"frozen": True}

    command: str
    working_directory: str | None = None
    restart: RestartPolicy = RestartPolicy.ALWAYS
    user: str | None = None
    environment: dict[str, str] = Field(default_factory=dict)


class StaticFiles(BaseModel):
    """Serve files directly from a directory on disk."""

    model_config = {"frozen": True}

    kind: Literal[BackendKind.STATIC] = BackendKind.STATIC
    root_directory: str
    index: str = "index.html"


class ProxyTarget(BaseModel):
    """Forward requests to a process listening on a local port."""

    model_config = {"frozen": True}

    kind: Literal[BackendKind.PROXY] = BackendKind.PROXY
    port: int
    process: ProcessSpec | None = None


Backend = Annotated[StaticFiles | ProxyTarget, Field(discriminator="kind")]


def normalize_path(path: str) -> str:
    """Strip trailing slashes, keeping the root path as ``/``."""
    return path.rstrip("/") or ROOT_PATH


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class ApplicationDescriptor(BaseModel):
    """One deployable unit bound to ``domain`` + ``path_prefix``.

    Attributes:
        domain: Host name the app answers on (no scheme, no port).
        path_prefix: URL prefix routed to the backend, ``/`` by default.
        backend: Either :class:`StaticFiles` or :class:`ProxyTarget`.
        cache_policy: Extension-based cache rules (static backends only).
        headers: Extra response headers added for this route.
        name: Operator label; derived from domain and path when omitted.
    """

    model_config = {"frozen": True}

    domain: str
    path_prefix: str = ROOT_PATH
    backend: Backend
    cache_policy: tuple[CacheRule, ...] = ()
    headers: dict[str, str] = Field(default_factory=dict)
    name: str | None = None

    @property
    def display_name(self) -> str:
        """Explicit name, or a slug built from domain and path."""
        if self.name:
            return self.name
        path = normalize_path(self.path_prefix)
        if path == ROOT_PATH:
            return _slug(self.domain)
        return f"{_slug(self.domain)}-{_slug(path)}"


class ValidDescriptor(ApplicationDescriptor):
    """A descriptor that passed validation.

    Only :func:`siteplan.domain.validation.validate` should build these;
    the domain is already lowercased.
    """

    @property
    def normalized_path(self) -> str:
        return normalize_path(self.path_prefix)
