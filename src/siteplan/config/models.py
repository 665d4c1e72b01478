"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, siteplan.toml only contains
overrides. A fresh project needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RenderConfig(BaseModel):
    """[render] section."""

    model_config = {"frozen": True}

    output_dir: str = "deploy"
    nginx_dirname: str = "nginx"
    supervisor_dirname: str = "supervisor"


class ProxyConfig(BaseModel):
    """[proxy] section."""

    model_config = {"frozen": True}

    upstream_host: str = "127.0.0.1"
    listen_port: int = Field(default=80, ge=1, le=65535)
    client_max_body_size: str = "50m"
    websocket: bool = True


class SupervisorConfig(BaseModel):
    """[supervisor] section."""

    model_config = {"frozen": True}

    default_user: str | None = None
    autostart: bool = True
    log_dir: str = "/var/log/supervisor"


class TlsConfig(BaseModel):
    """[tls] section."""

    model_config = {"frozen": True}

    email: str | None = None
    redirect: bool = True
    staging: bool = False
