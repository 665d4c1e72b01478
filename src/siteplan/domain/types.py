"""Classification enums shared by descriptors, validation, and plans."""

from __future__ import annotations

from enum import StrEnum


class BackendKind(StrEnum):
    """What serves requests for a route."""

    STATIC = "static"
    PROXY = "proxy"


class ErrorCode(StrEnum):
    """Per-descriptor validation failures."""

    INVALID_DOMAIN = "invalid_domain"
    INVALID_PATH = "invalid_path"
    INVALID_PORT = "invalid_port"
    INVALID_STATIC_ROOT = "invalid_static_root"


class ConflictKind(StrEnum):
    """Set-wide binding conflicts between two descriptors."""

    DUPLICATE_ROUTE = "duplicate_route"
    PORT_COLLISION = "port_collision"


class RestartPolicy(StrEnum):
    """Supervisor restart behaviour for a proxied process."""

    ALWAYS = "always"
    ON_FAILURE = "on-failure"
    NEVER = "never"
