"""Per-descriptor validation.

``validate`` never raises for bad input: it returns a
:class:`DescriptorError` so callers can collect every problem and show
them to the operator in one pass.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel

from siteplan.domain.descriptors import (
    ApplicationDescriptor,
    ProxyTarget,
    StaticFiles,
    ValidDescriptor,
)
from siteplan.domain.types import ErrorCode

MIN_PORT = 1
MAX_PORT = 65535
MAX_DOMAIN_LENGTH = 253

_LABEL = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
_WHITESPACE = re.compile(r"\s")
# Characters that would end or reopen an nginx location directive.
_PATH_UNSAFE = re.compile(r"[\s;{}'\"#]")


class DescriptorError(BaseModel):
    """Why a single descriptor was rejected."""

    model_config = {"frozen": True}

    code: ErrorCode
    message: str
    field: str
    value: Any = None


def _domain_problem(domain: str) -> str | None:
    """Return a reason the domain is unusable, or None."""
    if not domain:
        return "domain is empty"
    if _WHITESPACE.search(domain):
        return "domain contains whitespace"
    if "://" in domain:
        return "domain must not include a scheme"
    if ":" in domain:
        return "domain must not include a port"
    if "/" in domain:
        return "domain must not include a path or trailing slash"
    if len(domain) > MAX_DOMAIN_LENGTH:
        return f"domain exceeds {MAX_DOMAIN_LENGTH} characters"
    for label in domain.lower().split("."):
        if not _LABEL.match(label):
            return f"invalid domain label {label!r}"
    return None


def validate(descriptor: ApplicationDescriptor) -> ValidDescriptor | DescriptorError:
    """Check one descriptor for internal well-formedness.

    Checks run domain, path, then backend; the first failure wins.
    """
    problem = _domain_problem(descriptor.domain)
    if problem is not None:
        return DescriptorError(
            code=ErrorCode.INVALID_DOMAIN,
            message=problem,
            field="domain",
            value=descriptor.domain,
        )

    path = descriptor.path_prefix
    if not path.startswith("/") or _PATH_UNSAFE.search(path):
        return DescriptorError(
            code=ErrorCode.INVALID_PATH,
            message="path prefix must start with '/' and contain no whitespace or ;{}'\"#",
            field="path_prefix",
            value=path,
        )

    backend = descriptor.backend
    if isinstance(backend, ProxyTarget) and not MIN_PORT <= backend.port <= MAX_PORT:
        return DescriptorError(
            code=ErrorCode.INVALID_PORT,
            message=f"port must be between {MIN_PORT} and {MAX_PORT}",
            field="backend.port",
            value=backend.port,
        )
    if isinstance(backend, StaticFiles) and not backend.root_directory.strip():
        return DescriptorError(
            code=ErrorCode.INVALID_STATIC_ROOT,
            message="static root directory is empty",
            field="backend.root_directory",
            value=backend.root_directory,
        )

    data = descriptor.model_dump()
    data["domain"] = descriptor.domain.lower()
    return ValidDescriptor.model_validate(data)
