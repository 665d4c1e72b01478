"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so a renamed key (for example ``path`` vs ``path_prefix``)
fails fast in tests instead of silently changing CLI JSON output.
"""

from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class RuleItem(BaseModel):
    """One routing rule row."""

    name: str
    path: str
    backend: Literal["static", "proxy"]
    target: str
    source_index: int
    cache_rules: int = 0


class DomainItem(BaseModel):
    """Rules for one domain, in evaluation order."""

    domain: str
    rules: list[RuleItem]


class PlanResultData(BaseModel):
    """Payload contract for ``PlanService.plan``."""

    domain_count: int
    rule_count: int
    domains: list[DomainItem]


class ValidatedItem(BaseModel):
    """One descriptor that passed validation."""

    index: int
    name: str
    domain: str
    path: str
    backend: Literal["static", "proxy"]


class ValidateResultData(BaseModel):
    """Payload contract for ``PlanService.validate``."""

    count: int
    items: list[ValidatedItem]


class DescriptorIssue(BaseModel):
    """Error detail row for a rejected descriptor."""

    index: int
    name: str | None = None
    code: str
    field: str
    value: Any = None
    message: str


class ConflictIssue(BaseModel):
    """Error detail row for a set-wide conflict."""

    kind: Literal["duplicate_route", "port_collision"]
    indices: list[int] = Field(min_length=2, max_length=2)
    domain: str | None = None
    path: str | None = None
    port: int | None = None
    message: str


class RenderedFile(BaseModel):
    """One generated configuration file."""

    path: str
    kind: Literal["nginx", "supervisor", "certbot"]
    content: str


class RenderResultData(BaseModel):
    """Payload contract for ``RenderService.render``."""

    count: int
    written: bool
    output_dir: str | None = None
    files: list[RenderedFile]


class CertificateResultData(BaseModel):
    """Payload contract for ``RenderService.certificates``."""

    domains: list[str]
    command: list[str]
