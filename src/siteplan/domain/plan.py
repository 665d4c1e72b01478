"""Resolver outputs: the routing plan and the conflict report.

A resolve call produces exactly one of these. Both are frozen so a plan
handed to a renderer cannot drift from what was validated.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from siteplan.domain.descriptors import Backend, CacheRule, ProxyTarget
from siteplan.domain.types import ConflictKind


class RoutingRule(BaseModel):
    """One resolved route: ``domain`` + ``path_prefix`` to a backend."""

    model_config = {"frozen": True}

    domain: str
    path_prefix: str
    backend: Backend
    cache_policy: tuple[CacheRule, ...] = ()
    headers: dict[str, str] = Field(default_factory=dict)
    name: str
    source_index: int

    @property
    def is_catch_all(self) -> bool:
        return self.path_prefix == "/"


class DomainRoutes(BaseModel):
    """All rules for one domain, most specific path first."""

    model_config = {"frozen": True}

    domain: str
    rules: tuple[RoutingRule, ...]


class ResolvedPlan(BaseModel):
    """Conflict-free routing plan, domains in alphabetical order.

    Renderers consume the order as-is and must not re-sort it.
    """

    model_config = {"frozen": True}

    domains: tuple[DomainRoutes, ...] = ()

    @property
    def rules(self) -> tuple[RoutingRule, ...]:
        """Every rule in plan order."""
        return tuple(rule for group in self.domains for rule in group.rules)

    @property
    def domain_names(self) -> tuple[str, ...]:
        """Distinct domains, the only input a certificate request needs."""
        return tuple(group.domain for group in self.domains)

    @property
    def proxy_rules(self) -> tuple[RoutingRule, ...]:
        return tuple(rule for rule in self.rules if isinstance(rule.backend, ProxyTarget))


class Conflict(BaseModel):
    """Two descriptors that cannot both be honoured.

    ``indices`` refer to positions in the resolver's input, lowest first.
    """

    model_config = {"frozen": True}

    kind: ConflictKind
    indices: tuple[int, int]
    domain: str | None = None
    path_prefix: str | None = None
    port: int | None = None

    @property
    def message(self) -> str:
        first, second = self.indices
        if self.kind is ConflictKind.PORT_COLLISION:
            return f"apps #{first} and #{second} both bind local port {self.port}"
        return f"apps #{first} and #{second} both route {self.domain}{self.path_prefix}"


class ConflictReport(BaseModel):
    """Every conflict found in one resolve call."""

    model_config = {"frozen": True}

    conflicts: tuple[Conflict, ...]

    def of_kind(self, kind: ConflictKind) -> tuple[Conflict, ...]:
        return tuple(c for c in self.conflicts if c.kind is kind)
