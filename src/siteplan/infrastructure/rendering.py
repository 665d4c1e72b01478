"""Plan rendering — nginx sites, supervisor programs, certbot requests.

The renderer trusts the plan's order: locations are emitted exactly as
the resolver ordered them and domains in plan order. It never touches
the filesystem; :mod:`siteplan.infrastructure.filesystem` writes the
result.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from siteplan.config.models import ProxyConfig, RenderConfig, SupervisorConfig, TlsConfig
from siteplan.domain.descriptors import ProxyTarget, StaticFiles
from siteplan.domain.plan import DomainRoutes, ResolvedPlan, RoutingRule
from siteplan.domain.types import RestartPolicy
from siteplan.infrastructure.templates import build_template_environment

_AUTORESTART = {
    RestartPolicy.ALWAYS: "true",
    RestartPolicy.ON_FAILURE: "unexpected",
    RestartPolicy.NEVER: "false",
}


@dataclass(frozen=True)
class Artifact:
    """One rendered file, path relative to the output directory."""

    path: str
    kind: str
    content: str


def safe_name(name: str) -> str:
    """Reduce a label to characters safe for file and program names."""
    return re.sub(r"[^A-Za-z0-9_.-]+", "-", name).strip("-.") or "app"


def _program_name(rule: RoutingRule, used: set[str]) -> str:
    """Supervisor program name not yet in *used*; clashes take the source index."""
    base = safe_name(rule.name)
    name = base
    attempt = 1
    while name in used:
        suffix = str(rule.source_index) if attempt == 1 else f"{rule.source_index}-{attempt}"
        name = f"{base}-{suffix}"
        attempt += 1
    return name


def _env_value(value: str) -> str:
    """Quote a value for supervisor's ``environment=`` line."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("%", "%%")
    return f'"{escaped}"'


def certbot_command(domains: tuple[str, ...], tls: TlsConfig) -> list[str]:
    """Argument vector requesting one certificate covering *domains*."""
    argv = ["certbot", "--nginx"]
    for domain in domains:
        argv += ["-d", domain]
    argv += ["--non-interactive", "--agree-tos"]
    if tls.email:
        argv += ["-m", tls.email]
    else:
        argv.append("--register-unsafely-without-email")
    argv.append("--redirect" if tls.redirect else "--no-redirect")
    if tls.staging:
        argv.append("--staging")
    return argv


class PlanRenderer:
    """Turn a :class:`ResolvedPlan` into configuration text."""

    def __init__(
        self,
        *,
        render: RenderConfig,
        proxy: ProxyConfig,
        supervisor: SupervisorConfig,
        tls: TlsConfig,
        project_root: Path | None = None,
    ) -> None:
        self._render = render
        self._proxy = proxy
        self._supervisor = supervisor
        self._tls = tls
        self._project_root = project_root

    def render(self, plan: ResolvedPlan) -> list[Artifact]:
        """Render every artifact for *plan*, nginx first, in plan order."""
        artifacts = [self.nginx_site(group) for group in plan.domains]
        artifacts += self.supervisor_programs(plan)
        if plan.domain_names:
            artifacts.append(self.certbot_request(plan.domain_names))
        return artifacts

    # ── nginx ─────────────────────────────────────────────────────────

    def _location(self, rule: RoutingRule) -> dict[str, Any]:
        match = "/" if rule.is_catch_all else f"{rule.path_prefix}/"
        loc: dict[str, Any] = {
            "name": rule.name,
            "match": match,
            "kind": rule.backend.kind.value,
            "headers": sorted(rule.headers.items()),
            "cache": [],
        }
        backend = rule.backend
        if isinstance(backend, ProxyTarget):
            loc["upstream"] = f"http://{self._proxy.upstream_host}:{backend.port}"
        elif isinstance(backend, StaticFiles):
            root = backend.root_directory.rstrip("/") or "/"
            if rule.is_catch_all:
                loc["root_directive"], loc["root"] = "root", root
            else:
                loc["root_directive"], loc["root"] = "alias", f"{root.rstrip('/')}/"
            loc["index"] = backend.index
            loc["cache"] = [{"pattern": c.pattern, "expires": c.expires} for c in rule.cache_policy]
        return loc

    def nginx_site(self, group: DomainRoutes) -> Artifact:
        env = build_template_environment("nginx", project_root=self._project_root)
        content = env.get_template("site.conf.j2").render(
            domain=group.domain,
            listen_port=self._proxy.listen_port,
            client_max_body_size=self._proxy.client_max_body_size,
            websocket=self._proxy.websocket,
            locations=[self._location(rule) for rule in group.rules],
        )
        return Artifact(
            path=f"{self._render.nginx_dirname}/{safe_name(group.domain)}.conf",
            kind="nginx",
            content=content,
        )

    # ── supervisor ────────────────────────────────────────────────────

    def supervisor_programs(self, plan: ResolvedPlan) -> list[Artifact]:
        """One program per proxied rule that declares a process."""
        env = build_template_environment("supervisor", project_root=self._project_root)
        template = env.get_template("program.conf.j2")
        artifacts: list[Artifact] = []
        used: set[str] = set()
        for rule in plan.proxy_rules:
            backend = rule.backend
            assert isinstance(backend, ProxyTarget)
            if backend.process is None:
                continue
            name = _program_name(rule, used)
            used.add(name)

            process = backend.process
            variables = {"PORT": str(backend.port), **process.environment}
            content = template.render(
                name=name,
                domain=rule.domain,
                path=rule.path_prefix,
                port=backend.port,
                command=process.command,
                directory=process.working_directory,
                user=process.user or self._supervisor.default_user,
                autostart=str(self._supervisor.autostart).lower(),
                autorestart=_AUTORESTART[process.restart],
                environment=",".join(
                    f"{key}={_env_value(value)}" for key, value in sorted(variables.items())
                ),
                log_dir=self._supervisor.log_dir.rstrip("/"),
            )
            artifacts.append(
                Artifact(
                    path=f"{self._render.supervisor_dirname}/{name}.conf",
                    kind="supervisor",
                    content=content,
                )
            )
        return artifacts

    # ── certbot ───────────────────────────────────────────────────────

    def certbot_request(self, domains: tuple[str, ...]) -> Artifact:
        env = build_template_environment("certbot", project_root=self._project_root)
        command = shlex.join(certbot_command(domains, self._tls))
        content = env.get_template("request.sh.j2").render(domains=domains, command=command)
        return Artifact(path="certbot.sh", kind="certbot", content=content)
