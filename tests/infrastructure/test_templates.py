"""Tests for template environment construction."""

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from siteplan.infrastructure.templates import build_template_environment


class TestBuildTemplateEnvironment:
    def test_packaged_templates(self) -> None:
        env = build_template_environment("nginx")
        assert "site.conf.j2" in env.list_templates()

    def test_namespaced_override(self, tmp_path: Path) -> None:
        override = tmp_path / ".siteplan" / "templates" / "supervisor"
        override.mkdir(parents=True)
        (override / "program.conf.j2").write_text("[program:{{ name }}]\n")
        env = build_template_environment("supervisor", project_root=tmp_path)
        assert env.get_template("program.conf.j2").render(name="web") == "[program:web]\n"

    def test_flat_override(self, tmp_path: Path) -> None:
        override = tmp_path / ".siteplan" / "templates"
        override.mkdir(parents=True)
        (override / "request.sh.j2").write_text("echo {{ command }}\n")
        env = build_template_environment("certbot", project_root=tmp_path)
        assert env.get_template("request.sh.j2").render(command="hi") == "echo hi\n"

    def test_missing_override_dir_falls_back(self, tmp_path: Path) -> None:
        env = build_template_environment("certbot", project_root=tmp_path)
        source = env.get_template("request.sh.j2").render(domains=["a.com"], command="certbot")
        assert source.startswith("#!/bin/sh\n")

    def test_strict_undefined(self) -> None:
        env = build_template_environment("nginx")
        with pytest.raises(UndefinedError):
            env.from_string("{{ missing }}").render()
