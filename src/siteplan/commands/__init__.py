"""Subcommand modules for siteplan.

Provides register_commands() which uses deferred imports to keep
``siteplan --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register every standalone command on the root CLI group."""
    from siteplan.commands.certs import certs
    from siteplan.commands.plan import plan
    from siteplan.commands.render import render
    from siteplan.commands.validate import validate

    cli.add_command(validate)
    cli.add_command(plan)
    cli.add_command(render)
    cli.add_command(certs)
