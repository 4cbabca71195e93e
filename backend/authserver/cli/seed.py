"""``flask seed``: development fixtures."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from authserver.bootstrap import get_auth_service
from authserver.seeds import seed_data


@click.group("seed")
@click.option("--verbose", is_flag=True, help="Log every fixture row, not only creations.")
def seed_cli(verbose: bool) -> None:
    """Seed the database with development fixtures."""
    logging.getLogger(seed_data.__name__).setLevel(logging.DEBUG if verbose else logging.INFO)


@seed_cli.command("run")
@with_appcontext
def run_command() -> None:
    """Create the development test user unless it already exists."""
    service = get_auth_service()
    summary = seed_data.run_all(service.uow, service.hasher)
    for table, counters in sorted(summary.items()):
        click.echo(f"{table}: created={counters['created']} existing={counters['existing']}")
