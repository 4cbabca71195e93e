"""Flask CLI commands for administrative user management."""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from authserver.bootstrap import get_auth_service
from authserver.services._shared.errors import NotFoundError


@click.group("users")
def users_cli() -> None:
    """User administration commands."""


@users_cli.command("deactivate")
@click.argument("email")
@with_appcontext
def deactivate_command(email: str) -> None:
    """Deactivate the account of EMAIL and drop all of its refresh tokens."""
    try:
        removed = get_auth_service().deactivate_user(email)
    except NotFoundError as exc:
        raise click.ClickException(f"No user with email {email!r}.") from exc
    click.echo(f"Deactivated {email}; removed {removed} refresh token(s).")
