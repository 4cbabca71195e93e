"""Flask CLI commands for refresh token housekeeping."""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from authserver.bootstrap import get_auth_service
from authserver.services._shared.errors import NotFoundError


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh token maintenance commands."""


@tokens_cli.command("purge")
@with_appcontext
def purge_command() -> None:
    """Delete refresh tokens that are expired or revoked."""
    removed = get_auth_service().purge_refresh_tokens()
    click.echo(f"Purged {removed} refresh token(s).")


@tokens_cli.command("list")
@click.argument("email")
@with_appcontext
def list_command(email: str) -> None:
    """List stored refresh tokens of the user identified by EMAIL."""
    try:
        tokens = get_auth_service().list_refresh_tokens(email)
    except NotFoundError as exc:
        raise click.ClickException(f"No user with email {email!r}.") from exc
    if not tokens:
        click.echo("(no refresh tokens)")
        return
    for t in tokens:
        state = "revoked" if t.is_revoked else "active"
        click.echo(
            f"{t.fingerprint}  {state:<7}  created={t.created_at:%Y-%m-%d %H:%M}"
            f"  expires={t.expires_at:%Y-%m-%d %H:%M}"
        )
