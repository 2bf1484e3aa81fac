"""CLI helper for signing in the acting account."""

from __future__ import annotations

import click

from campusmart.client import MarketplaceClient
from campusmart.domain.entities import Account
from campusmart.domain.errors import DomainError


def login_or_exit(ctx: click.Context) -> tuple[MarketplaceClient, Account]:
    """Sign in with --email/--password (or their environment variables), or exit.

    This keeps error messaging and exit behavior consistent across commands.
    """
    client: MarketplaceClient = ctx.obj["client"]
    if client.actor is not None:
        return client, client.actor

    email = ctx.obj.get("email")
    password = ctx.obj.get("password")
    if not email or not password:
        click.echo(
            "Error: sign in with --email and --password "
            "(or CAMPUSMART_EMAIL / CAMPUSMART_PASSWORD)",
            err=True,
        )
        ctx.exit(1)
    try:
        return client, client.login(email, password)
    except DomainError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def read_upload(client: MarketplaceClient, path: str, bucket: str, folder: str) -> str:
    """Upload a local image file and return its public URL."""
    with open(path, "rb") as fh:
        data = fh.read()
    return client.upload_image(data, path, bucket, folder)


def require_admin(ctx: click.Context, actor: Account) -> None:
    """Exit unless the signed-in account is an administrator."""
    if not actor.is_admin:
        click.echo("Error: this command is only available to administrators", err=True)
        ctx.exit(1)
