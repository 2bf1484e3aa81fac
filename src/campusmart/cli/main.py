"""Main CLI entry point."""

import logging
from pathlib import Path

import click

from campusmart.client import MarketplaceClient
from campusmart.config import load_settings
from campusmart.database.factories import create_datastore
from campusmart.providers.auth import LocalAuthProvider
from campusmart.providers.blobs import LocalBlobStore

# Import and register all commands at module level
from campusmart.cli.commands import (
    account,
    listing,
    lost,
    admin,
    message,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides CAMPUSMART_DB_PATH environment variable)",
    envvar="CAMPUSMART_DB_PATH",
)
@click.option(
    "--db-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="CAMPUSMART_DB_URL",
)
@click.option("--email", help="Email of the acting account", envvar="CAMPUSMART_EMAIL")
@click.option("--password", help="Password of the acting account", envvar="CAMPUSMART_PASSWORD")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, db_url: str | None, email: str | None, password: str | None, verbose: bool):
    """Campusmart - campus marketplace.

    List and browse second-hand items, message other students, report
    listings and claim lost-and-found items. Administrators moderate
    accounts, listings, complaints and claims.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Initialize the datastore only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = load_settings()
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

        datastore = create_datastore(database_url=db_url, database_path=db_path)
        datastore.connect()
        datastore.initialize_schema()

        blob_dir = settings.blob_dir
        if blob_dir is None:
            base = Path(db_path).parent if db_path else Path.home() / ".campusmart"
            blob_dir = str(base / "blobs")

        client = MarketplaceClient(
            datastore,
            LocalAuthProvider(datastore),
            settings=settings,
            blobs=LocalBlobStore(blob_dir),
        )
        ctx.obj["client"] = client
        ctx.obj["email"] = email
        ctx.obj["password"] = password
        ctx.call_on_close(datastore.disconnect)
        ctx.call_on_close(client.close)


# Register all commands
account.register_commands(cli)
listing.register_commands(cli)
lost.register_commands(cli)
admin.register_commands(cli)
message.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
