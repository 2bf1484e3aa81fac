"""CLI error handling helpers."""

import click

from campusmart.domain.errors import DomainError, PartialTransitionError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, PartialTransitionError):
        click.echo(
            f"Completed: {error.completed_step}. Still to do: {error.pending_step}"
            + (f" ({error.target_id})" if error.target_id else ""),
            err=True,
        )
    ctx.exit(1)
