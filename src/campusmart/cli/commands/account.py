"""Account management commands."""

import click

from campusmart.cli.actor_login import login_or_exit, read_upload, require_admin
from campusmart.cli.error_handling import handle_domain_error
from campusmart.domain.errors import DomainError
from campusmart.providers.blobs import LISTING_BUCKET


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("signup")
@click.argument("email")
@click.option("--name", required=True, help="Full name")
@click.option("--reg-no", required=True, help="Registration number")
@click.option("--branch", required=True, help="Branch of study")
@click.option("--year", type=int, required=True, help="Year of study")
@click.option("--hostel", required=True, help="Hostel block")
@click.option(
    "--new-password", prompt="Password", hide_input=True, confirmation_prompt=True,
    help="Password for the new account",
)
@click.pass_context
def signup(ctx, email: str, name: str, reg_no: str, branch: str, year: int, hostel: str, new_password: str):
    """Create a new account.

    A verification link is sent to EMAIL; log in after verifying it.

    Examples:
        campusmart account signup asha@student.edu --name "Asha Rao" \\
            --reg-no 21BCE0001 --branch CSE --year 2 --hostel A
    """
    client = ctx.obj["client"]
    try:
        account_id = client.session.signup(
            email=email,
            password=new_password,
            display_name=name,
            registration_number=reg_no,
            branch=branch,
            year=year,
            hostel_block=hostel,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{name}' (ID: {account_id})")
    click.echo("Check your inbox for the verification link before logging in.")
    click.echo("(The local provider logs the link token; rerun with -v to see it.)")


@account_group.command("verify")
@click.argument("token")
@click.pass_context
def verify(ctx, token: str):
    """Verify an email address with the TOKEN from the verification link."""
    client = ctx.obj["client"]
    try:
        identity = client.session.auth.verify_email(token)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Verified {identity.email}. You can now log in.")


@account_group.command("reset-password")
@click.argument("email")
@click.pass_context
def reset_password(ctx, email: str):
    """Send a password reset link to EMAIL."""
    client = ctx.obj["client"]
    try:
        client.session.reset_password(email)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"If an account exists for {email}, a reset link has been sent.")


@account_group.command("set-password")
@click.argument("token")
@click.option("--new-password", prompt="New password", hide_input=True, confirmation_prompt=True)
@click.pass_context
def set_password(ctx, token: str, new_password: str):
    """Choose a new password using the TOKEN from a reset link."""
    client = ctx.obj["client"]
    try:
        client.session.auth.confirm_password_reset(token, new_password)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Password updated.")


@account_group.command("show")
@click.argument("account_id", required=False)
@click.pass_context
def show(ctx, account_id: str | None):
    """Show an account (defaults to your own)."""
    client, actor = login_or_exit(ctx)
    target = actor if account_id is None else client.mirror.get_account_by_id(account_id)
    if target is None:
        click.echo(f"Error: Account {account_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"{target.display_name} <{target.email}>")
    click.echo(f"  ID:       {target.id}")
    click.echo(f"  Role:     {target.role.value}")
    click.echo(f"  Reg. no:  {target.registration_number}")
    click.echo(f"  Branch:   {target.branch}, year {target.year}, hostel {target.hostel_block}")
    if target.ratings_count > 0:
        click.echo(f"  Rating:   {target.rating} ({target.ratings_count} ratings)")
    else:
        click.echo("  Rating:   not yet rated")
    if target.suspended:
        click.echo("  SUSPENDED")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts."""
    client, _ = login_or_exit(ctx)
    accounts = sorted(client.mirror.accounts, key=lambda a: a.display_name.lower())
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        flag = " [suspended]" if acc.suspended else ""
        click.echo(f"{acc.id} | {acc.display_name:20s} | {acc.role.value:7s}{flag}")


@account_group.command("update")
@click.option("--name", help="New full name")
@click.option("--reg-no", help="New registration number")
@click.option("--branch", help="New branch")
@click.option("--year", type=int, help="New year of study")
@click.option("--hostel", help="New hostel block")
@click.option("--photo", type=click.Path(exists=True, dir_okay=False), help="New profile photo")
@click.pass_context
def update(ctx, name, reg_no, branch, year, hostel, photo):
    """Update your profile. Only the options given are changed."""
    client, actor = login_or_exit(ctx)
    try:
        avatar_url = None
        if photo is not None:
            avatar_url = read_upload(client, photo, LISTING_BUCKET, f"profile_{actor.id}")
        client.gateway.update_account(
            actor.id,
            display_name=name,
            registration_number=reg_no,
            branch=branch,
            year=year,
            hostel_block=hostel,
            avatar_url=avatar_url,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Profile updated.")


@account_group.command("suspend")
@click.argument("account_id")
@click.pass_context
def suspend(ctx, account_id: str):
    """Suspend ACCOUNT_ID, or reinstate it if already suspended."""
    client, actor = login_or_exit(ctx)
    require_admin(ctx, actor)
    try:
        suspended = client.gateway.toggle_suspend_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Account {account_id} {'suspended' if suspended else 'reinstated'}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
