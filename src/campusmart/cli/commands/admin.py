"""Moderation commands for administrators."""

import click

from campusmart.cli.actor_login import login_or_exit, require_admin
from campusmart.cli.error_handling import handle_domain_error
from campusmart.domain.entities import ClaimStatus, ComplaintAction, ComplaintStatus
from campusmart.domain.errors import DomainError


@click.group()
def admin_group():
    """Review complaints and claims."""
    pass


@admin_group.command("complaints")
@click.option("--all", "show_all", is_flag=True, help="Include resolved complaints")
@click.pass_context
def complaints(ctx, show_all: bool):
    """List complaints about listings."""
    client, actor = login_or_exit(ctx)
    require_admin(ctx, actor)

    pending = [c for c in client.mirror.complaints if show_all or c.status == ComplaintStatus.PENDING]
    pending.sort(key=lambda c: (c.created_at, c.id))
    if not pending:
        click.echo("No complaints to review.")
        return

    for c in pending:
        listing = client.mirror.get_listing_by_id(c.listing_id)
        title = listing.title if listing else "(listing removed)"
        reporter = client.mirror.get_account_by_id(c.reporter_id)
        by = reporter.display_name if reporter else c.reporter_id
        click.echo(f"{c.id} [{c.status.value}] {title} - reported by {by}")
        click.echo(f"    {c.reason}")


@admin_group.command("resolve-complaint")
@click.argument("complaint_id")
@click.option(
    "--action",
    type=click.Choice([a.value for a in ComplaintAction]),
    default=ComplaintAction.DISMISS.value,
    help="dismiss keeps the listing; deleteItem removes it",
)
@click.pass_context
def resolve_complaint(ctx, complaint_id: str, action: str):
    """Resolve a complaint, optionally deleting the listing."""
    client, actor = login_or_exit(ctx)
    require_admin(ctx, actor)
    try:
        client.gateway.resolve_complaint(complaint_id, action)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Complaint {complaint_id} resolved ({action})")


@admin_group.command("claims")
@click.option("--all", "show_all", is_flag=True, help="Include decided claims")
@click.pass_context
def claims(ctx, show_all: bool):
    """List claims on lost-and-found items."""
    client, actor = login_or_exit(ctx)
    require_admin(ctx, actor)

    waiting = [c for c in client.mirror.claims if show_all or c.status == ClaimStatus.PENDING]
    waiting.sort(key=lambda c: (c.created_at, c.id))
    if not waiting:
        click.echo("No claims to review.")
        return

    for c in waiting:
        report = client.mirror.get_lost_report_by_id(c.lost_report_id)
        item = report.name if report else c.lost_report_id
        claimant = client.mirror.get_account_by_id(c.claimant_id)
        by = claimant.display_name if claimant else c.claimant_id
        click.echo(f"{c.id} [{c.status.value}] {item} - claimed by {by}")
        click.echo(f"    proof: {c.proof_image_url}")
        if c.bill_image_url:
            click.echo(f"    bill:  {c.bill_image_url}")
        if c.comments:
            click.echo(f"    {c.comments}")


@admin_group.command("resolve-claim")
@click.argument("claim_id")
@click.option(
    "--status",
    type=click.Choice([ClaimStatus.APPROVED.value, ClaimStatus.REJECTED.value]),
    required=True,
)
@click.pass_context
def resolve_claim(ctx, claim_id: str, status: str):
    """Approve or reject a claim."""
    client, actor = login_or_exit(ctx)
    require_admin(ctx, actor)
    try:
        client.gateway.resolve_claim(claim_id, status)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Claim {claim_id} {status}")


def register_commands(cli):
    """Register admin commands with main CLI."""
    cli.add_command(admin_group, name="admin")
