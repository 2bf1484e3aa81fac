"""Lost-and-found commands."""

import click

from campusmart.cli.actor_login import login_or_exit, read_upload
from campusmart.cli.error_handling import handle_domain_error
from campusmart.domain.errors import DomainError
from campusmart.providers.blobs import CLAIM_BUCKET, LISTING_BUCKET


@click.group()
def lost_group():
    """Report and claim lost-and-found items."""
    pass


@lost_group.command("add")
@click.argument("name")
@click.option("--description", default="", help="What the item looks like")
@click.option("--location", "location_found", default="", help="Where it was found")
@click.option("--image", type=click.Path(exists=True, dir_okay=False), help="Photo of the item")
@click.pass_context
def add_report(ctx, name: str, description: str, location_found: str, image: str | None):
    """Record a found item."""
    client, actor = login_or_exit(ctx)
    try:
        image_url = ""
        if image is not None:
            image_url = read_upload(client, image, LISTING_BUCKET, f"lost_{actor.id}")
        report = client.gateway.add_lost_report(name, description, location_found, image_url)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded found item '{report.name}' (ID: {report.id})")


@lost_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include items that were already claimed")
@click.pass_context
def list_reports(ctx, show_all: bool):
    """List found items waiting for their owners."""
    client, _ = login_or_exit(ctx)
    reports = [r for r in client.mirror.lost_reports if show_all or r.claimant_id is None]
    reports.sort(key=lambda r: (r.found_at, r.id), reverse=True)
    if not reports:
        click.echo("No lost-and-found items.")
        return

    click.echo(f"\n{'ID':<36} {'Name':<24} {'Found at':<20} Found on")
    click.echo("-" * 96)
    for r in reports:
        claimed = " [claimed]" if r.claimant_id else ""
        click.echo(f"{r.id:<36} {r.name[:24]:<24} {r.location_found[:20]:<20} {r.found_at:%Y-%m-%d}{claimed}")


@lost_group.command("claim")
@click.argument("report_id")
@click.option("--proof", type=click.Path(exists=True, dir_okay=False), required=True, help="Photo proving ownership")
@click.option("--bill", type=click.Path(exists=True, dir_okay=False), help="Photo of the purchase bill")
@click.option("--comments", default="", help="Anything that helps verify the claim")
@click.pass_context
def claim(ctx, report_id: str, proof: str, bill: str | None, comments: str):
    """Claim a found item as yours."""
    client, actor = login_or_exit(ctx)
    if client.mirror.get_lost_report_by_id(report_id) is None:
        click.echo(f"Error: Lost report {report_id} not found", err=True)
        ctx.exit(1)
    try:
        folder = f"{report_id}_{actor.id}"
        proof_url = read_upload(client, proof, CLAIM_BUCKET, folder)
        bill_url = read_upload(client, bill, CLAIM_BUCKET, folder) if bill else None
        submitted = client.gateway.submit_claim(
            report_id, actor.id, proof_url, comments=comments, bill_image_url=bill_url
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Claim submitted (ID: {submitted.id}); an administrator will review it.")


def register_commands(cli):
    """Register lost-and-found commands with main CLI."""
    cli.add_command(lost_group, name="lost")
