"""Messaging commands."""

import click

from campusmart.cli.actor_login import login_or_exit
from campusmart.cli.error_handling import handle_domain_error
from campusmart.domain.errors import DomainError


@click.group()
def message_group():
    """Chat with other students."""
    pass


@message_group.command("send")
@click.argument("receiver_id")
@click.argument("content")
@click.option("--listing", "listing_id", help="Listing the message is about")
@click.pass_context
def send(ctx, receiver_id: str, content: str, listing_id: str | None):
    """Send CONTENT to RECEIVER_ID."""
    client, _ = login_or_exit(ctx)
    if client.mirror.get_account_by_id(receiver_id) is None:
        click.echo(f"Error: Account {receiver_id} not found", err=True)
        ctx.exit(1)
    try:
        client.gateway.send_message(receiver_id, content, listing_id=listing_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Message sent.")


@message_group.command("inbox")
@click.pass_context
def inbox(ctx):
    """List your conversations, most recent first."""
    client, _ = login_or_exit(ctx)
    conversations = client.projector.conversations
    if not conversations:
        click.echo("No conversations yet.")
        return

    click.echo(f"\n{client.projector.total_unread()} unread message(s)\n")
    for c in conversations:
        about = f" re: {c.listing_title}" if c.listing_title else ""
        unread = f" ({c.unread_count} new)" if c.unread_count else ""
        click.echo(f"{c.counterpart_name} [{c.counterpart_id}]{about}{unread}")
        click.echo(f"    {c.last_message_at:%Y-%m-%d %H:%M}  {c.last_message}")


@message_group.command("thread")
@click.argument("other_id")
@click.option("--listing", "listing_id", help="Listing the conversation is about")
@click.pass_context
def thread(ctx, other_id: str, listing_id: str | None):
    """Show the conversation with OTHER_ID and mark it read."""
    client, actor = login_or_exit(ctx)
    messages = client.gateway.get_messages(other_id, listing_id=listing_id)
    if not messages:
        click.echo("No messages.")
        return

    for m in messages:
        who = "you" if m.sender_id == actor.id else other_id
        click.echo(f"[{m.created_at:%Y-%m-%d %H:%M}] {who}: {m.content}")

    try:
        client.gateway.mark_messages_as_read(other_id, listing_id=listing_id)
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register messaging commands with main CLI."""
    cli.add_command(message_group, name="message")
