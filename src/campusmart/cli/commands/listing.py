"""Listing commands: selling, browsing, wishlists, ratings and reports."""

import click

from campusmart.cli.actor_login import login_or_exit, read_upload
from campusmart.cli.error_handling import handle_domain_error
from campusmart.domain.entities import Listing, ListingCategory, ListingCondition
from campusmart.domain.errors import DomainError
from campusmart.domain.listings import SORT_ORDERS, browse_listings, listings_by_owner, wishlist_listings
from campusmart.domain.mutations import coerce_enum
from campusmart.providers.blobs import LISTING_BUCKET
from campusmart.utils.numbers import parse_price

CATEGORY_CHOICES = [category.value for category in ListingCategory]
CONDITION_CHOICES = [condition.value for condition in ListingCondition]


def print_listings(listings: list[Listing], wishlist: frozenset = frozenset()) -> None:
    """Print listings as a table."""
    click.echo(f"\n{'ID':<36} {'Title':<28} {'Category':<18} {'Price':>10}")
    click.echo("-" * 96)
    for item in listings:
        title = item.title if len(item.title) <= 28 else item.title[:25] + "..."
        marks = ""
        if item.sold:
            marks += " [sold]"
        if item.exchange_eligible:
            marks += " [exchange]"
        if item.id in wishlist:
            marks += " *"
        click.echo(f"{item.id:<36} {title:<28} {item.category.value:<18} {item.price:>10.2f}{marks}")
    click.echo(f"\nTotal: {len(listings)} listing(s)")


@click.group()
def listing_group():
    """Sell and browse items."""
    pass


@listing_group.command("add")
@click.argument("title")
@click.argument("price")
@click.option(
    "--category",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    default=ListingCategory.OTHER.value,
    help="Listing category",
)
@click.option(
    "--condition",
    type=click.Choice(CONDITION_CHOICES, case_sensitive=False),
    default=ListingCondition.GOOD.value,
    help="Item condition",
)
@click.option("--description", default="", help="Item description")
@click.option("--generate-description", is_flag=True, help="Suggest a description when none is given")
@click.option("--location", default="", help="Where the item can be picked up")
@click.option("--image", type=click.Path(exists=True, dir_okay=False), help="Photo of the item")
@click.option("--exchange", is_flag=True, help="Open to exchange offers")
@click.pass_context
def add_listing(
    ctx,
    title: str,
    price: str,
    category: str,
    condition: str,
    description: str,
    generate_description: bool,
    location: str,
    image: str | None,
    exchange: bool,
):
    """Put an item up for sale.

    Examples:
        campusmart listing add "Calculus textbook" "Rs. 350" --category Textbooks
        campusmart listing add "Desk lamp" 200 --condition "Like New" --exchange
    """
    client, actor = login_or_exit(ctx)
    try:
        parsed_price = parse_price(price)
        category_value = coerce_enum(ListingCategory, category, "category")
        if not description and generate_description:
            description = client.describe(title, category_value)
        image_url = ""
        if image is not None:
            image_url = read_upload(client, image, LISTING_BUCKET, actor.id)
        listing = client.gateway.add_listing(
            owner_id=actor.id,
            title=title,
            description=description,
            category=category_value,
            price=parsed_price,
            location=location,
            condition=condition,
            image_url=image_url,
            exchange_eligible=exchange,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Listed '{listing.title}' for {listing.price:.2f} (ID: {listing.id})")


@listing_group.command("browse")
@click.option("--search", "-s", help="Text to look for in title or description")
@click.option("--category", type=click.Choice(CATEGORY_CHOICES, case_sensitive=False), help="Only this category")
@click.option("--sort", type=click.Choice(SORT_ORDERS), default="newest", help="Sort order (default: newest)")
@click.pass_context
def browse(ctx, search: str | None, category: str | None, sort: str):
    """Browse unsold listings."""
    client, actor = login_or_exit(ctx)
    category_value = coerce_enum(ListingCategory, category, "category") if category else None
    results = browse_listings(client.mirror.listings, search=search, category=category_value, sort=sort)
    if not results:
        click.echo("No listings found.")
        return
    print_listings(results, actor.wishlist)


@listing_group.command("mine")
@click.pass_context
def mine(ctx):
    """Show your own listings, sold ones included."""
    client, actor = login_or_exit(ctx)
    owned = listings_by_owner(client.mirror.listings, actor.id)
    if not owned:
        click.echo("You have no listings.")
        return
    print_listings(owned)


@listing_group.command("remove")
@click.argument("listing_id")
@click.pass_context
def remove(ctx, listing_id: str):
    """Delete one of your listings (administrators may delete any)."""
    client, actor = login_or_exit(ctx)
    listing = client.mirror.get_listing_by_id(listing_id)
    if listing is not None and listing.owner_id != actor.id and not actor.is_admin:
        click.echo("Error: you can only remove your own listings", err=True)
        ctx.exit(1)
    try:
        removed = client.gateway.remove_listing(listing_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    if removed:
        click.echo(f"Removed listing {listing_id}")
    else:
        click.echo(f"Listing {listing_id} was already removed")


@listing_group.command("sold")
@click.argument("listing_id")
@click.option("--unsold", is_flag=True, help="Put the listing back on sale")
@click.pass_context
def sold(ctx, listing_id: str, unsold: bool):
    """Mark one of your listings as sold."""
    client, actor = login_or_exit(ctx)
    listing = client.mirror.get_listing_by_id(listing_id)
    if listing is not None and listing.owner_id != actor.id:
        click.echo("Error: you can only mark your own listings as sold", err=True)
        ctx.exit(1)
    try:
        client.gateway.mark_listing_sold(listing_id, sold=not unsold)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Listing {listing_id} marked {'unsold' if unsold else 'sold'}")


@listing_group.command("wishlist")
@click.pass_context
def wishlist(ctx):
    """Show the listings in your wishlist."""
    client, actor = login_or_exit(ctx)
    saved = wishlist_listings(client.mirror.listings, client.actor or actor)
    if not saved:
        click.echo("Your wishlist is empty.")
        return
    print_listings(saved)


@listing_group.command("wish")
@click.argument("listing_id")
@click.pass_context
def wish(ctx, listing_id: str):
    """Add a listing to your wishlist, or remove it if already there."""
    client, _ = login_or_exit(ctx)
    try:
        added = client.gateway.toggle_wishlist(listing_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{'Added' if added else 'Removed'} {listing_id} {'to' if added else 'from'} your wishlist")


@listing_group.command("rate")
@click.argument("seller_id")
@click.argument("stars", type=click.IntRange(1, 5))
@click.pass_context
def rate(ctx, seller_id: str, stars: int):
    """Rate a seller from 1 to 5 stars."""
    client, actor = login_or_exit(ctx)
    if seller_id == actor.id:
        click.echo("Error: you cannot rate yourself", err=True)
        ctx.exit(1)
    try:
        average, count = client.gateway.rate_seller(seller_id, stars)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Seller rating is now {average} from {count} rating(s)")


@listing_group.command("report")
@click.argument("listing_id")
@click.option("--reason", required=True, help="Why the listing should be reviewed")
@click.pass_context
def report(ctx, listing_id: str, reason: str):
    """Report a listing to the administrators."""
    client, actor = login_or_exit(ctx)
    try:
        complaint = client.gateway.report_listing(listing_id, actor.id, reason)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reported listing {listing_id} (complaint ID: {complaint.id})")


def register_commands(cli):
    """Register listing commands with main CLI."""
    cli.add_command(listing_group, name="listing")
