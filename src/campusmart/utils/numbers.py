"""Price parsing and rating arithmetic."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

RATING_STEP = Decimal("0.1")


def parse_price(price_str: str) -> Decimal:
    """Parse a price string into a non-negative Decimal.

    Handles various formats:
    - "300"
    - "₹300"
    - "Rs. 1,250.50"
    - "$12.5"

    Args:
        price_str: Price string

    Returns:
        Decimal price

    Raises:
        ValueError: If price string cannot be parsed or is negative
    """
    if not price_str or not price_str.strip():
        raise ValueError("Empty price string")

    price_str = price_str.strip()

    # Remove currency symbols and prefixes
    price_str = re.sub(r"^(rs\.?|inr)\s*", "", price_str, flags=re.IGNORECASE)
    price_str = re.sub(r"[₹$€£¥]", "", price_str)

    # Remove commas
    price_str = price_str.replace(",", "").strip()

    try:
        price = Decimal(price_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse price '{price_str}': {e}")
    if price < 0:
        raise ValueError(f"Price cannot be negative: {price}")
    return price


def round_rating(value: Decimal) -> Decimal:
    """Round an average rating to one decimal place, halves away from zero."""
    return Decimal(value).quantize(RATING_STEP, rounding=ROUND_HALF_UP)


def next_average(old_average: Decimal, old_count: int, rating: int) -> Decimal:
    """Running average after folding in one more rating.

    ``round1((old_average * old_count + rating) / (old_count + 1))``
    """
    total = Decimal(old_average) * old_count + rating
    return round_rating(total / (old_count + 1))
