"""Utility functions for campusmart."""

from campusmart.utils.numbers import parse_price, round_rating
from campusmart.utils.timestamps import parse_timestamp

__all__ = ["parse_price", "round_rating", "parse_timestamp"]
