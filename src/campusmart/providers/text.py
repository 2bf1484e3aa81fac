"""Listing description generation."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from campusmart.domain.entities import ListingCategory

logger = logging.getLogger(__name__)


class TextGenerator(ABC):
    """Abstract single-shot text generation service."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return generated text for a prompt."""
        pass


def description_prompt(title: str, category: ListingCategory) -> str:
    """Build the marketplace description prompt for a listing."""
    return (
        "Write a short, appealing marketplace description for a second-hand item "
        f'for a student marketplace. The item is a "{title}" in the category '
        f'"{category.value}". Keep it concise, under 50 words. Highlight its key '
        "features and condition for a student audience."
    )


def fallback_description(title: str, category: ListingCategory) -> str:
    """Generic description used when generation is unavailable."""
    return (
        f"This is a {title} in the {category.value} category. It is a useful item "
        "for any student. Please contact the seller for more details."
    )


def describe_listing(
    generator: Optional[TextGenerator], title: str, category: ListingCategory
) -> str:
    """Generate a listing description, falling back to a template on failure."""
    if generator is None:
        return fallback_description(title, category)
    try:
        text = generator.generate(description_prompt(title, category))
    except Exception as exc:
        logger.warning("Description generation failed for '%s': %s", title, exc)
        return fallback_description(title, category)
    if not text or not text.strip():
        return fallback_description(title, category)
    return text.strip()
