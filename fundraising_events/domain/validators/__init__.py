"""Domain validators. Pure functions; raise domain exceptions."""

from fundraising_events.domain.validators.campaign_validator import (
    days_remaining,
    derive_slug,
    html_to_text,
    normalize_email,
    slugify,
    story_to_html,
    validate_slug_owner,
)

__all__ = [
    "days_remaining",
    "derive_slug",
    "html_to_text",
    "normalize_email",
    "slugify",
    "story_to_html",
    "validate_slug_owner",
]
