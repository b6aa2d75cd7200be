"""Campaign field rules. Pure functions, no infrastructure or DB access."""

import html
import re
from datetime import date, datetime
from typing import Optional

from fundraising_events.domain.exceptions import SlugConflictError

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_TAGS = re.compile(r"<[^>]*>")
SLUG_MAX_LENGTH = 80


def slugify(text: str) -> str:
    return _NON_SLUG_CHARS.sub("-", text.lower()).strip("-")[:SLUG_MAX_LENGTH].rstrip("-")


def derive_slug(title: str, campaign_id: str) -> str:
    """URL slug from the title, suffixed with the start of the campaign id to stay unique."""
    suffix = slugify(campaign_id)[:8]
    base = slugify(title) or "campaign"
    return f"{base}-{suffix}" if suffix else base


def validate_slug_owner(slug: str, owner_campaign_id: Optional[str], campaign_id: str) -> None:
    """A slug may only be held by the campaign that reserved it. Raises SlugConflictError otherwise."""
    if owner_campaign_id is not None and owner_campaign_id != campaign_id:
        raise SlugConflictError(f"Slug '{slug}' is already used by another campaign")


def story_to_html(story: Optional[str]) -> Optional[str]:
    if story is None:
        return None
    return html.escape(story).replace("\n", "<br>")


def html_to_text(value: Optional[str]) -> str:
    if not value:
        return ""
    return html.unescape(_TAGS.sub(" ", value)).strip()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def days_remaining(end_date: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Whole days until end_date (ISO date or datetime), never negative. None if absent or unparseable."""
    if not end_date:
        return None
    try:
        end = datetime.fromisoformat(end_date.replace("Z", "+00:00")).date()
    except ValueError:
        return None
    return max(0, (end - (today or date.today())).days)
