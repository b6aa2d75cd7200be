"""User search read model with precomputed name n-grams and a relevance boost."""

import logging
from typing import Any, Dict, List, Optional

from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.user import UserProfileUpdatedPayload, UserRegisteredPayload

logger = logging.getLogger(__name__)

PROFILES = "profiles"
USER_SEARCH_PROJECTION = "user_search_projection"

MAX_RELEVANCE_BOOST = 2.0


def name_ngrams(name: str, n: int) -> List[str]:
    lowered = name.lower()
    return [lowered[i:i + n] for i in range(len(lowered) - n + 1)]


def relevance_boost(profile: Dict[str, Any]) -> float:
    """1.0 baseline, raised for verified, active-creator, popular and complete profiles; capped at 2.0."""
    boost = 1.0
    if profile.get("is_verified"):
        boost += 0.3
    if (profile.get("campaign_count") or 0) > 0:
        boost += 0.2
    followers = profile.get("follower_count") or 0
    if followers > 100:
        boost += 0.2
    elif followers > 50:
        boost += 0.1
    if profile.get("bio") and profile.get("location"):
        boost += 0.1
    return min(round(boost, 2), MAX_RELEVANCE_BOOST)


def is_searchable(profile: Dict[str, Any]) -> bool:
    return profile.get("profile_visibility") == "public" and profile.get("account_status") == "active"


def search_row(profile: Dict[str, Any]) -> Dict[str, Any]:
    name = profile.get("name") or ""
    return {
        "user_id": profile["id"],
        "name": name,
        "email": profile.get("email"),
        "avatar": profile.get("avatar"),
        "bio": profile.get("bio"),
        "location": profile.get("location"),
        "name_lowercase": name.lower(),
        "name_tokens": name.lower().split(),
        "name_bigrams": name_ngrams(name, 2),
        "name_trigrams": name_ngrams(name, 3),
        "role": profile.get("role"),
        "profile_visibility": profile.get("profile_visibility"),
        "account_status": profile.get("account_status"),
        "is_verified": bool(profile.get("is_verified")),
        "follower_count": profile.get("follower_count") or 0,
        "campaign_count": profile.get("campaign_count") or 0,
        "relevance_boost": relevance_boost(profile),
        "updated_at": utc_now(),
    }


class UserSearchProjectionProcessor(IdempotentProcessor):
    """
    registered: index the profile if it is public and active.
    profile_updated: re-index, or drop the row once the profile is no longer public and active.
    Other user events are ignored.
    """

    event_type = "user.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type == EventType.USER_REGISTERED:
            await self._registered(self.parse(event, UserRegisteredPayload))
        elif event.type == EventType.USER_PROFILE_UPDATED:
            await self._profile_updated(self.parse(event, UserProfileUpdatedPayload))

    async def _profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._store.select(PROFILES, {"id": user_id}, limit=1)
        return rows[0] if rows else None

    async def _registered(self, payload: UserRegisteredPayload) -> None:
        profile = await self._profile(payload.user_id)
        if profile is None or not is_searchable(profile):
            logger.warning("user_search_profile_not_indexable", extra={"user_id": payload.user_id})
            return
        await self._store.upsert(USER_SEARCH_PROJECTION, search_row(profile), on_conflict=["user_id"])

    async def _profile_updated(self, payload: UserProfileUpdatedPayload) -> None:
        profile = await self._profile(payload.user_id)
        if profile is None:
            logger.warning("user_search_profile_missing", extra={"user_id": payload.user_id})
            return
        if is_searchable(profile):
            await self._store.upsert(USER_SEARCH_PROJECTION, search_row(profile), on_conflict=["user_id"])
        else:
            await self._store.delete(USER_SEARCH_PROJECTION, {"user_id": payload.user_id})
