# fundraising_events/infrastructure/database/tables.py

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB

from fundraising_events.domain.models.event import utc_now

metadata = MetaData()

JsonColumn = JSON().with_variant(JSONB, "postgresql")


def _uuid() -> str:
    return str(uuid.uuid4())


def _id() -> Column:
    return Column("id", String(36), primary_key=True, default=_uuid)


def _timestamp(name: str, *, default: bool = False) -> Column:
    return Column(name, DateTime(timezone=True), nullable=not default, default=utc_now if default else None)


# --- Event sourcing ---

event_store = Table(
    "event_store",
    metadata,
    _id(),
    Column("event_id", String(64), nullable=False, unique=True),
    Column("event_type", String(128), nullable=False, index=True),
    Column("event_data", JsonColumn, nullable=False),
    Column("event_version", String(32), nullable=False, default="1.0.0"),
    Column("occurred_at", DateTime(timezone=True), nullable=False, index=True),
    Column("correlation_id", String(64), nullable=True, index=True),
    Column("causation_id", String(64), nullable=True),
    Column("aggregate_id", String(64), nullable=True, index=True),
    Column("metadata", JsonColumn, nullable=True),
    _timestamp("created_at", default=True),
)

event_dead_letter_queue = Table(
    "event_dead_letter_queue",
    metadata,
    _id(),
    Column("original_event_id", String(64), nullable=False, index=True),
    Column("event_data", JsonColumn, nullable=False),
    Column("processor_name", String(128), nullable=False, index=True),
    Column("failure_reason", Text, nullable=False),
    Column("failure_count", Integer, nullable=False, default=1),
    _timestamp("first_failed_at", default=True),
    _timestamp("last_failed_at", default=True),
)

saga_instances = Table(
    "saga_instances",
    metadata,
    _id(),
    Column("saga_type", String(128), nullable=False),
    Column("aggregate_id", String(64), nullable=False, index=True),
    Column("current_step", Integer, nullable=False, default=0),
    Column("status", String(32), nullable=False),
    Column("data", JsonColumn, nullable=True),
    Column("error_message", Text, nullable=True),
    _timestamp("started_at", default=True),
    _timestamp("completed_at"),
    _timestamp("updated_at"),
)

saga_steps = Table(
    "saga_steps",
    metadata,
    _id(),
    Column("saga_id", String(36), nullable=False, index=True),
    Column("step_name", String(128), nullable=False),
    Column("step_number", Integer, nullable=False),
    Column("status", String(32), nullable=False),
    Column("error_message", Text, nullable=True),
    _timestamp("executed_at"),
    _timestamp("compensated_at"),
)

audit_logs = Table(
    "audit_logs",
    metadata,
    _id(),
    Column("actor_id", String(64), nullable=False),
    Column("action", String(128), nullable=False),
    Column("resource_type", String(64), nullable=False),
    Column("resource_id", String(64), nullable=False),
    Column("metadata", JsonColumn, nullable=True),
    Column("correlation_id", String(64), nullable=True),
    _timestamp("created_at", default=True),
)

# --- Campaigns ---

fundraisers = Table(
    "fundraisers",
    metadata,
    _id(),
    Column("title", String(200), nullable=False),
    Column("slug", String(255), nullable=False, unique=True),
    Column("summary", Text, nullable=True),
    Column("story_html", Text, nullable=True),
    Column("goal_amount", Float, nullable=False),
    Column("currency", String(8), nullable=False, default="USD"),
    Column("category_id", String(64), nullable=True),
    Column("beneficiary_name", String(255), nullable=True),
    Column("location", String(255), nullable=True),
    Column("cover_image", String(1024), nullable=True),
    Column("end_date", String(32), nullable=True),
    Column("owner_user_id", String(64), nullable=False, index=True),
    Column("status", String(32), nullable=False, default="active"),
    Column("visibility", String(32), nullable=False, default="public"),
    Column("type", String(32), nullable=True),
    Column("is_discoverable", Boolean, nullable=False, default=True),
    Column("is_project", Boolean, nullable=False, default=False),
    Column("link_token", String(255), nullable=True),
    Column("passcode_hash", String(255), nullable=True),
    Column("tags", JsonColumn, nullable=True),
    _timestamp("created_at", default=True),
    _timestamp("updated_at"),
)

slug_reservations = Table(
    "slug_reservations",
    metadata,
    Column("slug", String(255), primary_key=True),
    Column("campaign_id", String(64), nullable=False),
    _timestamp("reserved_at", default=True),
)

project_milestones = Table(
    "project_milestones",
    metadata,
    _id(),
    Column("fundraiser_id", String(64), nullable=False, index=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=True),
    Column("target_amount", Float, nullable=False),
    Column("due_date", String(32), nullable=True),
    Column("currency", String(8), nullable=False, default="USD"),
    Column("created_by", String(64), nullable=False),
    _timestamp("created_at", default=True),
)

campaign_access_rules = Table(
    "campaign_access_rules",
    metadata,
    _id(),
    Column("campaign_id", String(64), nullable=False, index=True),
    Column("rule_type", String(32), nullable=False),
    Column("rule_value", String(255), nullable=False),
    Column("created_by", String(64), nullable=False),
    _timestamp("created_at", default=True),
)

fundraiser_images = Table(
    "fundraiser_images",
    metadata,
    _id(),
    Column("user_id", String(64), nullable=False, index=True),
    Column("fundraiser_id", String(64), nullable=True, index=True),
    Column("storage_path", String(1024), nullable=False),
    Column("public_url", String(1024), nullable=False),
    Column("file_name", String(255), nullable=False),
    Column("file_size", Integer, nullable=False),
    Column("mime_type", String(64), nullable=False),
    Column("image_type", String(16), nullable=False),
    Column("bucket", String(64), nullable=False),
    Column("width", Integer, nullable=True),
    Column("height", Integer, nullable=True),
    Column("optimized_url", String(1024), nullable=True),
    Column("optimized_size", Integer, nullable=True),
    Column("compression_ratio", Float, nullable=True),
    Column("format", String(8), nullable=True),
    _timestamp("created_at", default=True),
    _timestamp("updated_at"),
)

project_updates = Table(
    "project_updates",
    metadata,
    _id(),
    Column("fundraiser_id", String(64), nullable=False, index=True),
    Column("author_id", String(64), nullable=False),
    Column("title", String(255), nullable=False),
    Column("body", Text, nullable=False),
    Column("visibility", String(16), nullable=False, default="public"),
    Column("milestone_id", String(64), nullable=True),
    Column("attachments", JsonColumn, nullable=True),
    Column("used_ai", Boolean, nullable=False, default=False),
    _timestamp("created_at", default=True),
    _timestamp("updated_at"),
)

# --- Read models ---

campaign_summary_projection = Table(
    "campaign_summary_projection",
    metadata,
    Column("campaign_id", String(64), primary_key=True),
    Column("title", String(200), nullable=False),
    Column("slug", String(255), nullable=True),
    Column("summary", Text, nullable=True),
    Column("cover_image", String(1024), nullable=True),
    Column("goal_amount", Float, nullable=False),
    Column("total_raised", Float, nullable=False, default=0),
    Column("donor_count", Integer, nullable=False, default=0),
    Column("status", String(32), nullable=True),
    Column("visibility", String(32), nullable=True),
    Column("category_id", String(64), nullable=True),
    Column("owner_user_id", String(64), nullable=True),
    Column("end_date", String(32), nullable=True),
    Column("days_remaining", Integer, nullable=True),
    _timestamp("created_at", default=True),
    _timestamp("updated_at"),
)

campaign_stats_projection = Table(
    "campaign_stats_projection",
    metadata,
    Column("campaign_id", String(64), primary_key=True),
    Column("total_donations", Float, nullable=False, default=0),
    Column("donation_count", Integer, nullable=False, default=0),
    Column("unique_donors", Integer, nullable=False, default=0),
    Column("average_donation", Float, nullable=False, default=0),
    Column("view_count", Integer, nullable=False, default=0),
    Column("share_count", Integer, nullable=False, default=0),
    Column("comment_count", Integer, nullable=False, default=0),
    Column("update_count", Integer, nullable=False, default=0),
    _timestamp("last_donation_at"),
    _timestamp("updated_at"),
)

campaign_search_projection = Table(
    "campaign_search_projection",
    metadata,
    Column("campaign_id", String(64), primary_key=True),
    Column("title", String(200), nullable=False),
    Column("slug", String(255), nullable=True),
    Column("summary", Text, nullable=True),
    Column("story_text", Text, nullable=True),
    Column("beneficiary_name", String(255), nullable=True),
    Column("location", String(255), nullable=True),
    Column("tags", JsonColumn, nullable=True),
    Column("status", String(32), nullable=True),
    Column("visibility", String(32), nullable=True),
    _timestamp("created_at", default=True),
    _timestamp("updated_at"),
)

donor_history_projection = Table(
    "donor_history_projection",
    metadata,
    Column("user_id", String(64), primary_key=True),
    Column("campaign_id", String(64), primary_key=True),
    Column("total_donated", Float, nullable=False, default=0),
    Column("donation_count", Integer, nullable=False, default=0),
    _timestamp("first_donated_at"),
    _timestamp("last_donated_at"),
)

donations = Table(
    "donations",
    metadata,
    _id(),
    Column("fundraiser_id", String(64), nullable=True, index=True),
    Column("donor_user_id", String(64), nullable=True),
    Column("amount", Float, nullable=False),
    Column("currency", String(8), nullable=False, default="USD"),
    Column("status", String(32), nullable=False, default="completed"),
    _timestamp("created_at", default=True),
)

# --- Users, roles, follows ---

profiles = Table(
    "profiles",
    metadata,
    _id(),
    Column("name", String(255), nullable=True),
    Column("email", String(255), nullable=True),
    Column("role", String(32), nullable=False, default="visitor"),
    Column("avatar", String(1024), nullable=True),
    Column("bio", Text, nullable=True),
    Column("location", String(255), nullable=True),
    Column("is_verified", Boolean, nullable=False, default=False),
    Column("profile_visibility", String(16), nullable=False, default="public"),
    Column("account_status", String(16), nullable=False, default="active"),
    Column("campaign_count", Integer, nullable=False, default=0),
    Column("follower_count", Integer, nullable=False, default=0),
    Column("following_count", Integer, nullable=False, default=0),
    _timestamp("updated_at"),
)

roles = Table(
    "roles",
    metadata,
    _id(),
    Column("name", String(64), nullable=False, unique=True),
    Column("display_name", String(128), nullable=True),
    Column("hierarchy_level", Integer, nullable=False, default=0),
)

user_role_assignments = Table(
    "user_role_assignments",
    metadata,
    _id(),
    Column("user_id", String(64), nullable=False, index=True),
    Column("role_id", String(64), nullable=False),
    Column("context_type", String(32), nullable=False, default="global"),
    Column("context_id", String(64), nullable=True),
    Column("assigned_by", String(64), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    _timestamp("assigned_at", default=True),
    Column("revoked_by", String(64), nullable=True),
    _timestamp("revoked_at"),
)

subscriptions = Table(
    "subscriptions",
    metadata,
    _id(),
    Column("follower_id", String(64), nullable=False, index=True),
    Column("following_id", String(64), nullable=False, index=True),
    Column("following_type", String(16), nullable=False),
    _timestamp("created_at", default=True),
    UniqueConstraint("follower_id", "following_id", "following_type", name="uq_subscriptions_pair"),
)

user_activities = Table(
    "user_activities",
    metadata,
    _id(),
    Column("actor_id", String(64), nullable=False, index=True),
    Column("activity_type", String(32), nullable=False),
    Column("target_type", String(16), nullable=False),
    Column("target_id", String(64), nullable=False),
    Column("metadata", JsonColumn, nullable=True),
    _timestamp("created_at", default=True),
)

user_search_projection = Table(
    "user_search_projection",
    metadata,
    Column("user_id", String(64), primary_key=True),
    Column("name", String(255), nullable=False, default=""),
    Column("email", String(255), nullable=True),
    Column("avatar", String(1024), nullable=True),
    Column("bio", Text, nullable=True),
    Column("location", String(255), nullable=True),
    Column("name_lowercase", String(255), nullable=False, default=""),
    Column("name_tokens", JsonColumn, nullable=True),
    Column("name_bigrams", JsonColumn, nullable=True),
    Column("name_trigrams", JsonColumn, nullable=True),
    Column("role", String(32), nullable=True),
    Column("profile_visibility", String(16), nullable=True),
    Column("account_status", String(16), nullable=True),
    Column("is_verified", Boolean, nullable=False, default=False),
    Column("follower_count", Integer, nullable=False, default=0),
    Column("campaign_count", Integer, nullable=False, default=0),
    Column("relevance_boost", Float, nullable=False, default=1.0),
    _timestamp("updated_at"),
)

# --- Organizations ---

organizations = Table(
    "organizations",
    metadata,
    _id(),
    Column("legal_name", String(255), nullable=False),
    Column("dba_name", String(255), nullable=True),
    Column("website", String(1024), nullable=True),
    Column("description", Text, nullable=True),
    Column("created_by", String(64), nullable=False),
    Column("verification_status", String(16), nullable=False, default="pending"),
    Column("verified_by", String(64), nullable=True),
    _timestamp("verified_at"),
    Column("rejected_by", String(64), nullable=True),
    Column("rejection_reason", Text, nullable=True),
    _timestamp("created_at", default=True),
    _timestamp("updated_at"),
)

# --- Payouts ---

payout_requests = Table(
    "payout_requests",
    metadata,
    _id(),
    Column("user_id", String(64), nullable=False, index=True),
    Column("fundraiser_id", String(64), nullable=True),
    Column("bank_account_id", String(64), nullable=False),
    Column("amount_str", String(32), nullable=False),
    Column("currency", String(8), nullable=False),
    Column("status", String(32), nullable=False),
    Column("creator_notes", Text, nullable=True),
    Column("admin_notes", Text, nullable=True),
    Column("is_first_payout", Boolean, nullable=False, default=False),
    Column("risk_score", Integer, nullable=False, default=0),
    _timestamp("requested_at", default=True),
    Column("approved_by", String(64), nullable=True),
    _timestamp("approved_at"),
    Column("denied_by", String(64), nullable=True),
    Column("denial_reason", Text, nullable=True),
    _timestamp("denied_at"),
    Column("stripe_transfer_id", String(128), nullable=True),
    Column("estimated_arrival_date", String(32), nullable=True),
    _timestamp("processing_started_at"),
    Column("actual_arrival_date", String(32), nullable=True),
    _timestamp("completed_at"),
    Column("failure_reason", Text, nullable=True),
    Column("stripe_error", Text, nullable=True),
    Column("is_retryable", Boolean, nullable=True),
    _timestamp("failed_at"),
    Column("cancelled_by", String(64), nullable=True),
    Column("cancellation_reason", Text, nullable=True),
    _timestamp("cancelled_at"),
    Column("info_required_message", Text, nullable=True),
    Column("required_info", JsonColumn, nullable=True),
    _timestamp("updated_at"),
)

payout_tax_records = Table(
    "payout_tax_records",
    metadata,
    _id(),
    Column("user_id", String(64), nullable=False),
    Column("tax_year", Integer, nullable=False),
    Column("total_payouts_str", String(32), nullable=False, default="0"),
    Column("payout_count", Integer, nullable=False, default=0),
    _timestamp("updated_at"),
    UniqueConstraint("user_id", "tax_year", name="uq_payout_tax_records_year"),
)
