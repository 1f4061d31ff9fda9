"""Pydantic models for Smartlead API payloads.

This module provides type definitions for the Smartlead API v1 resources
used by the reporting core: campaigns, email accounts, sequences, campaign
statistics, campaign analytics and clients.

The Smartlead API returns most counters as strings (``"120"``) and omits
fields freely, so the models allow extra fields and coerce counters to
integers, treating missing or unparseable values as zero.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def coerce_count(value: Any) -> int:
    """Parse an upstream counter, falling back to 0.

    :param value: Raw counter value (str, int, float or None)
    :type value: Any
    :return: Integer counter
    :rtype: int
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(str(value).strip()))
        except ValueError:
            return 0


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as returned by Smartlead.

    Accepts a trailing ``Z``. Returns ``None`` for empty or invalid input.

    :param value: Timestamp string
    :type value: Optional[str]
    :return: Parsed datetime or None
    :rtype: Optional[datetime]
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class BaseAPIResponse(BaseModel):
    """Base model for all Smartlead payloads.

    Extra fields are kept so that callers can reach attributes the models
    do not declare.
    """

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields from API
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class CampaignStatus(str, Enum):
    """Campaign lifecycle states."""

    DRAFTED = "DRAFTED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    STOPPED = "STOPPED"
    PAUSED = "PAUSED"


class EmailAccountType(str, Enum):
    """Email account providers."""

    GMAIL = "GMAIL"
    ZOHO = "ZOHO"
    OUTLOOK = "OUTLOOK"
    SMTP = "SMTP"


class Campaign(BaseAPIResponse):
    """Campaign as returned by ``GET /campaigns``.

    :param id: Campaign ID
    :type id: int
    :param name: Campaign name
    :type name: Optional[str]
    :param status: Campaign status (kept as a plain string)
    :type status: Optional[str]
    :param created_at: ISO-8601 creation timestamp
    :type created_at: Optional[str]
    :param client_id: Owning client, if the client feature is used
    :type client_id: Optional[int]
    """

    id: int
    user_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    status: Optional[str] = None
    name: Optional[str] = None
    client_id: Optional[int] = None
    max_leads_per_day: int = 0
    follow_up_percentage: int = 0
    min_time_btwn_emails: Optional[int] = None
    track_settings: Any = None
    scheduler_cron_value: Any = None
    stop_lead_settings: Optional[str] = None
    unsubscribe_text: Optional[str] = None
    enable_ai_esp_matching: Optional[bool] = None
    send_as_plain_text: Optional[bool] = None

    @field_validator("max_leads_per_day", "follow_up_percentage", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return coerce_count(v)

    @property
    def created(self) -> Optional[datetime]:
        """Parsed ``created_at`` or None if missing/invalid."""
        return parse_timestamp(self.created_at)


class WarmupDetails(BaseAPIResponse):
    """Warmup state attached to an email account."""

    id: Optional[int] = None
    status: Optional[str] = None
    total_sent_count: int = 0
    total_spam_count: int = 0
    warmup_reputation: Optional[str] = None

    @field_validator("total_sent_count", "total_spam_count", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return coerce_count(v)

    @field_validator("warmup_reputation", mode="before")
    @classmethod
    def _reputation_as_text(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class EmailAccount(BaseAPIResponse):
    """Sending mailbox as returned by ``GET /email-accounts``."""

    id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    user_id: Optional[int] = None
    from_name: Optional[str] = None
    from_email: Optional[str] = None
    username: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_port_type: Optional[str] = None
    message_per_day: int = 0
    is_smtp_success: bool = False
    is_imap_success: bool = False
    type: Optional[str] = None
    daily_sent_count: int = 0
    client_id: Optional[int] = None
    warmup_details: Optional[WarmupDetails] = None

    @field_validator("message_per_day", "daily_sent_count", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return coerce_count(v)

    @field_validator("is_smtp_success", "is_imap_success", mode="before")
    @classmethod
    def _none_is_false(cls, v: Any) -> bool:
        return bool(v)


class SequenceVariant(BaseAPIResponse):
    """A/B variant of a sequence step."""

    id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_deleted: bool = False
    subject: Optional[str] = None
    email_body: Optional[str] = None
    email_campaign_seq_id: Optional[int] = None
    variant_label: Optional[str] = None
    variant_distribution_percentage: Optional[float] = None


class Sequence(BaseAPIResponse):
    """Step of a campaign's email sequence."""

    id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    email_campaign_id: Optional[int] = None
    seq_number: int = 0
    seq_delay_details: Optional[dict] = None
    subject: Optional[str] = None
    email_body: Optional[str] = None
    sequence_variants: List[SequenceVariant] = Field(default_factory=list)

    @field_validator("sequence_variants", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return v or []


class EmailStatus(str, Enum):
    """Filters accepted by the campaign statistics endpoint."""

    OPENED = "opened"
    CLICKED = "clicked"
    REPLIED = "replied"
    UNSUBSCRIBED = "unsubscribed"
    BOUNCED = "bounced"


class CampaignStat(BaseAPIResponse):
    """Per-lead, per-step statistics row."""

    lead_name: Optional[str] = None
    lead_email: Optional[str] = None
    lead_category: Optional[str] = None
    sequence_number: Optional[int] = None
    email_campaign_seq_id: Optional[int] = None
    seq_variant_id: Optional[int] = None
    email_subject: Optional[str] = None
    sent_time: Optional[str] = None
    open_time: Optional[str] = None
    click_time: Optional[str] = None
    reply_time: Optional[str] = None
    open_count: int = 0
    click_count: int = 0
    is_unsubscribed: bool = False
    is_bounced: bool = False

    @field_validator("open_count", "click_count", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return coerce_count(v)


class CampaignStatistics(BaseAPIResponse):
    """Page of ``GET /campaigns/{id}/statistics``."""

    total_stats: int = 0
    data: List[CampaignStat] = Field(default_factory=list)
    offset: int = 0
    limit: int = 0

    @field_validator("total_stats", "offset", "limit", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return coerce_count(v)


class CampaignTag(BaseAPIResponse):
    """Tag attached to a campaign."""

    id: int
    name: Optional[str] = None
    color: Optional[str] = None


class CampaignLeadStats(BaseAPIResponse):
    """Lead funnel counters of a campaign."""

    total: int = 0
    blocked: int = 0
    stopped: int = 0
    completed: int = 0
    inprogress: int = 0
    notStarted: int = 0

    @field_validator(
        "total", "blocked", "stopped", "completed", "inprogress", "notStarted",
        mode="before",
    )
    @classmethod
    def _counts(cls, v: Any) -> int:
        return coerce_count(v)


class CampaignAnalytics(BaseAPIResponse):
    """Top-level analytics of a campaign (``GET /campaigns/{id}/analytics``).

    All email counters are delivered as strings by the API and are
    exposed here as integers.
    """

    id: int
    user_id: Optional[int] = None
    created_at: Optional[str] = None
    status: Optional[str] = None
    name: Optional[str] = None

    sent_count: int = 0
    open_count: int = 0
    click_count: int = 0
    reply_count: int = 0
    block_count: int = 0
    total_count: int = 0
    drafted_count: int = 0
    bounce_count: int = 0
    unsubscribed_count: int = 0
    sequence_count: int = 0
    unique_open_count: int = 0
    unique_click_count: int = 0
    unique_sent_count: int = 0

    tags: List[CampaignTag] = Field(default_factory=list)

    client_id: Optional[int] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    parent_campaign_id: Optional[int] = None

    campaign_lead_stats: CampaignLeadStats = Field(default_factory=CampaignLeadStats)

    @field_validator(
        "sent_count",
        "open_count",
        "click_count",
        "reply_count",
        "block_count",
        "total_count",
        "drafted_count",
        "bounce_count",
        "unsubscribed_count",
        "sequence_count",
        "unique_open_count",
        "unique_click_count",
        "unique_sent_count",
        mode="before",
    )
    @classmethod
    def _counts(cls, v: Any) -> int:
        return coerce_count(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return v or []

    @field_validator("campaign_lead_stats", mode="before")
    @classmethod
    def _none_is_default(cls, v: Any) -> Any:
        return v or {}


class Client(BaseAPIResponse):
    """Agency client as returned by ``GET /client``."""

    id: int
    name: str = ""
    email: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _none_is_blank(cls, v: Any) -> str:
        return "" if v is None else str(v)
