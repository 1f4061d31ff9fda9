"""Pydantic models for dashboard KPI calculations."""

from typing import Literal

from pydantic import BaseModel, Field


class AccountHealthScore(BaseModel):
    """Share of email accounts with working SMTP and IMAP."""

    total_accounts: int
    healthy_accounts: int
    health_score: float


class CampaignCapacity(BaseModel):
    """Lead capacity of the active campaigns."""

    active_campaigns: int
    daily_capacity: int
    monthly_capacity: int


class WarmupProgress(BaseModel):
    """Warmup state of a single email account."""

    status: Literal["inactive", "warming", "progressing", "ready"]
    reputation: int
    sent_count: int
    spam_count: int


class SendCapacityUtilization(BaseModel):
    """Daily send capacity against actual usage."""

    total_capacity: int
    total_used: int
    utilization_percentage: float


class WarmupSummary(BaseModel):
    """Aggregate warmup metrics over accounts currently warming."""

    total_warming: int = 0
    average_reputation: float = 0.0
    total_sent: int = 0
    total_spam: int = 0
    estimated_days_to_ready: int = 0


class AccountHealthMetrics(BaseModel):
    """Detailed health and capacity metrics for all email accounts."""

    total_accounts: int
    healthy_accounts: int
    critical_accounts: int
    health_score: float
    total_daily_capacity: int
    used_capacity: int
    utilization_rate: float


class SimplifiedMetrics(BaseModel):
    """Headline metrics shown to lead generation users."""

    total_campaigns: int
    active_campaigns: int
    monthly_emails_sent: int
    response_rate: float


class DashboardKPIs(BaseModel):
    """All KPIs the dashboard header and cards display."""

    total_campaigns: int = 0
    active_campaigns: int = 0
    monthly_emails_sent: int = 0
    response_rate: float = 0.0

    healthy_accounts: int = 0
    monthly_reach: int = 0
    accounts_in_warmup: int = 0
    account_health_score: float = 0.0
    daily_capacity: int = 0
    total_accounts: int = 0

    status_distribution: dict = Field(default_factory=dict)
    account_type_distribution: dict = Field(default_factory=dict)
