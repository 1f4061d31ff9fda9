"""Smartlead reporting models package.

This package contains the Pydantic models for Smartlead API payloads and
for the dashboard KPIs computed from them.
"""

from .base_models import (
    BaseAPIResponse,
    Campaign,
    CampaignAnalytics,
    CampaignLeadStats,
    CampaignStat,
    CampaignStatistics,
    CampaignStatus,
    CampaignTag,
    Client,
    EmailAccount,
    EmailAccountType,
    EmailStatus,
    Sequence,
    SequenceVariant,
    WarmupDetails,
    coerce_count,
    parse_timestamp,
)
from .kpis import (
    AccountHealthMetrics,
    AccountHealthScore,
    CampaignCapacity,
    DashboardKPIs,
    SendCapacityUtilization,
    SimplifiedMetrics,
    WarmupProgress,
    WarmupSummary,
)

__all__ = [
    "BaseAPIResponse",
    "Campaign",
    "CampaignAnalytics",
    "CampaignLeadStats",
    "CampaignStat",
    "CampaignStatistics",
    "CampaignStatus",
    "CampaignTag",
    "Client",
    "EmailAccount",
    "EmailAccountType",
    "EmailStatus",
    "Sequence",
    "SequenceVariant",
    "WarmupDetails",
    "coerce_count",
    "parse_timestamp",
    "AccountHealthMetrics",
    "AccountHealthScore",
    "CampaignCapacity",
    "DashboardKPIs",
    "SendCapacityUtilization",
    "SimplifiedMetrics",
    "WarmupProgress",
    "WarmupSummary",
]
