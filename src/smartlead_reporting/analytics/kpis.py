"""Dashboard KPI calculations.

Pure functions over campaign and email account snapshots. Percentages are
0 whenever their denominator is empty.
"""

import math
from collections import Counter
from typing import Dict, Iterable, List, Optional

from ..models.base_models import Campaign, CampaignStatus, EmailAccount, EmailAccountType
from ..models.kpis import (
    AccountHealthMetrics,
    AccountHealthScore,
    CampaignCapacity,
    DashboardKPIs,
    SendCapacityUtilization,
    SimplifiedMetrics,
    WarmupProgress,
    WarmupSummary,
)

DAYS_PER_MONTH = 30
READY_REPUTATION = 80
WARMING_REPUTATION = 50
REPUTATION_GAIN_PER_DAY = 5
# Placeholder until reply data is wired into the dashboard cards
DEFAULT_RESPONSE_RATE = 5.2


def _percentage(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def _is_healthy(account: EmailAccount) -> bool:
    return account.is_smtp_success and account.is_imap_success


def _is_warming(account: EmailAccount) -> bool:
    return account.warmup_details is not None and account.warmup_details.status == "ACTIVE"


def _active(campaigns: Iterable[Campaign]) -> List[Campaign]:
    return [c for c in campaigns if c.status == CampaignStatus.ACTIVE.value]


def calculate_account_health_score(accounts: List[EmailAccount]) -> AccountHealthScore:
    """Share of accounts whose SMTP and IMAP checks both pass."""
    healthy = sum(1 for a in accounts if _is_healthy(a))
    return AccountHealthScore(
        total_accounts=len(accounts),
        healthy_accounts=healthy,
        health_score=_percentage(healthy, len(accounts)),
    )


def analyze_campaign_capacity(campaigns: List[Campaign]) -> CampaignCapacity:
    """Daily and monthly lead capacity of the active campaigns."""
    active = _active(campaigns)
    daily = sum(c.max_leads_per_day for c in active)
    return CampaignCapacity(
        active_campaigns=len(active),
        daily_capacity=daily,
        monthly_capacity=daily * DAYS_PER_MONTH,
    )


def get_warmup_progress(account: EmailAccount) -> Optional[WarmupProgress]:
    """Warmup stage of one account, or None if it has no warmup details."""
    details = account.warmup_details
    if details is None:
        return None

    try:
        reputation = int(float(details.warmup_reputation or 0))
    except ValueError:
        reputation = 0

    status = "inactive"
    if details.status == "ACTIVE":
        if reputation < WARMING_REPUTATION:
            status = "warming"
        elif reputation < READY_REPUTATION:
            status = "progressing"
        else:
            status = "ready"

    return WarmupProgress(
        status=status,
        reputation=reputation,
        sent_count=details.total_sent_count,
        spam_count=details.total_spam_count,
    )


def get_accounts_in_warmup(accounts: List[EmailAccount]) -> int:
    return sum(1 for a in accounts if _is_warming(a))


def calculate_monthly_reach(campaigns: List[Campaign]) -> int:
    return sum(c.max_leads_per_day * DAYS_PER_MONTH for c in _active(campaigns))


def get_campaign_status_distribution(campaigns: List[Campaign]) -> Dict[str, int]:
    """Campaign count per status; unexpected statuses get their own key."""
    distribution = {status.value: 0 for status in CampaignStatus}
    for status, count in Counter(c.status for c in campaigns if c.status).items():
        distribution[status] = distribution.get(status, 0) + count
    return distribution


def get_account_type_distribution(accounts: List[EmailAccount]) -> Dict[str, int]:
    """Account count per provider type."""
    distribution = {t.value: 0 for t in EmailAccountType}
    for account_type, count in Counter(a.type for a in accounts if a.type).items():
        distribution[account_type] = distribution.get(account_type, 0) + count
    return distribution


def calculate_average_follow_up_percentage(campaigns: List[Campaign]) -> int:
    active = _active(campaigns)
    if not active:
        return 0
    return round(sum(c.follow_up_percentage for c in active) / len(active))


def calculate_send_capacity_utilization(
    accounts: List[EmailAccount],
) -> SendCapacityUtilization:
    total_capacity = sum(a.message_per_day for a in accounts)
    total_used = sum(a.daily_sent_count for a in accounts)
    return SendCapacityUtilization(
        total_capacity=total_capacity,
        total_used=total_used,
        utilization_percentage=_percentage(total_used, total_capacity),
    )


def calculate_warmup_progress(accounts: List[EmailAccount]) -> WarmupSummary:
    """Aggregate warmup metrics over the accounts currently warming.

    Days to ready assume reputation grows by a fixed amount per day until
    it reaches the ready threshold.
    """
    warming = [a for a in accounts if _is_warming(a)]
    if not warming:
        return WarmupSummary()

    reputation_sum = 0.0
    for account in warming:
        try:
            reputation_sum += float(account.warmup_details.warmup_reputation or 0)
        except ValueError:
            continue

    average = reputation_sum / len(warming)
    days = (
        math.ceil((READY_REPUTATION - average) / REPUTATION_GAIN_PER_DAY)
        if average < READY_REPUTATION
        else 0
    )
    return WarmupSummary(
        total_warming=len(warming),
        average_reputation=average,
        total_sent=sum(a.warmup_details.total_sent_count for a in warming),
        total_spam=sum(a.warmup_details.total_spam_count for a in warming),
        estimated_days_to_ready=days,
    )


def calculate_account_health_metrics(accounts: List[EmailAccount]) -> AccountHealthMetrics:
    healthy = sum(1 for a in accounts if _is_healthy(a))
    capacity = sum(a.message_per_day for a in accounts)
    used = sum(a.daily_sent_count for a in accounts)
    return AccountHealthMetrics(
        total_accounts=len(accounts),
        healthy_accounts=healthy,
        critical_accounts=len(accounts) - healthy,
        health_score=_percentage(healthy, len(accounts)),
        total_daily_capacity=capacity,
        used_capacity=used,
        utilization_rate=_percentage(used, capacity),
    )


def calculate_simplified_metrics(campaigns: List[Campaign]) -> SimplifiedMetrics:
    """Headline numbers for lead generation users.

    Monthly emails sent is estimated from the daily capacity of active
    campaigns.
    """
    return SimplifiedMetrics(
        total_campaigns=len(campaigns),
        active_campaigns=len(_active(campaigns)),
        monthly_emails_sent=calculate_monthly_reach(campaigns),
        response_rate=DEFAULT_RESPONSE_RATE,
    )


def calculate_dashboard_kpis(
    campaigns: List[Campaign], accounts: List[EmailAccount]
) -> DashboardKPIs:
    """Every KPI the dashboard cards display, in one model."""
    health = calculate_account_health_score(accounts)
    capacity = analyze_campaign_capacity(campaigns)
    simplified = calculate_simplified_metrics(campaigns)
    return DashboardKPIs(
        total_campaigns=simplified.total_campaigns,
        active_campaigns=simplified.active_campaigns,
        monthly_emails_sent=simplified.monthly_emails_sent,
        response_rate=simplified.response_rate,
        healthy_accounts=health.healthy_accounts,
        monthly_reach=calculate_monthly_reach(campaigns),
        accounts_in_warmup=get_accounts_in_warmup(accounts),
        account_health_score=health.health_score,
        daily_capacity=capacity.daily_capacity,
        total_accounts=health.total_accounts,
        status_distribution=get_campaign_status_distribution(campaigns),
        account_type_distribution=get_account_type_distribution(accounts),
    )
