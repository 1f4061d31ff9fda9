"""Dashboard KPI calculations."""

from .kpis import (
    analyze_campaign_capacity,
    calculate_account_health_metrics,
    calculate_account_health_score,
    calculate_average_follow_up_percentage,
    calculate_dashboard_kpis,
    calculate_monthly_reach,
    calculate_send_capacity_utilization,
    calculate_simplified_metrics,
    calculate_warmup_progress,
    get_account_type_distribution,
    get_accounts_in_warmup,
    get_campaign_status_distribution,
    get_warmup_progress,
)

__all__ = [
    "analyze_campaign_capacity",
    "calculate_account_health_metrics",
    "calculate_account_health_score",
    "calculate_average_follow_up_percentage",
    "calculate_dashboard_kpis",
    "calculate_monthly_reach",
    "calculate_send_capacity_utilization",
    "calculate_simplified_metrics",
    "calculate_warmup_progress",
    "get_account_type_distribution",
    "get_accounts_in_warmup",
    "get_campaign_status_distribution",
    "get_warmup_progress",
]
