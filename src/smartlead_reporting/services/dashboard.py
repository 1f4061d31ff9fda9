"""Dashboard snapshot loading.

Fetches the campaign, email account and client lists the dashboard works
from and computes its KPIs. The snapshot is also what the export pipeline
filters, so exports never re-download the campaign list.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

from ..analytics.kpis import calculate_dashboard_kpis
from ..api.client import SmartleadAPI
from ..exceptions import UpstreamError
from ..models.base_models import Campaign, Client, EmailAccount
from ..models.kpis import DashboardKPIs

logger = logging.getLogger(__name__)


class DashboardData(BaseModel):
    """Snapshot of the account as shown on the dashboard."""

    campaigns: List[Campaign] = Field(default_factory=list)
    email_accounts: List[EmailAccount] = Field(default_factory=list)
    clients: List[Client] = Field(default_factory=list)
    kpis: DashboardKPIs = Field(default_factory=DashboardKPIs)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


async def _load_clients(api: SmartleadAPI) -> list:
    # Accounts without the client feature answer this endpoint with an error
    try:
        return await api.get_clients()
    except UpstreamError as e:
        logger.warning("Client list unavailable, continuing without clients: %s", e.message)
        return []


async def load_dashboard_data(api: SmartleadAPI) -> DashboardData:
    """Load campaigns, email accounts and clients concurrently.

    All three requests are issued at once; the gateway queue spaces them
    out. A failing client list degrades to an empty list, any other
    failure propagates.

    :param api: API client to load through
    :type api: SmartleadAPI
    :return: Snapshot with computed KPIs
    :rtype: DashboardData
    :raises UpstreamError: If campaigns or email accounts cannot be loaded
    """
    raw_campaigns, raw_accounts, raw_clients = await asyncio.gather(
        api.get_campaigns(),
        api.get_email_accounts(),
        _load_clients(api),
    )

    campaigns = [Campaign.model_validate(c) for c in raw_campaigns or []]
    accounts = [EmailAccount.model_validate(a) for a in raw_accounts or []]
    clients = [Client.model_validate(c) for c in raw_clients or []]

    logger.info(
        "Loaded dashboard snapshot: %d campaigns, %d email accounts, %d clients",
        len(campaigns),
        len(accounts),
        len(clients),
    )
    return DashboardData(
        campaigns=campaigns,
        email_accounts=accounts,
        clients=clients,
        kpis=calculate_dashboard_kpis(campaigns, accounts),
    )
