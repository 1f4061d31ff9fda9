"""Smartlead API domain surface.

One coroutine per upstream resource. Each builds the request identity
(endpoint and query parameters) and forwards it to the request gateway;
payloads are returned exactly as decoded, without reshaping, caching or
retries of their own.

Examples:
    >>> async with create_api_client() as api:
    ...     campaigns = await api.get_campaigns()
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from ..config.settings import Settings
from ..config.settings import settings as default_settings
from ..exceptions import ConfigurationError
from ..models.base_models import EmailStatus
from ..utils.http.cache import ResponseCache
from ..utils.http.gateway import RequestGateway
from ..utils.http.identity import RequestIdentity
from ..utils.http.transport import CONNECT_TIMEOUT, SmartleadTransport

logger = logging.getLogger(__name__)

JSON = Any


class SmartleadAPI:
    """Typed operations over the Smartlead API v1.

    :param gateway: Gateway every call is routed through
    :type gateway: RequestGateway
    """

    def __init__(self, gateway: RequestGateway):
        self.gateway = gateway

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> JSON:
        return await self.gateway.request(RequestIdentity.build(path, params))

    async def get_campaigns(self) -> List[Dict[str, Any]]:
        """List all campaigns."""
        return await self._get("/campaigns")

    async def get_campaign_details(self, campaign_id: Union[int, str]) -> Dict[str, Any]:
        """Get a single campaign."""
        return await self._get(f"/campaigns/{campaign_id}")

    async def get_campaign_sequences(
        self, campaign_id: Union[int, str]
    ) -> List[Dict[str, Any]]:
        """List the sequence steps of a campaign."""
        return await self._get(f"/campaigns/{campaign_id}/sequences")

    async def get_email_accounts(
        self, offset: int = 0, limit: int = 100
    ) -> List[Dict[str, Any]]:
        """List email accounts, one page at a time.

        :param offset: Index of the first account to return
        :type offset: int
        :param limit: Page size
        :type limit: int
        """
        return await self._get("/email-accounts", {"offset": offset, "limit": limit})

    async def get_email_account_details(
        self, account_id: Union[int, str]
    ) -> Dict[str, Any]:
        """Get a single email account."""
        return await self._get(f"/email-accounts/{account_id}")

    async def get_campaign_email_accounts(
        self, campaign_id: Union[int, str]
    ) -> List[Dict[str, Any]]:
        """List the email accounts sending for a campaign."""
        return await self._get(f"/campaigns/{campaign_id}/email-accounts")

    async def get_clients(self) -> List[Dict[str, Any]]:
        """List agency clients (only available with the client feature)."""
        return await self._get("/client")

    async def get_campaign_leads(
        self, campaign_id: Union[int, str], offset: int = 0, limit: int = 100
    ) -> Any:
        """List the leads of a campaign, one page at a time."""
        return await self._get(
            f"/campaigns/{campaign_id}/leads", {"offset": offset, "limit": limit}
        )

    async def get_campaign_statistics(
        self,
        campaign_id: Union[int, str],
        offset: int = 0,
        limit: int = 100,
        email_sequence_number: Optional[int] = None,
        email_status: Optional[Union[EmailStatus, str]] = None,
    ) -> Dict[str, Any]:
        """Get per-lead statistics of a campaign.

        :param campaign_id: Campaign to query
        :param offset: Index of the first row
        :param limit: Page size
        :param email_sequence_number: Restrict to one sequence step
        :param email_status: Restrict to leads with this email status
        """
        params: Dict[str, Any] = {"offset": offset, "limit": limit}
        if email_sequence_number:
            params["email_sequence_number"] = email_sequence_number
        if email_status:
            params["email_status"] = EmailStatus(email_status).value
        return await self._get(f"/campaigns/{campaign_id}/statistics", params)

    async def get_campaign_analytics(self, campaign_id: Union[int, str]) -> Dict[str, Any]:
        """Get top-level analytics of a campaign."""
        return await self._get(f"/campaigns/{campaign_id}/analytics")

    async def get_campaign_metrics(self, campaign_id: Union[int, str]) -> Any:
        """Get campaign performance metrics, where the account exposes them."""
        return await self._get(f"/campaigns/{campaign_id}/metrics")

    async def get_sequence_performance(
        self, campaign_id: Union[int, str], sequence_id: Union[int, str]
    ) -> Any:
        """Get performance of one sequence step, where available."""
        return await self._get(
            f"/campaigns/{campaign_id}/sequences/{sequence_id}/performance"
        )

    async def get_account_warmup_details(self, account_id: Union[int, str]) -> Any:
        """Get warmup details of an email account, where available."""
        return await self._get(f"/email-accounts/{account_id}/warmup")

    def clear_cache(self) -> None:
        """Drop all cached responses."""
        self.gateway.clear_cache()

    async def aclose(self) -> None:
        """Release the transport behind the gateway."""
        close = getattr(self.gateway.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "SmartleadAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def create_api_client(
    config: Optional[Settings] = None,
    transport: Optional[SmartleadTransport] = None,
) -> SmartleadAPI:
    """Build an API client with its own cache, gateway and transport.

    Each call returns an isolated client; nothing is shared between
    clients built by separate calls.

    :param config: Settings to use, defaults to the global settings
    :type config: Optional[Settings]
    :param transport: Optional transport, built from settings when omitted
    :type transport: Optional[SmartleadTransport]
    :return: Ready-to-use API client
    :rtype: SmartleadAPI
    :raises ConfigurationError: If no API key is configured
    """
    config = config or default_settings
    if transport is None:
        if not config.smartlead_api_key:
            raise ConfigurationError(
                "SMARTLEAD_API_KEY is required. Please check your environment variables.",
                setting="SMARTLEAD_API_KEY",
            )
        transport = SmartleadTransport(
            base_url=config.smartlead_base_url,
            api_key=config.smartlead_api_key,
            timeout=httpx.Timeout(config.request_timeout, connect=CONNECT_TIMEOUT),
        )
    gateway = RequestGateway(
        transport=transport,
        cache=ResponseCache(ttl=config.cache_ttl),
        min_interval=config.rate_limit_delay,
    )
    logger.info(
        "Smartlead API client initialized: rate_limit_delay=%.3fs, cache_ttl=%.0fs",
        config.rate_limit_delay,
        config.cache_ttl,
    )
    return SmartleadAPI(gateway)
