"""HTTP transport for the Smartlead API.

Smartlead authenticates with the API key as a query parameter rather than
a header. The transport appends ``api_key`` to every request built from a
:class:`RequestIdentity` and returns the raw ``httpx.Response``; status
handling and error classification belong to the request gateway.
"""

import logging
from typing import Optional

import httpx

from ..security import sanitize_url
from .identity import RequestIdentity

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0
DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=CONNECT_TIMEOUT)
# The gateway dispatches one request at a time
DEFAULT_LIMITS = httpx.Limits(max_keepalive_connections=2, max_connections=4)


class SmartleadTransport:
    """Sends identities to the Smartlead API over a shared httpx client.

    :param base_url: API base URL, e.g. ``https://server.smartlead.ai/api/v1``
    :type base_url: str
    :param api_key: Static Smartlead API key
    :type api_key: str
    :param timeout: Optional httpx timeout configuration
    :type timeout: Optional[httpx.Timeout]
    :param client: Optional preconfigured client (tests pass one built on
        ``httpx.MockTransport``)
    :type client: Optional[httpx.AsyncClient]
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: Optional[httpx.Timeout] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout or DEFAULT_TIMEOUT,
            limits=DEFAULT_LIMITS,
            headers={"Content-Type": "application/json"},
        )

    def build_url(self, identity: RequestIdentity) -> str:
        """Absolute URL of an identity, without the credential."""
        return f"{self.base_url}{identity.path}"

    async def send(self, identity: RequestIdentity) -> httpx.Response:
        """Send the request described by ``identity``.

        :param identity: Request to perform
        :type identity: RequestIdentity
        :return: Raw response, whatever its status
        :rtype: httpx.Response
        :raises httpx.RequestError: On network-level failures
        """
        params = list(identity.params) + [("api_key", self._api_key)]
        response = await self._client.request(
            identity.method, self.build_url(identity), params=params
        )
        logger.debug(
            "%s %s -> %d",
            identity.method,
            sanitize_url(str(response.request.url)),
            response.status_code,
        )
        return response

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SmartleadTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
