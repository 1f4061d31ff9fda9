"""HTTP utilities public API (barrel module).

This package provides:
- Request identities used as cache and queue addresses
- The TTL response cache
- The httpx transport that appends the Smartlead credential
- The rate-limited request gateway and its error classification

Recommended import pattern for consumers:
    from smartlead_reporting.utils.http import RequestGateway, RequestIdentity
"""

from .cache import CacheEntry, ResponseCache
from .gateway import (
    GatewayMetrics,
    PendingRequest,
    RequestGateway,
    classify_response,
    classify_transport_failure,
)
from .identity import RequestIdentity
from .transport import SmartleadTransport

__all__ = [
    "CacheEntry",
    "ResponseCache",
    "GatewayMetrics",
    "PendingRequest",
    "RequestGateway",
    "classify_response",
    "classify_transport_failure",
    "RequestIdentity",
    "SmartleadTransport",
]
