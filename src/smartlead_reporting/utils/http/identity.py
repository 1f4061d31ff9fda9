"""Deterministic identities for Smartlead API requests.

A request identity is the method, the endpoint path and the normalized
query parameters of a logical request. Two requests with the same meaning
produce the same identity, whatever order their parameters were given in,
so the identity can address both the response cache and the request queue.
The credential is never part of an identity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urlencode


def _normalize_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class RequestIdentity:
    """Identity of a logical upstream request.

    :param path: Endpoint path relative to the API base URL
    :type path: str
    :param params: Sorted ``(name, value)`` query parameters
    :type params: Tuple[Tuple[str, str], ...]
    :param method: HTTP method
    :type method: str
    """

    path: str
    params: Tuple[Tuple[str, str], ...] = ()
    method: str = "GET"

    @classmethod
    def build(
        cls,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
    ) -> "RequestIdentity":
        """Build an identity from an endpoint and raw query parameters.

        ``None`` parameters are dropped, values are rendered as strings and
        parameters are sorted by name.

        :param path: Endpoint path, with or without leading slash
        :type path: str
        :param params: Optional query parameters
        :type params: Optional[Mapping[str, Any]]
        :param method: HTTP method
        :type method: str
        :return: Normalized identity
        :rtype: RequestIdentity
        """
        normalized_path = "/" + path.strip().strip("/")
        items = tuple(
            sorted(
                (str(name), _normalize_value(value))
                for name, value in (params or {}).items()
                if value is not None
            )
        )
        return cls(path=normalized_path, params=items, method=method.upper())

    @property
    def key(self) -> str:
        """Stable string form used as the cache key."""
        if not self.params:
            return f"{self.method} {self.path}"
        return f"{self.method} {self.path}?{urlencode(self.params)}"

    def __str__(self) -> str:
        return self.key
