"""Credential redaction and secure logging setup.

The Smartlead API takes its credential as the ``api_key`` query parameter,
so every full request URL carries the secret. Anything that may end up in
a log line goes through the helpers here first.
"""

import copy
import logging
import re
import sys
from typing import Any, Dict, Iterable, Optional

REDACTED = "<REDACTED>"

# Query parameters whose values are never logged
SENSITIVE_PARAMS = ("api_key", "apikey", "token", "secret", "password")

# Mapping keys whose values are never logged (substring match)
SENSITIVE_KEYS = ("key", "token", "secret", "password")

_QUERY_SECRET_RE = re.compile(
    r"((?:%s)=)[^&\s\"']+" % "|".join(SENSITIVE_PARAMS), re.IGNORECASE
)
# Long opaque tokens that escaped the query-string pass
_OPAQUE_TOKEN_RE = re.compile(r"\b[A-Za-z0-9_-]{32,}\b")
_BEARER_RE = re.compile(r"Bearer\s+[A-Za-z0-9._-]+", re.IGNORECASE)


def sanitize_url(url: str) -> str:
    """Replace the values of credential query parameters in ``url``.

    :param url: URL, possibly with ``api_key=...`` in its query string
    :type url: str
    :return: URL with those values replaced by ``<REDACTED>``
    :rtype: str
    """
    if not url:
        return url
    return _QUERY_SECRET_RE.sub(r"\1" + REDACTED, url)


def sanitize_string(value: str) -> str:
    """Redact credentials anywhere in a free-form log message."""
    if not value:
        return value
    value = sanitize_url(value)
    value = _BEARER_RE.sub("Bearer " + REDACTED, value)
    return _OPAQUE_TOKEN_RE.sub(REDACTED, value)


def safe_log_dict(
    data: Dict[str, Any], extra_keys: Optional[Iterable[str]] = None
) -> Dict[str, Any]:
    """Deep copy of ``data`` safe to log.

    Values under keys containing a sensitive word are replaced, other
    strings are passed through :func:`sanitize_string`.

    :param data: Mapping to sanitize, left untouched
    :type data: Dict[str, Any]
    :param extra_keys: Additional sensitive key fragments
    :type extra_keys: Optional[Iterable[str]]
    :return: Sanitized copy
    :rtype: Dict[str, Any]
    """
    if not data:
        return data
    fragments = set(SENSITIVE_KEYS) | set(extra_keys or ())

    def _clean(obj: Any) -> Any:
        if isinstance(obj, dict):
            return {
                key: REDACTED
                if any(f in str(key).lower() for f in fragments)
                else _clean(value)
                for key, value in obj.items()
            }
        if isinstance(obj, list):
            return [_clean(item) for item in obj]
        if isinstance(obj, str):
            return sanitize_string(obj)
        return obj

    return _clean(copy.deepcopy(data))


class SanitizingFormatter(logging.Formatter):
    """Formatter that redacts credentials from every rendered message.

    Arguments are interpolated before sanitizing, so a URL passed as a
    ``%s`` argument is redacted as well.
    """

    def format(self, record: logging.LogRecord) -> str:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        record.msg = sanitize_string(message)
        record.args = None
        return super().format(record)


_LOGGING_CONFIGURED = False


def setup_secure_logging(level: str = "INFO") -> None:
    """Configure root logging with :class:`SanitizingFormatter`.

    Logs go to stderr, keeping stdout free for command output. Only the
    first call has an effect.

    :param level: Logging level name
    :type level: str
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        logging.getLogger(__name__).debug("Logging already configured")
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        SanitizingFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.basicConfig(level=getattr(logging, level.upper()), handlers=[handler], force=True)

    # httpx logs every request URL at INFO, api_key included
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True
