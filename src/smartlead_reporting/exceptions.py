"""Structured exception classes for Smartlead reporting."""

import json
from enum import Enum
from typing import Any, Dict, Optional


class SmartleadError(Exception):
    """Base exception for all Smartlead reporting errors.

    This exception serves as the parent class for all package specific
    exceptions, providing a consistent interface for error handling
    across the gateway, the domain API and the export pipeline.

    :param message: Human-readable error message
    :param code: Optional error code for programmatic handling
    :param details: Optional dictionary containing additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception with message, code, and details."""
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format.

        :return: Dictionary containing error code, message, and details
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        :return: JSON-encoded string representation of the exception
        """
        return json.dumps(self.to_dict())


class UpstreamErrorKind(str, Enum):
    """Classification of a failed upstream call."""

    AUTH_INVALID = "auth_invalid"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class UpstreamError(SmartleadError):
    """Raised when a call to the Smartlead API fails.

    Instances are created once, at the request gateway, and are never
    reclassified by callers.

    :param message: Description of the failure
    :param status_code: HTTP status code, ``None`` for transport failures
    :param kind: Classification of the failure
    """

    kind: UpstreamErrorKind = UpstreamErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        kind: Optional[UpstreamErrorKind] = None,
    ):
        """Initialize upstream error with status code and kind."""
        details: Dict[str, Any] = {}
        if status_code:
            details["status_code"] = status_code
        super().__init__(message=message, code="UPSTREAM_ERROR", details=details)
        self.status_code = status_code
        if kind is not None:
            self.kind = kind
        self.details["kind"] = self.kind.value


class AuthInvalidError(UpstreamError):
    """Raised on HTTP 401, i.e. a missing or wrong API key."""

    kind = UpstreamErrorKind.AUTH_INVALID

    def __init__(
        self,
        message: str = "Invalid API key. Please check your SMARTLEAD_API_KEY.",
    ):
        """Initialize authentication error with a credential hint."""
        super().__init__(message=message, status_code=401)
        self.code = "INVALID_API_KEY"


class RateLimitError(UpstreamError):
    """Raised on HTTP 429 from the Smartlead API."""

    kind = UpstreamErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please wait before making more requests.",
    ):
        """Initialize rate limit error."""
        super().__init__(message=message, status_code=429)
        self.code = "RATE_LIMIT_EXCEEDED"


class ServerError(UpstreamError):
    """Raised for any other non-2xx response.

    :param status_code: HTTP status code returned by the API
    :param reason: Optional reason phrase
    """

    kind = UpstreamErrorKind.SERVER_ERROR

    def __init__(self, status_code: int, reason: Optional[str] = None):
        """Initialize server error embedding the status code."""
        message = f"API Error: {status_code}"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message=message, status_code=status_code)
        self.code = "SERVER_ERROR"


class TransportError(UpstreamError):
    """Raised when the request never produced a usable response.

    Covers network failures, timeouts and undecodable response bodies.

    :param message: Description of the transport failure
    :param original_error: Optional underlying exception
    """

    kind = UpstreamErrorKind.UNKNOWN

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        """Initialize transport error with optional original error."""
        super().__init__(message=message, status_code=None)
        self.code = "TRANSPORT_ERROR"
        if original_error is not None:
            self.details["error_type"] = type(original_error).__name__
        self.original_error = original_error


class ConfigurationError(SmartleadError):
    """Raised for configuration-related errors.

    :param message: Description of the configuration error
    :param setting: Optional name of the problematic setting
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        """Initialize configuration error with message and optional setting."""
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)


class InvalidRangeError(SmartleadError):
    """Raised when an export date range is missing or inverted.

    :param message: Description of the problem
    :param start_date: Optional offending start date
    :param end_date: Optional offending end date
    """

    def __init__(
        self,
        message: str,
        start_date: Optional[Any] = None,
        end_date: Optional[Any] = None,
    ):
        """Initialize range error with the offending bounds."""
        details = {}
        if start_date is not None:
            details["start_date"] = str(start_date)
        if end_date is not None:
            details["end_date"] = str(end_date)
        super().__init__(message=message, code="INVALID_RANGE", details=details)


class CampaignFetchFailed(SmartleadError):
    """Per-campaign analytics fetch failure.

    Absorbed by the export orchestrator and carried on the
    "unavailable" result for that campaign.

    :param campaign_id: Campaign whose analytics could not be fetched
    :param cause: Underlying exception
    """

    def __init__(self, campaign_id: int, cause: Optional[Exception] = None):
        """Initialize fetch failure for a single campaign."""
        details: Dict[str, Any] = {"campaign_id": campaign_id}
        if cause is not None:
            details["cause"] = str(cause)
            details["error_type"] = type(cause).__name__
        super().__init__(
            message=f"Failed to fetch analytics for campaign {campaign_id}",
            code="CAMPAIGN_FETCH_FAILED",
            details=details,
        )
        self.campaign_id = campaign_id
        self.cause = cause


class DocumentBuildError(SmartleadError):
    """Raised when the export workbook cannot be assembled.

    :param message: Description of the failure
    :param sheet: Optional sheet being built when the failure happened
    """

    def __init__(self, message: str, sheet: Optional[str] = None):
        """Initialize document error with optional sheet name."""
        details = {}
        if sheet:
            details["sheet"] = sheet
        super().__init__(message=message, code="DOCUMENT_BUILD_ERROR", details=details)
