"""Export filter criteria and campaign selection."""

import math
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..exceptions import InvalidRangeError
from ..models.base_models import Campaign

ALL_CLIENTS = "all"
SECONDS_PER_CAMPAIGN = 0.65

DateLike = Union[date, datetime, str]


def _as_date(value: Optional[DateLike], name: str) -> date:
    if value is None or value == "":
        raise InvalidRangeError(f"Please select both start and end dates ({name} is missing).")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise InvalidRangeError(f"Invalid {name}: {value!r}") from None


def _as_client_id(client_filter: Optional[Union[int, str]]) -> Optional[int]:
    if client_filter is None:
        return None
    if isinstance(client_filter, str):
        text = client_filter.strip()
        if not text or text.lower() == ALL_CLIENTS:
            return None
        try:
            return int(text)
        except ValueError:
            raise InvalidRangeError(f"Invalid client filter: {client_filter!r}") from None
    try:
        return int(client_filter)
    except (TypeError, ValueError):
        raise InvalidRangeError(f"Invalid client filter: {client_filter!r}") from None


class ExportFilterCriteria(BaseModel):
    """Date range and client selection of one export run.

    Both dates are inclusive calendar days. ``client_id`` of ``None`` means
    all clients.
    """

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    client_id: Optional[int] = None

    @classmethod
    def create(
        cls,
        start_date: Optional[DateLike],
        end_date: Optional[DateLike],
        client_filter: Optional[Union[int, str]] = None,
    ) -> "ExportFilterCriteria":
        """Validate raw inputs and build the criteria.

        :param start_date: First day of the range
        :param end_date: Last day of the range
        :param client_filter: Client id, ``"all"`` or None
        :return: Immutable criteria
        :raises InvalidRangeError: If a date is missing or start is after end
        """
        start = _as_date(start_date, "start date")
        end = _as_date(end_date, "end date")
        if start > end:
            raise InvalidRangeError(
                "Start date must be before end date.", start_date=start, end_date=end
            )
        return cls(start_date=start, end_date=end, client_id=_as_client_id(client_filter))

    @property
    def is_all_clients(self) -> bool:
        return self.client_id is None

    def matches(self, campaign: Campaign) -> bool:
        """Whether a campaign falls inside the range and client selection."""
        created = campaign.created
        if created is None:
            return False
        if not self.start_date <= created.date() <= self.end_date:
            return False
        return self.is_all_clients or campaign.client_id == self.client_id


def validate_date_range(
    start_date: Optional[DateLike], end_date: Optional[DateLike]
) -> None:
    """Raise :class:`InvalidRangeError` unless ``start_date <= end_date``.

    Callers run this before any network activity.
    """
    ExportFilterCriteria.create(start_date, end_date)


def filter_campaigns(
    campaigns: Iterable[Campaign], criteria: ExportFilterCriteria
) -> List[Campaign]:
    """Campaigns matching the criteria, in their original order."""
    return [c for c in campaigns if criteria.matches(c)]


def estimate_export_seconds(campaign_count: int) -> int:
    """Rough duration of an export, one analytics call per campaign."""
    return math.ceil(campaign_count * SECONDS_PER_CAMPAIGN)
