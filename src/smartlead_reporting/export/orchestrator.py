"""Campaign export orchestration.

Runs one export end to end: validate the date range, filter the dashboard
snapshot, fetch analytics for every selected campaign through the API,
build the workbook and write it. Per-campaign fetch failures degrade that
campaign's row to zeroes; only range, build and write failures fail the
export.

Examples:
    >>> orchestrator = ExportOrchestrator(api, WorkbookWriter("exports"))
    >>> result = await orchestrator.export(
    ...     campaigns, clients, "2024-01-01", "2024-01-31", client_filter="all"
    ... )
    >>> result.filename
    'Smartlead_Campaigns_All Clients_2024-01-01_to_2024-01-31.xlsx'
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Union

from ..api.client import SmartleadAPI
from ..exceptions import CampaignFetchFailed, SmartleadError
from ..models.base_models import Campaign, CampaignAnalytics, Client
from .document import SpreadsheetDocument, build_export_document, derive_filename
from .filters import DateLike, ExportFilterCriteria, filter_campaigns
from .progress import ASSEMBLING, COMPLETE, STARTED, ExportProgress, ProgressListener
from .writer import WorkbookWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsUnavailable:
    """Marker for a campaign whose analytics could not be fetched."""

    campaign_id: int
    error: CampaignFetchFailed


AnalyticsOutcome = Union[CampaignAnalytics, AnalyticsUnavailable]


@dataclass
class ExportResult:
    """Outcome of one export run.

    ``success`` is False only for invalid input or build/write failures;
    campaigns without analytics do not fail the export.
    """

    success: bool
    filename: Optional[str] = None
    path: Optional[Path] = None
    error: Optional[str] = None
    campaign_count: int = 0
    analytics_count: int = 0
    document: Optional[SpreadsheetDocument] = None


def _as_models(items: Optional[Sequence[Any]], model) -> list:
    return [item if isinstance(item, model) else model.model_validate(item) for item in items or []]


class ExportOrchestrator:
    """Coordinates filtering, analytics fetches and workbook output.

    :param api: API client used for the per-campaign analytics calls
    :type api: SmartleadAPI
    :param writer: Workbook writer, defaults to ``./exports``
    :type writer: Optional[WorkbookWriter]
    :param max_concurrency: Cap on analytics fetches awaiting the gateway
        at once; None issues them all and lets the gateway queue pace them
    :type max_concurrency: Optional[int]
    :param clock: Source of the summary timestamp
    :type clock: Callable[[], datetime]
    """

    def __init__(
        self,
        api: SmartleadAPI,
        writer: Optional[WorkbookWriter] = None,
        max_concurrency: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.api = api
        self.writer = writer or WorkbookWriter()
        self.max_concurrency = max_concurrency
        self._clock = clock

    async def fetch_analytics(self, campaign: Campaign) -> AnalyticsOutcome:
        """Fetch one campaign's analytics, turning any failure into a marker.

        :param campaign: Campaign to fetch
        :type campaign: Campaign
        :return: Parsed analytics or :class:`AnalyticsUnavailable`
        """
        try:
            payload = await self.api.get_campaign_analytics(campaign.id)
            if isinstance(payload, dict):
                payload = {"id": campaign.id, **payload}
            return CampaignAnalytics.model_validate(payload)
        except Exception as e:
            failure = CampaignFetchFailed(campaign.id, cause=e)
            logger.warning(
                "Analytics unavailable for campaign %s: %s", campaign.id, failure.details.get("cause")
            )
            return AnalyticsUnavailable(campaign_id=campaign.id, error=failure)

    async def fetch_all_analytics(
        self, campaigns: Sequence[Campaign], progress: Optional[ExportProgress] = None
    ) -> List[AnalyticsOutcome]:
        """Fetch analytics for every campaign concurrently.

        Results are in campaign order. Progress advances once per settled
        fetch, success or failure.
        """
        total = len(campaigns)
        settled = 0
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def fetch(campaign: Campaign) -> AnalyticsOutcome:
            nonlocal settled
            if semaphore is None:
                outcome = await self.fetch_analytics(campaign)
            else:
                async with semaphore:
                    outcome = await self.fetch_analytics(campaign)
            settled += 1
            if progress is not None:
                progress.fetched(settled, total)
            return outcome

        return list(await asyncio.gather(*(fetch(c) for c in campaigns)))

    async def export(
        self,
        campaigns: Sequence[Union[Campaign, dict]],
        clients: Sequence[Union[Client, dict]],
        start_date: Optional[DateLike],
        end_date: Optional[DateLike],
        client_filter: Optional[Union[int, str]] = None,
        on_progress: Optional[ProgressListener] = None,
    ) -> ExportResult:
        """Run one export and report its outcome.

        Never raises for expected failures; they are reported through
        :attr:`ExportResult.error`.

        :param campaigns: Dashboard campaign snapshot
        :param clients: Dashboard client snapshot
        :param start_date: First day of the range, inclusive
        :param end_date: Last day of the range, inclusive
        :param client_filter: Client id, ``"all"`` or None
        :param on_progress: Called with each new progress percentage
        :return: Export outcome
        :rtype: ExportResult
        """
        progress = ExportProgress()
        if on_progress is not None:
            progress.subscribe(on_progress)

        try:
            criteria = ExportFilterCriteria.create(start_date, end_date, client_filter)
        except SmartleadError as e:
            logger.info("Export rejected: %s", e.message)
            return ExportResult(success=False, error=e.message)

        try:
            campaign_models = _as_models(campaigns, Campaign)
            client_models = _as_models(clients, Client)
        except Exception as e:
            logger.error("Export input could not be read: %s", e)
            return ExportResult(success=False, error=f"Invalid export input: {e}")

        progress.advance_to(STARTED)
        selected = filter_campaigns(campaign_models, criteria)
        logger.info(
            "Exporting %d of %d campaigns (%s to %s, client=%s)",
            len(selected),
            len(campaign_models),
            criteria.start_date,
            criteria.end_date,
            "all" if criteria.is_all_clients else criteria.client_id,
        )

        outcomes = await self.fetch_all_analytics(selected, progress)
        analytics = [o for o in outcomes if isinstance(o, CampaignAnalytics)]
        missing = len(outcomes) - len(analytics)
        if missing:
            logger.warning("%d of %d campaigns exported without analytics", missing, len(outcomes))

        progress.advance_to(ASSEMBLING)
        try:
            document = build_export_document(
                selected, analytics, client_models, generated_at=self._clock()
            )
            filename = derive_filename(criteria, client_models)
            path = await asyncio.to_thread(self.writer.write, document, filename)
        except SmartleadError as e:
            logger.error("Export failed: %s", e.message)
            return ExportResult(
                success=False,
                error=e.message,
                campaign_count=len(selected),
                analytics_count=len(analytics),
            )
        except Exception as e:
            logger.error("Export failed: %s", e)
            return ExportResult(
                success=False,
                error=f"Failed to write export: {e}",
                campaign_count=len(selected),
                analytics_count=len(analytics),
            )

        progress.advance_to(COMPLETE)
        logger.info("Export complete: %s", path)
        return ExportResult(
            success=True,
            filename=filename,
            path=path,
            campaign_count=len(selected),
            analytics_count=len(analytics),
            document=document,
        )
