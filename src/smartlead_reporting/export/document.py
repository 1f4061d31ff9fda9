"""Campaign export workbook assembly.

Pure transformation of already-fetched data into a four-sheet
:class:`SpreadsheetDocument` plus its filename; no network access and no
file output (see :mod:`.writer`).

Sheets, in order:

1. ``Campaign Data`` - one row per filtered campaign with raw counts and
   computed rates. Campaigns without analytics keep their row with every
   metric at zero.
2. ``Performance Charts`` - chart-ready tables, each introduced by a label
   naming the cell range to select.
3. ``Summary & Insights`` - totals, client rollup, top and weakest
   performers.
4. ``Quick Charts`` - the chart tables without guidance text.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..exceptions import DocumentBuildError
from ..models.base_models import Campaign, CampaignAnalytics, Client, parse_timestamp
from .filters import ExportFilterCriteria

logger = logging.getLogger(__name__)

Cell = Union[str, int, float, None]
Row = Tuple[Cell, ...]

DATA_SHEET = "Campaign Data"
CHARTS_SHEET = "Performance Charts"
SUMMARY_SHEET = "Summary & Insights"
QUICK_CHARTS_SHEET = "Quick Charts"

DATA_HEADERS: Row = (
    "Campaign ID",
    "Campaign Name",
    "Status",
    "Created Date",
    "Client Name",
    "Sent Count",
    "Open Count",
    "Click Count",
    "Reply Count",
    "Bounce Count",
    "Open Rate %",
    "Click Rate %",
    "Reply Rate %",
    "Bounce Rate %",
    "Sequence Count",
    "Total Leads",
)

TOP_CAMPAIGNS = 10
ROLLING_SAMPLE = 8
SUMMARY_PERFORMERS = 5
# Campaigns with this many sends or fewer are too small to call weak
MIN_SENDS_FOR_REVIEW = 10
LOW_REPLY_RATE = 2.0

TARGET_RATES = (("Open Rate", 25), ("Click Rate", 5), ("Reply Rate", 2), ("Bounce Rate", 2))

ACTIONABLE_INSIGHTS = (
    "1. Focus on campaigns with low reply rates but high send volumes",
    "2. Analyze top performers for best practices",
    "3. Consider A/B testing subject lines and content",
    "4. Monitor bounce rates for deliverability issues",
    "5. Optimize email sequences based on response patterns",
    "6. Client-specific optimization opportunities identified above",
)

_BLANK: Row = ()
_ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


@dataclass(frozen=True)
class Sheet:
    """Named, ordered grid of primitive cell values."""

    name: str
    rows: Tuple[Row, ...]
    column_widths: Tuple[int, ...] = ()


@dataclass(frozen=True)
class SpreadsheetDocument:
    """Ordered collection of sheets, built once and never modified."""

    sheets: Tuple[Sheet, ...]

    @property
    def sheet_names(self) -> List[str]:
        return [s.name for s in self.sheets]

    def sheet(self, name: str) -> Sheet:
        for s in self.sheets:
            if s.name == name:
                return s
        raise KeyError(name)


@dataclass(frozen=True)
class CampaignExportRow:
    """One campaign with its counts and derived rates."""

    id: int
    name: str
    status: Optional[str]
    created_at: Optional[str]
    client_id: Optional[int]
    client_name: str
    sent_count: int = 0
    open_count: int = 0
    click_count: int = 0
    reply_count: int = 0
    bounce_count: int = 0
    sequence_count: int = 0
    total_leads: int = 0
    open_rate: float = 0.0
    click_rate: float = 0.0
    reply_rate: float = 0.0
    bounce_rate: float = 0.0
    has_analytics: bool = False


def compute_rate(count: int, sent_count: int) -> float:
    """``count / sent_count * 100``, or 0 when nothing was sent."""
    return (count / sent_count) * 100 if sent_count > 0 else 0.0


def resolve_client_name(client_id: Optional[int], clients: Sequence[Client]) -> str:
    if not client_id:
        return "No Client"
    for client in clients:
        if client.id == client_id:
            return client.name
    return f"Client {client_id}"


def build_export_rows(
    campaigns: Sequence[Campaign],
    analytics: Sequence[CampaignAnalytics],
    clients: Sequence[Client],
) -> List[CampaignExportRow]:
    """One row per campaign, in campaign order.

    A campaign with no matching analytics record still gets a row, with
    every count and rate at zero.
    """
    by_id: Dict[int, CampaignAnalytics] = {}
    for record in analytics:
        by_id.setdefault(record.id, record)

    rows = []
    for campaign in campaigns:
        base = dict(
            id=campaign.id,
            name=campaign.name or f"Campaign {campaign.id}",
            status=campaign.status,
            created_at=campaign.created_at,
            client_id=campaign.client_id,
            client_name=resolve_client_name(campaign.client_id, clients),
        )
        record = by_id.get(campaign.id)
        if record is None:
            rows.append(CampaignExportRow(**base))
            continue

        sent = record.sent_count
        rows.append(
            CampaignExportRow(
                **base,
                sent_count=sent,
                open_count=record.open_count,
                click_count=record.click_count,
                reply_count=record.reply_count,
                bounce_count=record.bounce_count,
                sequence_count=record.sequence_count,
                total_leads=record.campaign_lead_stats.total,
                open_rate=compute_rate(record.open_count, sent),
                click_rate=compute_rate(record.click_count, sent),
                reply_rate=compute_rate(record.reply_count, sent),
                bounce_rate=compute_rate(record.bounce_count, sent),
                has_analytics=True,
            )
        )
    return rows


def _format_created(created_at: Optional[str]) -> str:
    if not created_at:
        return ""
    parsed = parse_timestamp(created_at)
    if parsed is None:
        return created_at
    return parsed.strftime("%b %d, %Y")


def _pct(value: float) -> str:
    return f"{value:.2f}%"


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _top_by_reply_rate(rows: Sequence[CampaignExportRow], n: int) -> List[CampaignExportRow]:
    # sorted() is stable: ties keep the filtered campaign order
    return sorted(rows, key=lambda r: r.reply_rate, reverse=True)[:n]


@dataclass(frozen=True)
class _ClientAggregate:
    name: str
    campaigns: int
    avg_reply_rate: float
    total_sent: int
    total_replies: int

    @property
    def reply_rate(self) -> float:
        return compute_rate(self.total_replies, self.total_sent)


def _client_aggregates(
    rows: Sequence[CampaignExportRow], clients: Sequence[Client]
) -> List[_ClientAggregate]:
    """Per-client aggregates for clients with at least one row, client order."""
    aggregates = []
    for client in clients:
        own = [r for r in rows if r.client_id == client.id]
        if not own:
            continue
        aggregates.append(
            _ClientAggregate(
                name=client.name,
                campaigns=len(own),
                avg_reply_rate=round(_mean([r.reply_rate for r in own]), 2),
                total_sent=sum(r.sent_count for r in own),
                total_replies=sum(r.reply_count for r in own),
            )
        )
    return aggregates


def _average_rates(rows: Sequence[CampaignExportRow]) -> List[float]:
    return [
        _mean([r.open_rate for r in rows]),
        _mean([r.click_rate for r in rows]),
        _mean([r.reply_rate for r in rows]),
        _mean([r.bounce_rate for r in rows]),
    ]


def build_data_sheet(rows: Sequence[CampaignExportRow]) -> Sheet:
    body = [
        (
            r.id,
            r.name,
            r.status,
            _format_created(r.created_at),
            r.client_name,
            r.sent_count,
            r.open_count,
            r.click_count,
            r.reply_count,
            r.bounce_count,
            round(r.open_rate, 2),
            round(r.click_rate, 2),
            round(r.reply_rate, 2),
            round(r.bounce_rate, 2),
            r.sequence_count,
            r.total_leads,
        )
        for r in rows
    ]
    return Sheet(
        name=DATA_SHEET,
        rows=(DATA_HEADERS, *body),
        column_widths=(12, 25, 15, 15, 20, 12, 12, 12, 12, 12, 12, 12, 12, 12, 15, 12),
    )


class _GridBuilder:
    """Accumulates rows and knows the spreadsheet row number of the next one."""

    def __init__(self):
        self.rows: List[Row] = []

    @property
    def next_row(self) -> int:
        return len(self.rows) + 1

    def add(self, *rows: Row) -> None:
        self.rows.extend(rows)

    def table(self, title: str, hint: Optional[str], header: Row, body: List[Row]) -> None:
        """Append a labelled table; ``hint`` names the range to select."""
        self.add((title,))
        if hint is not None:
            first = self.next_row + 1
            last = first + len(body)
            last_col = chr(ord("A") + len(header) - 1)
            self.add((f"Select cells A{first}:{last_col}{last} below to create {hint}",))
        self.add(header, *body)


def build_charts_sheet(
    rows: Sequence[CampaignExportRow], clients: Sequence[Client]
) -> Sheet:
    grid = _GridBuilder()
    grid.add(
        ("EXCEL CHART CREATION GUIDE",),
        _BLANK,
        ("HOW TO CREATE CHARTS:",),
        ("1. Select the data range for your chart (including headers)",),
        ("2. Go to Insert > Charts in Excel",),
        ("3. Choose your preferred chart type",),
        ("4. Excel will automatically create the chart",),
        _BLANK,
    )

    aggregates = _client_aggregates(rows, clients)

    grid.table(
        "CHART 1: TOP CAMPAIGNS BY REPLY RATE (Bar Chart)",
        "a bar chart",
        ("Campaign Name", "Reply Rate %", "Sent Count"),
        [(r.name, round(r.reply_rate, 2), r.sent_count) for r in _top_by_reply_rate(rows, TOP_CAMPAIGNS)],
    )
    grid.add(_BLANK)
    grid.table(
        "CHART 2: CLIENT PERFORMANCE COMPARISON (Bar Chart)",
        "a bar chart",
        ("Client Name", "Average Reply Rate %", "Campaign Count"),
        [(a.name, a.avg_reply_rate, a.campaigns) for a in aggregates],
    )
    grid.add(_BLANK)
    grid.table(
        "CHART 3: CAMPAIGN DISTRIBUTION BY CLIENT (Pie Chart)",
        "a pie chart",
        ("Client Name", "Campaign Count"),
        [(a.name, a.campaigns) for a in aggregates],
    )
    grid.add(_BLANK)
    grid.table(
        "CHART 4: REPLY RATE TREND (Line Chart)",
        "a line chart",
        ("Campaign Name", "Reply Rate %", "Sent Count"),
        [(r.name, round(r.reply_rate, 2), r.sent_count) for r in rows[:ROLLING_SAMPLE]],
    )
    grid.add(_BLANK)
    grid.table(
        "CHART 5: PERFORMANCE METRICS COMPARISON (Radar Chart)",
        "a radar chart",
        ("Metric", "Value", "Target"),
        [
            (label, round(value, 2), target)
            for (label, target), value in zip(TARGET_RATES, _average_rates(rows))
        ],
    )
    return Sheet(name=CHARTS_SHEET, rows=tuple(grid.rows), column_widths=(40, 15, 15))


def build_summary_sheet(
    rows: Sequence[CampaignExportRow],
    clients: Sequence[Client],
    generated_at: datetime,
) -> Sheet:
    widths = (40, 15, 15, 20)
    if not rows:
        return Sheet(
            name=SUMMARY_SHEET,
            rows=(("No data available for the selected criteria",),),
            column_widths=widths,
        )

    total_sent = sum(r.sent_count for r in rows)
    totals = {
        "open": sum(r.open_count for r in rows),
        "click": sum(r.click_count for r in rows),
        "reply": sum(r.reply_count for r in rows),
        "bounce": sum(r.bounce_count for r in rows),
    }

    top = _top_by_reply_rate(rows, SUMMARY_PERFORMERS)
    weakest = sorted(
        (r for r in rows if r.reply_rate < LOW_REPLY_RATE and r.sent_count > MIN_SENDS_FOR_REVIEW),
        key=lambda r: r.reply_rate,
    )[:SUMMARY_PERFORMERS]

    def performer(r: CampaignExportRow) -> Row:
        return (r.name, _pct(r.reply_rate), r.sent_count, r.client_name)

    grid = _GridBuilder()
    grid.add(
        ("SMARTLEAD CAMPAIGN EXPORT SUMMARY",),
        ("Generated on:", generated_at.strftime("%Y-%m-%d %H:%M:%S")),
        _BLANK,
        ("EXPORT PERIOD",),
        ("Total Campaigns", len(rows)),
        ("Total Emails Sent", total_sent),
        _BLANK,
        ("OVERALL PERFORMANCE",),
        ("Average Open Rate", _pct(compute_rate(totals["open"], total_sent))),
        ("Average Click Rate", _pct(compute_rate(totals["click"], total_sent))),
        ("Average Reply Rate", _pct(compute_rate(totals["reply"], total_sent))),
        ("Average Bounce Rate", _pct(compute_rate(totals["bounce"], total_sent))),
        _BLANK,
    )
    grid.table(
        "CLIENT PERFORMANCE SUMMARY",
        None,
        ("Client Name", "Campaigns", "Total Sent", "Total Replies", "Reply Rate %"),
        [
            (a.name, a.campaigns, a.total_sent, a.total_replies, _pct(a.reply_rate))
            for a in _client_aggregates(rows, clients)
        ],
    )
    grid.add(_BLANK)
    grid.table(
        "TOP PERFORMING CAMPAIGNS",
        None,
        ("Campaign Name", "Reply Rate %", "Sent Count", "Client"),
        [performer(r) for r in top],
    )
    grid.add(_BLANK)
    grid.table(
        "CAMPAIGNS NEEDING IMPROVEMENT",
        None,
        ("Campaign Name", "Reply Rate %", "Sent Count", "Client"),
        [performer(r) for r in weakest],
    )
    grid.add(_BLANK, ("ACTIONABLE INSIGHTS",), *((line,) for line in ACTIONABLE_INSIGHTS))
    return Sheet(name=SUMMARY_SHEET, rows=tuple(grid.rows), column_widths=widths)


def build_quick_charts_sheet(
    rows: Sequence[CampaignExportRow], clients: Sequence[Client]
) -> Sheet:
    aggregates = _client_aggregates(rows, clients)
    grid = _GridBuilder()
    grid.table(
        "TOP CAMPAIGNS - REPLY RATE",
        None,
        ("Campaign Name", "Reply Rate %", "Sent Count", "Client"),
        [
            (r.name, round(r.reply_rate, 2), r.sent_count, r.client_name)
            for r in _top_by_reply_rate(rows, TOP_CAMPAIGNS)
        ],
    )
    grid.add(_BLANK, _BLANK)
    grid.table(
        "CLIENT PERFORMANCE",
        None,
        ("Client Name", "Avg Reply Rate %", "Campaign Count", "Total Sent"),
        [(a.name, a.avg_reply_rate, a.campaigns, a.total_sent) for a in aggregates],
    )
    grid.add(_BLANK, _BLANK)
    grid.table(
        "CAMPAIGN DISTRIBUTION BY CLIENT",
        None,
        ("Client Name", "Campaign Count"),
        [(a.name, a.campaigns) for a in aggregates],
    )
    grid.add(_BLANK, _BLANK)
    grid.table(
        "PERFORMANCE METRICS",
        None,
        ("Metric", "Current Value", "Industry Average"),
        [
            (label, _pct(value), f"{target}%")
            for (label, target), value in zip(TARGET_RATES, _average_rates(rows))
        ],
    )
    return Sheet(name=QUICK_CHARTS_SHEET, rows=tuple(grid.rows), column_widths=(35, 15, 15, 20))


def resolve_client_label(criteria: ExportFilterCriteria, clients: Sequence[Client]) -> str:
    """Selected client's name, ``Unknown`` if not listed, or ``All Clients``."""
    if criteria.is_all_clients:
        return "All Clients"
    for client in clients:
        if client.id == criteria.client_id:
            return client.name
    return "Unknown"


def derive_filename(criteria: ExportFilterCriteria, clients: Sequence[Client]) -> str:
    """Deterministic workbook filename for a client selection and date range."""
    label = _ILLEGAL_FILENAME_CHARS.sub("_", resolve_client_label(criteria, clients))
    return (
        f"Smartlead_Campaigns_{label}_"
        f"{criteria.start_date.isoformat()}_to_{criteria.end_date.isoformat()}.xlsx"
    )


def build_export_document(
    campaigns: Sequence[Campaign],
    analytics: Sequence[CampaignAnalytics],
    clients: Sequence[Client],
    generated_at: Optional[datetime] = None,
) -> SpreadsheetDocument:
    """Assemble the four-sheet export document.

    :param campaigns: Filtered campaigns, in export order
    :param analytics: Successfully fetched analytics records
    :param clients: Client list used for name resolution and rollups
    :param generated_at: Timestamp printed on the summary sheet
    :return: Immutable document
    :raises DocumentBuildError: If any sheet cannot be built
    """
    generated_at = generated_at or datetime.now()
    try:
        rows = build_export_rows(campaigns, analytics, clients)
    except Exception as e:
        raise DocumentBuildError(f"Failed to prepare export rows: {e}", sheet=DATA_SHEET) from e

    builders: List[Tuple[str, Callable[[], Sheet]]] = [
        (DATA_SHEET, lambda: build_data_sheet(rows)),
        (CHARTS_SHEET, lambda: build_charts_sheet(rows, clients)),
        (SUMMARY_SHEET, lambda: build_summary_sheet(rows, clients, generated_at)),
        (QUICK_CHARTS_SHEET, lambda: build_quick_charts_sheet(rows, clients)),
    ]
    sheets = []
    for name, build in builders:
        try:
            sheets.append(build())
        except Exception as e:
            raise DocumentBuildError(f"Failed to build {name} sheet: {e}", sheet=name) from e

    logger.debug(
        "Built export document: %d campaign rows, %d with analytics",
        len(rows),
        sum(1 for r in rows if r.has_analytics),
    )
    return SpreadsheetDocument(sheets=tuple(sheets))
