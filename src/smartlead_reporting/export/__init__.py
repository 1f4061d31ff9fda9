"""Batch campaign export to Excel workbooks."""

from .document import (
    CampaignExportRow,
    Sheet,
    SpreadsheetDocument,
    build_export_document,
    build_export_rows,
    derive_filename,
)
from .filters import (
    ExportFilterCriteria,
    estimate_export_seconds,
    filter_campaigns,
    validate_date_range,
)
from .orchestrator import AnalyticsUnavailable, ExportOrchestrator, ExportResult
from .progress import ExportProgress
from .writer import WorkbookWriter

__all__ = [
    "AnalyticsUnavailable",
    "CampaignExportRow",
    "ExportFilterCriteria",
    "ExportOrchestrator",
    "ExportProgress",
    "ExportResult",
    "Sheet",
    "SpreadsheetDocument",
    "WorkbookWriter",
    "build_export_document",
    "build_export_rows",
    "derive_filename",
    "estimate_export_seconds",
    "filter_campaigns",
    "validate_date_range",
]
