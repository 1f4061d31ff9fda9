"""Tests for the export orchestrator.

The API is mocked at the operation level; the document builder and the
openpyxl writer run for real into a temporary directory.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from openpyxl import load_workbook

from smartlead_reporting.exceptions import DocumentBuildError, ServerError
from smartlead_reporting.export import orchestrator as orchestrator_module
from smartlead_reporting.export.document import DATA_SHEET
from smartlead_reporting.export.orchestrator import (
    AnalyticsUnavailable,
    ExportOrchestrator,
)
from smartlead_reporting.export.writer import WorkbookWriter
from smartlead_reporting.models.base_models import Campaign


def january_campaigns():
    return [
        {"id": 1, "name": "A", "client_id": 1, "created_at": "2024-01-03T00:00:00Z"},
        {"id": 2, "name": "B", "client_id": 1, "created_at": "2024-01-10T00:00:00Z"},
        {"id": 3, "name": "C", "client_id": 2, "created_at": "2024-01-28T00:00:00Z"},
    ]


def mock_api(responses):
    """API double whose analytics call answers from ``responses`` by id."""
    api = MagicMock()

    async def get_campaign_analytics(campaign_id):
        await asyncio.sleep(0)
        result = responses[campaign_id]
        if isinstance(result, Exception):
            raise result
        return result

    api.get_campaign_analytics = AsyncMock(side_effect=get_campaign_analytics)
    return api


def make_orchestrator(api, tmp_path: Path, **kwargs):
    return ExportOrchestrator(
        api,
        WorkbookWriter(tmp_path),
        clock=lambda: datetime(2024, 2, 1, 12, 0, 0),
        **kwargs,
    )


class TestExport:
    @pytest.mark.asyncio
    async def test_partial_failure_still_exports_every_campaign(
        self, tmp_path, sample_clients, make_analytics
    ):
        api = mock_api(
            {
                1: make_analytics(1, sent=100, replies=5),
                2: ServerError(500, "Internal Server Error"),
                3: make_analytics(3, sent=40, replies=1),
            }
        )
        progress = []
        result = await make_orchestrator(api, tmp_path).export(
            january_campaigns(), sample_clients, "2024-01-01", "2024-01-31", "all",
            on_progress=progress.append,
        )

        assert result.success
        assert result.error is None
        assert result.campaign_count == 3
        assert result.analytics_count == 2
        assert result.filename == "Smartlead_Campaigns_All Clients_2024-01-01_to_2024-01-31.xlsx"
        assert result.path.exists()

        data_rows = result.document.sheet(DATA_SHEET).rows[1:]
        assert [r[0] for r in data_rows] == [1, 2, 3]
        assert data_rows[1][5:10] == (0, 0, 0, 0, 0)

        assert progress == sorted(progress)
        assert progress[0] == 5
        assert 85 in progress
        assert progress[-1] == 100

        workbook = load_workbook(result.path)
        assert workbook.sheetnames[0] == "Campaign Data"
        assert workbook["Campaign Data"].max_row == 4

    @pytest.mark.asyncio
    async def test_one_fetch_per_selected_campaign(self, tmp_path, sample_clients, make_analytics):
        api = mock_api({i: make_analytics(i, sent=10) for i in (1, 2, 3)})
        result = await make_orchestrator(api, tmp_path).export(
            january_campaigns(), sample_clients, "2024-01-01", "2024-01-15", 1
        )

        assert result.success
        assert result.campaign_count == 2
        called = sorted(call.args[0] for call in api.get_campaign_analytics.await_args_list)
        assert called == [1, 2]
        assert result.filename == "Smartlead_Campaigns_Acme Corp_2024-01-01_to_2024-01-15.xlsx"

    @pytest.mark.asyncio
    async def test_invalid_range_makes_no_calls(self, tmp_path, sample_clients):
        api = mock_api({})
        progress = []
        result = await make_orchestrator(api, tmp_path).export(
            january_campaigns(), sample_clients, "2024-02-01", "2024-01-01",
            on_progress=progress.append,
        )

        assert not result.success
        assert "Start date must be before end date" in result.error
        api.get_campaign_analytics.assert_not_called()
        assert progress == []
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_builder_failure_reports_error(
        self, tmp_path, sample_clients, make_analytics, monkeypatch
    ):
        def broken(*args, **kwargs):
            raise DocumentBuildError("Failed to build Summary & Insights sheet: boom")

        monkeypatch.setattr(orchestrator_module, "build_export_document", broken)
        api = mock_api({i: make_analytics(i, sent=10) for i in (1, 2, 3)})
        progress = []
        result = await make_orchestrator(api, tmp_path).export(
            january_campaigns(), sample_clients, "2024-01-01", "2024-01-31",
            on_progress=progress.append,
        )

        assert not result.success
        assert "boom" in result.error
        assert result.filename is None
        assert 100 not in progress
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_writer_failure_reports_error(self, tmp_path, sample_clients, make_analytics):
        writer = MagicMock()
        writer.write.side_effect = PermissionError("read-only")
        api = mock_api({i: make_analytics(i, sent=10) for i in (1, 2, 3)})
        orchestrator = ExportOrchestrator(api, writer)

        result = await orchestrator.export(
            january_campaigns(), sample_clients, "2024-01-01", "2024-01-31"
        )

        assert not result.success
        assert "read-only" in result.error

    @pytest.mark.asyncio
    async def test_empty_selection_still_writes_workbook(self, tmp_path, sample_clients):
        api = mock_api({})
        progress = []
        result = await make_orchestrator(api, tmp_path).export(
            january_campaigns(), sample_clients, "2023-01-01", "2023-12-31",
            on_progress=progress.append,
        )

        assert result.success
        assert result.campaign_count == 0
        assert progress == [5, 85, 100]
        api.get_campaign_analytics.assert_not_called()

    @pytest.mark.asyncio
    async def test_control_character_in_campaign_name_still_exports(
        self, tmp_path, sample_clients, make_analytics
    ):
        campaigns = january_campaigns()
        campaigns[0]["name"] = "Q1\x0bOutreach"
        api = mock_api({i: make_analytics(i, sent=10) for i in (1, 2, 3)})

        result = await make_orchestrator(api, tmp_path).export(
            campaigns, sample_clients, "2024-01-01", "2024-01-31"
        )

        assert result.success, result.error
        assert load_workbook(result.path)["Campaign Data"]["B2"].value == "Q1Outreach"

    @pytest.mark.asyncio
    async def test_unreadable_client_filter_reports_error(self, tmp_path, sample_clients):
        api = mock_api({})
        result = await make_orchestrator(api, tmp_path).export(
            january_campaigns(), sample_clients, "2024-01-01", "2024-01-31", [1, 2]
        )

        assert not result.success
        assert "Invalid client filter" in result.error
        api.get_campaign_analytics.assert_not_called()


class TestFetchAnalytics:
    @pytest.mark.asyncio
    async def test_failure_becomes_unavailable_marker(self, tmp_path):
        api = mock_api({7: ServerError(502, "Bad Gateway")})
        outcome = await make_orchestrator(api, tmp_path).fetch_analytics(
            Campaign(id=7, name="x")
        )

        assert isinstance(outcome, AnalyticsUnavailable)
        assert outcome.campaign_id == 7
        assert outcome.error.details["error_type"] == "ServerError"

    @pytest.mark.asyncio
    async def test_payload_without_id_uses_campaign_id(self, tmp_path):
        api = mock_api({7: {"sent_count": "12"}})
        outcome = await make_orchestrator(api, tmp_path).fetch_analytics(Campaign(id=7))

        assert outcome.id == 7
        assert outcome.sent_count == 12

    @pytest.mark.asyncio
    async def test_concurrency_cap(self, tmp_path):
        active = 0
        peak = 0

        async def slow(campaign_id):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return {"id": campaign_id, "sent_count": "1"}

        api = MagicMock()
        api.get_campaign_analytics = AsyncMock(side_effect=slow)
        orchestrator = make_orchestrator(api, tmp_path, max_concurrency=2)

        outcomes = await orchestrator.fetch_all_analytics([Campaign(id=i) for i in range(6)])

        assert [o.id for o in outcomes] == list(range(6))
        assert peak == 2
