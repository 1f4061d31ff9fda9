"""Tests for export filter criteria and campaign selection."""

from datetime import date

import pytest

from smartlead_reporting.exceptions import InvalidRangeError
from smartlead_reporting.export.filters import (
    ExportFilterCriteria,
    estimate_export_seconds,
    filter_campaigns,
    validate_date_range,
)
from smartlead_reporting.models.base_models import Campaign


@pytest.fixture
def campaigns(sample_campaigns):
    return [Campaign.model_validate(c) for c in sample_campaigns]


class TestExportFilterCriteria:
    def test_create_parses_iso_strings(self):
        criteria = ExportFilterCriteria.create("2024-01-01", "2024-01-31", "all")
        assert criteria.start_date == date(2024, 1, 1)
        assert criteria.end_date == date(2024, 1, 31)
        assert criteria.is_all_clients

    def test_client_filter_id(self):
        assert ExportFilterCriteria.create("2024-01-01", "2024-01-31", "7").client_id == 7
        assert ExportFilterCriteria.create("2024-01-01", "2024-01-31", 7).client_id == 7
        assert ExportFilterCriteria.create("2024-01-01", "2024-01-31", None).is_all_clients

    def test_start_after_end_is_rejected(self):
        with pytest.raises(InvalidRangeError) as exc_info:
            ExportFilterCriteria.create("2024-02-01", "2024-01-01")
        assert exc_info.value.code == "INVALID_RANGE"

    def test_single_day_range_is_valid(self):
        validate_date_range("2024-01-15", "2024-01-15")

    @pytest.mark.parametrize("start,end", [(None, "2024-01-01"), ("2024-01-01", ""), ("nope", "2024-01-01")])
    def test_missing_or_malformed_dates(self, start, end):
        with pytest.raises(InvalidRangeError):
            validate_date_range(start, end)

    def test_bad_client_filter(self):
        with pytest.raises(InvalidRangeError):
            ExportFilterCriteria.create("2024-01-01", "2024-01-31", "acme")

    def test_client_filter_of_wrong_type(self):
        with pytest.raises(InvalidRangeError):
            ExportFilterCriteria.create("2024-01-01", "2024-01-31", [1, 2])

    def test_criteria_is_immutable(self):
        criteria = ExportFilterCriteria.create("2024-01-01", "2024-01-31")
        with pytest.raises(Exception):
            criteria.client_id = 3


class TestFilterCampaigns:
    def test_january_all_clients_selects_two_of_three(self, campaigns):
        criteria = ExportFilterCriteria.create("2024-01-01", "2024-01-31", "all")
        selected = filter_campaigns(campaigns, criteria)
        assert [c.id for c in selected] == [101, 102]

    def test_end_date_is_inclusive(self, campaigns):
        # 102 was created late on Jan 20
        criteria = ExportFilterCriteria.create("2024-01-20", "2024-01-20")
        assert [c.id for c in filter_campaigns(campaigns, criteria)] == [102]

    def test_client_filter(self, campaigns):
        criteria = ExportFilterCriteria.create("2024-01-01", "2024-12-31", 2)
        assert [c.id for c in filter_campaigns(campaigns, criteria)] == [201]

    def test_campaign_without_created_at_is_excluded(self):
        criteria = ExportFilterCriteria.create("2024-01-01", "2024-12-31")
        undated = Campaign.model_validate({"id": 1, "name": "x"})
        assert filter_campaigns([undated], criteria) == []

    def test_empty_range_result(self, campaigns):
        criteria = ExportFilterCriteria.create("2023-01-01", "2023-12-31")
        assert filter_campaigns(campaigns, criteria) == []


def test_estimate_export_seconds():
    assert estimate_export_seconds(0) == 0
    assert estimate_export_seconds(1) == 1
    assert estimate_export_seconds(100) == 65
