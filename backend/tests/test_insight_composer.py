import pytest

from auction_reports.schemas.reports import BuyerRow
from auction_reports.services.derived_fields import apply_derived_fields
from auction_reports.services.insight_composer import (
    TOP_BUYERS,
    PassThroughComposer,
    build_insight_composer,
    build_market_data_summary,
    compose_insights,
)


class RecordingComposer:
    def __init__(self):
        self.calls = []

    def compose(self, text, summary):
        self.calls.append((text, summary))
        return f"{text} [{summary['catalogue']}]"


def test_market_data_summary(make_report):
    report = apply_derived_fields(make_report())
    summary = build_market_data_summary(report)

    assert summary.auction_date == "2025-09-03"
    assert summary.catalogue == "CG01"
    assert summary.total_lots == 6507
    assert summary.total_volume_mt == 1020.0
    assert summary.average_price == 185.0
    assert summary.clearance_rate == 93.5
    assert summary.top_buyers[0] == {"name": "Standard Wool", "bales": 3000, "percentage": 75.0}
    assert summary.micron_prices[1] == {"micron": 19.0, "price": 165, "pct_difference": 10.0}


def test_top_buyers_are_limited(make_report):
    report = make_report(buyers=[BuyerRow(buyer=f"B{i}", cat=i + 1) for i in range(8)])
    summary = build_market_data_summary(apply_derived_fields(report))
    assert len(summary.top_buyers) == TOP_BUYERS
    assert summary.top_buyers[0]["name"] == "B7"


def test_compose_uses_report_insights_unless_text_given(make_report):
    composer = RecordingComposer()
    report = make_report()

    assert compose_insights(composer, report) == "Firm market on finer microns. [CG01]"
    assert compose_insights(composer, report, "Short draft") == "Short draft [CG01]"
    assert composer.calls[1][1]["total_lots"] == 6507


def test_pass_through_composer_returns_draft(make_report):
    assert compose_insights(PassThroughComposer(), make_report()) == "Firm market on finer microns."
    assert compose_insights(PassThroughComposer(), make_report(insights=""), None) == ""


def test_build_insight_composer_from_setting():
    assert build_insight_composer("none") is None
    assert build_insight_composer(None) is None
    assert build_insight_composer("  ") is None
    assert isinstance(build_insight_composer("passthrough"), PassThroughComposer)
    assert isinstance(build_insight_composer(" PassThrough "), PassThroughComposer)
    with pytest.raises(ValueError):
        build_insight_composer("gpt")
