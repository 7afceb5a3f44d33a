from datetime import date

import pytest

from auction_reports.services.market_summary import build_market_summary, build_trend_series, pct_change
from auction_reports.services.report_reconciliation import publish_report, save_draft


def _publish(run_store, report) -> str:
    draft = run_store(lambda s: save_draft(s, report)).data
    report.auction.id = draft.auction_id
    res = run_store(lambda s: publish_report(s, report))
    assert res.success, res.error
    return draft.auction_id


@pytest.fixture
def two_auctions(run_store, make_report):
    first = _publish(run_store, make_report())

    second = make_report()
    second.auction.auction_date = date(2025, 9, 10)
    second.auction.catalogue_name = "CG02"
    second.supply_stats.offered_bales = 7000
    second.market_indices.merino_indicator_sa_cents_clean = 19000
    second.market_indices.certified_indicator_sa_cents_clean = 19500
    second.currency_fx.zar_usd = 18.0
    second_id = _publish(run_store, second)

    # Later draft: not part of any season figure.
    later = make_report()
    later.auction.auction_date = date(2025, 9, 17)
    later.auction.catalogue_name = "CG03"
    later.supply_stats.offered_bales = 99999
    run_store(lambda s: save_draft(s, later))

    return first, second_id


def test_pct_change():
    assert pct_change(110, 100) == 10.0
    assert pct_change(5, 0) == 0
    assert pct_change(90, 100) == -10.0


def test_indicators_compare_with_previous_published_auction(run_store, two_auctions):
    first, second = two_auctions
    res = run_store(lambda s: build_market_summary(s, second))
    assert res.success, res.error
    summary = res.data
    assert summary.previous_auction_id == first

    ind = {i.type: i for i in summary.indicators}
    assert ind["total_lots"].value == 7000
    assert ind["total_lots"].value_ytd == 13507
    assert ind["total_lots"].pct_change == 7.6
    assert ind["total_volume"].value == 1020.0
    assert ind["total_volume"].value_ytd == 2040.0
    assert ind["total_volume"].pct_change == 0
    assert ind["avg_price"].value == 190.0
    assert ind["avg_price"].pct_change == 2.7
    assert ind["total_value"].value == 95.0
    assert ind["total_value"].value_ytd == 190.0


def test_benchmarks_and_currencies(run_store, two_auctions):
    _, second = two_auctions
    summary = run_store(lambda s: build_market_summary(s, second)).data

    bench = {b.label: b for b in summary.benchmarks}
    assert bench["Certified"].price == 195.0
    assert bench["Certified"].day_change_pct == 2.6
    assert bench["All-Merino"].day_change_pct == 2.7
    assert bench["AWEX"].price == 12.0
    assert bench["AWEX"].day_change_pct == 0

    cur = {c.code: c for c in summary.currencies}
    assert cur["USD"].value == 18.0
    assert cur["USD"].change == 2.86
    assert cur["EUR"].change == 0
    assert cur["AUD"].value == pytest.approx(18.0 / 0.66)


def test_season_averages_buyers_and_trends(run_store, two_auctions):
    _, second = two_auctions
    summary = run_store(lambda s: build_market_summary(s, second)).data

    averages = {a.label: a.value for a in summary.yearly_average_prices}
    assert averages["Certified Wool Avg Price (YTD)"] == 192.5
    assert averages["All - Merino Wool Avg Price (YTD)"] == 187.5

    totals = {b.buyer: b.total_bales_season for b in summary.buyer_season_totals}
    assert totals == {"Standard Wool": 6000, "Tianyu Wool": 2000}

    trends = summary.trends
    assert trends.current_year == 2025
    assert trends.previous_year == 2024
    assert [p.period for p in trends.rws] == ["1", "2"]
    assert [p.current_zar for p in trends.rws] == [190.0, 195.0]
    assert all(p.previous_zar is None for p in trends.rws)
    assert [p.current_zar for p in trends.exchange_rates] == [17.5, 18.0]


def test_first_auction_has_no_changes(run_store, two_auctions):
    first, _ = two_auctions
    summary = run_store(lambda s: build_market_summary(s, first)).data
    assert summary.previous_auction_id is None
    assert all(i.pct_change == 0 for i in summary.indicators)
    assert all(c.change == 0 for c in summary.currencies)


def test_unknown_auction(run_store, reference_ids):
    res = run_store(lambda s: build_market_summary(s, "missing"))
    assert not res.success
    assert res.error_kind == "not_found"


def test_trend_series_pads_the_shorter_season():
    current = [{"catalogue_number": "01", "certified_sa_c_kg_clean": 20000, "exchange_rates_zar_usd": 20.0}]
    previous = [
        {"certified_sa_c_kg_clean": 18000, "exchange_rates_zar_usd": 18.0},
        {"certified_sa_c_kg_clean": 18500, "exchange_rates_zar_usd": 18.5},
    ]
    trends = build_trend_series(current, previous, current_year=2025, previous_year=2024)

    assert [p.period for p in trends.rws] == ["1", "2"]
    assert trends.rws[0].current_zar == 200.0
    assert trends.rws[0].current_usd == 10.0
    assert trends.rws[0].previous_usd == 10.0
    assert trends.rws[1].current_zar is None
    assert trends.rws[1].previous_zar == 185.0
    assert trends.non_rws[0].current_zar is None
