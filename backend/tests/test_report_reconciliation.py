import asyncio
from datetime import date, datetime, timezone

from auction_reports.database import SessionLocal
from auction_reports.schemas.reports import BuyerRow, CreateNewSelection, ProvincialGroup, ProvincialProducer
from auction_reports.services.report_reconciliation import archive_auction, publish_report, save_draft
from auction_reports.services.report_recomposer import recompose_report
from auction_reports.services.table_store import OperationResult, TableStore

CHILD_TABLES = ("micron_prices", "buyer_performance", "broker_performance", "top_performers", "market_insights")


class _FailingStore(TableStore):
    """Store whose inserts into one table fail, to exercise rollback."""

    def __init__(self, db, fail_table: str) -> None:
        super().__init__(db)
        self.fail_table = fail_table

    async def insert(self, table, rows):
        if table == self.fail_table:
            return OperationResult.fail("simulated failure", details={"table": table})
        return await super().insert(table, rows)


def _run_failing(fail_table, fn):
    async def _go():
        async with SessionLocal() as db:
            return await fn(_FailingStore(db, fail_table))

    return asyncio.run(_go())


def _counts(run_store, auction_id):
    async def _go(store):
        out = {}
        for table in CHILD_TABLES:
            out[table] = (await store.count(table, filters={"auction_id": auction_id})).data
        out["auctions"] = (await store.count("auctions")).data
        return out

    return run_store(_go)


def _auction_row(run_store, auction_id):
    return run_store(lambda s: s.select_one("auctions", filters={"id": auction_id})).data


def test_draft_round_trip(run_store, make_report):
    res = run_store(lambda s: save_draft(s, make_report(), user_id="u-1"))
    assert res.success, res.error
    outcome = res.data
    assert outcome.created is True
    assert outcome.status == "draft"
    assert outcome.warnings == ()

    loaded = run_store(lambda s: recompose_report(s, outcome.auction_id))
    assert loaded.auction.id == outcome.auction_id
    assert loaded.auction.catalogue_name == "CG01"
    assert loaded.auction.season_label == "2025/26"
    assert loaded.auction.commodity == "wool"
    assert loaded.status == "draft"
    assert loaded.supply_stats.clearance_rate_pct == 93.5
    assert loaded.market_indices.merino_indicator_sa_cents_clean == 18500

    assert [m.micron for m in loaded.micron_prices] == [18.0, 19.0]
    assert loaded.micron_prices[1].pct_difference == 10.0

    assert [b.buyer for b in loaded.buyers] == ["Standard Wool", "Tianyu Wool"]
    assert [b.share_pct for b in loaded.buyers] == [75.0, 25.0]

    broker = loaded.brokers[0]
    assert broker.name == "OVK"
    assert broker.wool_offered == 950
    assert broker.sold == 850
    assert broker.sold_pct == 89.47
    assert broker.previous_week is None

    assert [g.province for g in loaded.provincial_producers] == ["Eastern Cape"]
    producers = loaded.provincial_producers[0].producers
    assert [(p.position, p.name, p.certified) for p in producers] == [
        (1, "Smith Farming", "RWS"),
        (2, "Botha Trust", ""),
    ]
    assert loaded.insights == "Firm market on finer microns."


def test_resave_replaces_collections_without_duplicates(run_store, make_report):
    first = run_store(lambda s: save_draft(s, make_report())).data
    before = _counts(run_store, first.auction_id)
    assert before == {
        "micron_prices": 2,
        "buyer_performance": 2,
        "broker_performance": 1,
        "top_performers": 2,
        "market_insights": 1,
        "auctions": 1,
    }

    report = make_report()
    report.auction.id = first.auction_id
    second = run_store(lambda s: save_draft(s, report)).data
    assert second.created is False
    assert second.auction_id == first.auction_id
    assert _counts(run_store, first.auction_id) == before


def test_resave_shrinks_collections_and_drops_insight(run_store, make_report):
    first = run_store(lambda s: save_draft(s, make_report())).data

    report = make_report(insights="")
    report.auction.id = first.auction_id
    report.buyers = report.buyers[:1]
    assert run_store(lambda s: save_draft(s, report)).success

    counts = _counts(run_store, first.auction_id)
    assert counts["buyer_performance"] == 1
    assert counts["market_insights"] == 0
    row = _auction_row(run_store, first.auction_id)
    assert row["has_market_insights"] is False
    assert row["market_insights_id"] is None


def test_unresolved_buyer_is_stored_with_null_reference(run_store, make_report):
    report = make_report()
    report.buyers.append(BuyerRow(buyer="Mystery Wool Co", cat=10))

    outcome = run_store(lambda s: save_draft(s, report)).data
    assert any("Mystery Wool Co" in w for w in outcome.warnings)

    rows = run_store(
        lambda s: s.select("buyer_performance", filters={"auction_id": outcome.auction_id}, order_by="sort_order")
    ).data
    assert len(rows) == 3
    assert rows[2]["buyer_id"] is None

    loaded = run_store(lambda s: recompose_report(s, outcome.auction_id))
    assert loaded.buyers[2].buyer is None
    assert loaded.buyers[2].cat == 10


def test_create_new_buyer_selection_is_created_once(run_store, make_report):
    def _with_new_buyer():
        report = make_report()
        report.buyers.append(BuyerRow(buyer="", selection=CreateNewSelection(name="Karoo  Fibre Traders"), cat=500))
        return report

    first = run_store(lambda s: save_draft(s, _with_new_buyer(), user_id="u-1")).data
    run_store(lambda s: save_draft(s, _with_new_buyer(), user_id="u-1"))

    rows = run_store(lambda s: s.select("buyers", filters={"buyer_name": "Karoo Fibre Traders"})).data
    assert len(rows) == 1
    assert rows[0]["created_by"] == "u-1"

    loaded = run_store(lambda s: recompose_report(s, first.auction_id))
    assert loaded.buyers[-1].buyer == "Karoo Fibre Traders"
    assert loaded.buyers[-1].selection.id == rows[0]["id"]


def test_publish_requires_a_saved_draft(run_store, make_report):
    res = run_store(lambda s: publish_report(s, make_report()))
    assert not res.success
    assert res.error_kind == "gate"
    assert _counts(run_store, "none")["auctions"] == 0


def test_publish_rejects_invalid_report(run_store, make_report):
    draft = run_store(lambda s: save_draft(s, make_report(buyers=[]))).data

    report = make_report(buyers=[])
    report.auction.id = draft.auction_id
    res = run_store(lambda s: publish_report(s, report))
    assert not res.success
    assert res.error_kind == "validation"
    assert "buyers-brokers" in res.details
    assert _auction_row(run_store, draft.auction_id)["status"] == "draft"


def test_published_at_is_set_on_first_publish_only(run_store, make_report):
    draft = run_store(lambda s: save_draft(s, make_report())).data
    report = make_report()
    report.auction.id = draft.auction_id

    first_time = datetime(2025, 9, 4, 8, 0, tzinfo=timezone.utc)
    res = run_store(lambda s: publish_report(s, report, now=first_time))
    assert res.success, res.error
    assert res.data.status == "published"
    stored = _auction_row(run_store, draft.auction_id)
    assert stored["status"] == "published"
    assert stored["published_at"] is not None

    later = datetime(2025, 9, 11, 8, 0, tzinfo=timezone.utc)
    assert run_store(lambda s: publish_report(s, report, now=later)).success
    assert _auction_row(run_store, draft.auction_id)["published_at"] == stored["published_at"]


def test_published_auction_cannot_go_back_to_draft(run_store, make_report):
    draft = run_store(lambda s: save_draft(s, make_report())).data
    report = make_report()
    report.auction.id = draft.auction_id
    assert run_store(lambda s: publish_report(s, report)).success

    res = run_store(lambda s: save_draft(s, report))
    assert not res.success
    assert res.error_kind == "gate"
    assert _auction_row(run_store, draft.auction_id)["status"] == "published"


def test_archived_auction_cannot_be_published(run_store, make_report):
    draft = run_store(lambda s: save_draft(s, make_report())).data
    res = run_store(lambda s: archive_auction(s, draft.auction_id))
    assert res.success
    assert res.data["status"] == "archived"

    report = make_report()
    report.auction.id = draft.auction_id
    res = run_store(lambda s: publish_report(s, report))
    assert res.error_kind == "gate"


def test_save_of_unknown_auction_is_not_found(run_store, make_report):
    report = make_report()
    report.auction.id = "does-not-exist"
    res = run_store(lambda s: save_draft(s, report))
    assert res.error_kind == "not_found"


def test_failed_insert_rolls_back_new_report(run_store, make_report):
    res = _run_failing("top_performers", lambda s: save_draft(s, make_report()))
    assert not res.success
    assert res.error_kind == "store"
    assert res.details == {"table": "top_performers"}

    counts = run_store(lambda s: s.count("auctions")).data
    assert counts == 0
    assert run_store(lambda s: s.count("micron_prices")).data == 0


def test_failed_insert_leaves_existing_report_untouched(run_store, make_report):
    first = run_store(lambda s: save_draft(s, make_report())).data

    report = make_report()
    report.auction.id = first.auction_id
    report.supply_stats.offered_bales = 7000
    report.buyers = report.buyers[:1]
    res = _run_failing("broker_performance", lambda s: save_draft(s, report))
    assert res.error_kind == "store"

    row = _auction_row(run_store, first.auction_id)
    assert row["supply_statistics_bales_offered"] == 6507
    assert _counts(run_store, first.auction_id)["buyer_performance"] == 2


def test_suffixed_catalogue_name_survives_round_trip(run_store, make_report):
    report = make_report()
    report.auction.catalogue_name = "CG01A"
    outcome = run_store(lambda s: save_draft(s, report)).data
    assert outcome.warnings == ()

    row = _auction_row(run_store, outcome.auction_id)
    assert (row["catalogue_prefix"], row["catalogue_number"]) == ("CG", "01A")
    loaded = run_store(lambda s: recompose_report(s, outcome.auction_id))
    assert loaded.auction.catalogue_name == "CG01A"


def test_unresolved_provinces_stay_separate_groups(run_store, make_report):
    report = make_report(
        provincial_producers=[
            ProvincialGroup(
                province="Freestate",
                producers=[ProvincialProducer(position=1, name="A"), ProvincialProducer(position=2, name="B")],
            ),
            ProvincialGroup(province="Karoo", producers=[ProvincialProducer(position=1, name="C")]),
        ]
    )
    outcome = run_store(lambda s: save_draft(s, report)).data
    assert any("Freestate" in w for w in outcome.warnings)

    loaded = run_store(lambda s: recompose_report(s, outcome.auction_id))
    groups = [
        (g.province, g.province_id, [(p.position, p.name) for p in g.producers])
        for g in loaded.provincial_producers
    ]
    assert groups == [
        ("Freestate", None, [(1, "A"), (2, "B")]),
        ("Karoo", None, [(1, "C")]),
    ]


def test_provincial_group_order_survives_round_trip(run_store, make_report):
    eastern = make_report().provincial_producers[0]
    western = ProvincialGroup(
        province="Western Cape",
        producers=[ProvincialProducer(position=1, name="Van Wyk"), ProvincialProducer(position=2, name="Le Roux")],
    )
    outcome = run_store(lambda s: save_draft(s, make_report(provincial_producers=[western, eastern]))).data

    loaded = run_store(lambda s: recompose_report(s, outcome.auction_id))
    assert [g.province for g in loaded.provincial_producers] == ["Western Cape", "Eastern Cape"]
    assert [p.name for p in loaded.provincial_producers[0].producers] == ["Van Wyk", "Le Roux"]
    assert [p.name for p in loaded.provincial_producers[1].producers] == ["Smith Farming", "Botha Trust"]


def test_sold_override_and_ytd_carry_across_weeks(run_store, make_report):
    week1 = run_store(lambda s: save_draft(s, make_report())).data

    report = make_report()
    report.auction.auction_date = date(2025, 9, 10)
    report.auction.catalogue_name = "CG02"
    report.brokers[0].sold = 900
    report.brokers[0].sold_overridden = True
    week2 = run_store(lambda s: save_draft(s, report)).data
    assert week2.auction_id != week1.auction_id

    row = run_store(
        lambda s: s.select_one("broker_performance", filters={"auction_id": week2.auction_id})
    ).data
    assert row["sold"] == 900
    assert row["sold_overridden"] is True
    assert row["sold_ytd"] == 1750

    loaded = run_store(lambda s: recompose_report(s, week2.auction_id))
    broker = loaded.brokers[0]
    assert broker.sold == 900
    assert broker.sold_overridden is True
    assert broker.sold_pct == 94.74
    assert broker.sold_ytd == 1750
    assert broker.previous_week.sold == 850
    assert broker.previous_week.sold_ytd == 850
