import pytest

from auction_reports.schemas.reports import (
    AuctionReport,
    BrokerRow,
    BuyerRow,
    CurrencyFx,
    FieldEdit,
    MarketIndices,
    ProvincialGroup,
    ProvincialProducer,
)
from auction_reports.services.derived_fields import (
    add_producer,
    apply_buyer_shares,
    apply_edit,
    autofill_currency,
    clearance_rate,
    derive_broker_row,
    micron_pct_difference,
    remove_producer,
)


def test_clearance_rate_rounds_to_two_decimals():
    # 6084 / 6507 = 93.4992...
    assert clearance_rate(6507, 6084) == 93.5
    assert clearance_rate(0, 10) == 0
    assert clearance_rate(1000, 1000) == 100.0


def test_micron_pct_difference_requires_both_positive_prices():
    assert micron_pct_difference(150, 165) == 10.0
    assert micron_pct_difference(None, 165) is None
    assert micron_pct_difference(150, None) is None
    assert micron_pct_difference(0, 165) is None


def test_buyer_shares_follow_cat():
    buyers = apply_buyer_shares([BuyerRow(buyer="A", cat=3000), BuyerRow(buyer="B", cat=1000)])
    assert [b.share_pct for b in buyers] == [75.0, 25.0]

    empty = apply_buyer_shares([BuyerRow(buyer="A", cat=0)])
    assert empty[0].share_pct == 0


def test_broker_chain_is_derived():
    row = derive_broker_row(BrokerRow(name="OVK", catalogue_offering=1000, withdrawn_before_sale=50, not_sold=100))
    assert row.wool_offered == 950
    assert row.sold == 850
    assert row.sold_pct == 89.47
    assert row.sold_ytd == 850
    assert row.sold_overridden is False


def test_broker_sold_override_survives_until_an_input_changes():
    report = AuctionReport(
        brokers=[BrokerRow(name="OVK", catalogue_offering=1000, withdrawn_before_sale=50, not_sold=100)]
    )

    edited = apply_edit(report, FieldEdit(section="brokers", index=0, field="sold", value=900))
    row = edited.brokers[0]
    assert row.sold_overridden is True
    assert row.sold == 900
    assert row.sold_pct == 94.74

    # Editing a field outside the chain keeps the override.
    edited = apply_edit(edited, FieldEdit(section="brokers", index=0, field="passed", value=5))
    assert edited.brokers[0].sold == 900

    # Editing a chain input re-derives sold.
    edited = apply_edit(edited, FieldEdit(section="brokers", index=0, field="not_sold", value=120))
    row = edited.brokers[0]
    assert row.sold_overridden is False
    assert row.sold == 830


def test_apply_edit_does_not_mutate_the_input():
    report = AuctionReport(buyers=[BuyerRow(buyer="A", cat=10)])
    apply_edit(report, FieldEdit(section="buyers", index=0, field="cat", value=20))
    assert report.buyers[0].cat == 10


def test_apply_edit_recomputes_clearance():
    report = AuctionReport()
    report = apply_edit(report, FieldEdit(section="supply_stats", field="offered_bales", value=6507))
    report = apply_edit(report, FieldEdit(section="supply_stats", field="sold_bales", value=6084))
    assert report.supply_stats.clearance_rate_pct == 93.5


def test_apply_edit_rejects_unknown_fields_and_rows():
    report = AuctionReport(buyers=[BuyerRow(buyer="A", cat=10)])
    with pytest.raises(ValueError):
        apply_edit(report, FieldEdit(section="buyers", index=0, field="nope", value=1))
    with pytest.raises(ValueError):
        apply_edit(report, FieldEdit(section="buyers", index=3, field="cat", value=1))


def test_currency_autofill_happens_once():
    report = AuctionReport(
        market_indices=MarketIndices(merino_indicator_sa_cents_clean=18500, certified_indicator_sa_cents_clean=19000),
    )
    report = apply_edit(report, FieldEdit(section="currency_fx", field="zar_usd", value=18.5))
    # EUR rate still missing: nothing filled yet.
    assert report.market_indices.currency_autofilled is False

    report = apply_edit(report, FieldEdit(section="currency_fx", field="zar_eur", value=20))
    mi = report.market_indices
    assert mi.currency_autofilled is True
    assert mi.merino_indicator_us_cents_clean == 1000.0
    assert mi.merino_indicator_euro_cents_clean == 925.0
    assert mi.certified_indicator_euro_cents_clean == 950.0

    report = apply_edit(report, FieldEdit(section="market_indices", field="merino_indicator_us_cents_clean", value=990))
    report = apply_edit(report, FieldEdit(section="currency_fx", field="zar_usd", value=17.0))
    assert report.market_indices.merino_indicator_us_cents_clean == 990


def test_autofill_requires_rates():
    report = AuctionReport(
        market_indices=MarketIndices(merino_indicator_sa_cents_clean=18500),
        currency_fx=CurrencyFx(zar_usd=0, zar_eur=20),
    )
    assert autofill_currency(report) is False
    assert report.market_indices.merino_indicator_us_cents_clean == 0


def _producers(n):
    return [ProvincialProducer(position=i + 1, name=f"P{i + 1}") for i in range(n)]


def test_remove_producer_resequences_positions():
    report = AuctionReport(provincial_producers=[ProvincialGroup(province="Free State", producers=_producers(3))])
    out = remove_producer(report, 0, 0)
    assert [(p.name, p.position) for p in out.provincial_producers[0].producers] == [("P2", 1), ("P3", 2)]
    assert len(report.provincial_producers[0].producers) == 3


def test_add_producer_appends_at_next_position():
    report = AuctionReport(provincial_producers=[ProvincialGroup(province="Free State", producers=_producers(2))])
    out = add_producer(report, 0, ProvincialProducer(name="New", position=99))
    assert out.provincial_producers[0].producers[-1].position == 3

    with pytest.raises(ValueError):
        add_producer(report, 5, ProvincialProducer(name="New"))
