from datetime import date

from auction_reports.schemas.reports import (
    AuctionHeader,
    AuctionReport,
    BuyerRow,
    ExistingSelection,
    MicronPriceRow,
    ProvincialGroup,
    ProvincialProducer,
)
from auction_reports.services.name_resolver import ReferenceSnapshot, ReferenceSnapshots
from auction_reports.services.report_decomposer import (
    compose_catalogue_name,
    decompose_report,
    parse_catalogue_name,
)


def _snapshots() -> ReferenceSnapshots:
    buyers = ReferenceSnapshot(kind="buyer")
    buyers.add("b-1", "Standard Wool")
    brokers = ReferenceSnapshot(kind="broker")
    brokers.add("k-1", "OVK")
    provinces = ReferenceSnapshot(kind="province")
    provinces.add("p-1", "Eastern Cape")
    certifications = ReferenceSnapshot(kind="certification")
    certifications.add("c-1", "RWS")
    return ReferenceSnapshots(buyers=buyers, brokers=brokers, provinces=provinces, certifications=certifications)


def test_parse_catalogue_name():
    assert parse_catalogue_name("CG01") == ("CG", "01")
    assert parse_catalogue_name(" CW 12 ") == ("CW", "12")
    assert parse_catalogue_name("") == ("CW", "001")
    assert parse_catalogue_name(None) == ("CW", "001")
    assert parse_catalogue_name("01CG") == ("CW", "001")
    assert parse_catalogue_name("CG01A") == ("CG", "01A")
    assert parse_catalogue_name("CG-01") == ("CG", "-01")
    assert parse_catalogue_name("MOHAIR") == ("MOHAIR", "001")
    assert compose_catalogue_name("CG", "01") == "CG01"


def test_decompose_flattens_header_and_statistics():
    report = AuctionReport(auction=AuctionHeader(auction_date=date(2025, 9, 3), catalogue_name="CG01"))
    report.supply_stats.offered_bales = 6507

    dec = decompose_report(report, _snapshots(), auction_id="a-1")

    assert dec.auction["catalogue_prefix"] == "CG"
    assert dec.auction["catalogue_number"] == "01"
    assert dec.auction["auction_date"] == date(2025, 9, 3)
    assert dec.auction["supply_statistics_bales_offered"] == 6507
    assert dec.auction["has_buyer_data"] is False
    assert dec.market_insight is None


def test_unresolved_buyer_keeps_row_with_null_reference():
    report = AuctionReport(
        buyers=[
            BuyerRow(buyer="standard  wool", cat=10),
            BuyerRow(buyer="Nobody Trading", cat=5),
            BuyerRow(buyer="ignored name", selection=ExistingSelection(id="b-1"), cat=1),
        ]
    )

    dec = decompose_report(report, _snapshots(), auction_id="a-1", user_id="u-1")

    assert [r["buyer_id"] for r in dec.buyer_performance] == ["b-1", None, "b-1"]
    assert [r["sort_order"] for r in dec.buyer_performance] == [0, 1, 2]
    assert dec.buyer_performance[0]["created_by"] == "u-1"
    assert any("Nobody Trading" in w for w in dec.warnings)


def test_micron_rows_without_prices_are_dropped():
    report = AuctionReport(
        micron_prices=[
            MicronPriceRow(micron=18.0, non_cert_clean_zar_per_kg=150),
            MicronPriceRow(micron=19.0),
        ]
    )
    dec = decompose_report(report, _snapshots(), auction_id="a-1")
    assert [r["micron"] for r in dec.micron_prices] == [18.0]
    assert dec.auction["has_micron_prices"] is True


def test_top_performers_resolve_province_and_certification():
    report = AuctionReport(
        provincial_producers=[
            ProvincialGroup(
                province="Eastern Cape",
                producers=[
                    ProvincialProducer(position=1, name="A", certified="RWS"),
                    ProvincialProducer(position=2, name="B"),
                ],
            ),
            ProvincialGroup(province="Atlantis", producers=[ProvincialProducer(position=1, name="C")]),
        ],
        insights="  Some text  ",
    )

    dec = decompose_report(report, _snapshots(), auction_id="a-1")

    rows = {r["name"]: r for r in dec.top_performers}
    assert rows["A"]["province_id"] == "p-1"
    assert rows["A"]["certification_id"] == "c-1"
    assert rows["B"]["certification_id"] is None
    assert rows["C"]["province_id"] is None
    assert dec.market_insight["market_insights_text"] == "  Some text  "


def test_unrecognized_catalogue_name_falls_back_with_warning():
    report = AuctionReport(auction=AuctionHeader(catalogue_name="01CG"))
    dec = decompose_report(report, _snapshots(), auction_id="a-1")
    assert (dec.auction["catalogue_prefix"], dec.auction["catalogue_number"]) == ("CW", "001")
    assert any("01CG" in w and "CW001" in w for w in dec.warnings)


def test_suffixed_catalogue_name_is_kept_without_warning():
    report = AuctionReport(auction=AuctionHeader(catalogue_name="CG01A"))
    dec = decompose_report(report, _snapshots(), auction_id="a-1")
    assert (dec.auction["catalogue_prefix"], dec.auction["catalogue_number"]) == ("CG", "01A")
    assert dec.warnings == ()
