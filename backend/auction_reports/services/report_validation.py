from __future__ import annotations

from auction_reports.schemas.reports import LEGACY_ADD_NEW_SENTINEL, AuctionReport

TABS = ("auction-details", "market-stats", "buyers-brokers", "provincial-data")


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def _row_name_error(label: str, i: int, name, selection) -> str | None:
    if name == LEGACY_ADD_NEW_SENTINEL or (
        selection is not None and getattr(selection, "name", None) == LEGACY_ADD_NEW_SENTINEL
    ):
        return f"{label} {i + 1}: '{LEGACY_ADD_NEW_SENTINEL}' is not a name; pick or create one"
    if _blank(name) and selection is None:
        return f"{label} {i + 1}: name is required"
    return None


def validate_tab(report: AuctionReport, tab: str) -> list[str]:
    errors: list[str] = []
    a = report.auction

    if tab == "auction-details":
        if a.auction_date is None:
            errors.append("Auction date is required")
        if _blank(a.catalogue_name) and (_blank(a.catalogue_prefix) or _blank(a.catalogue_number)):
            errors.append("Catalogue name is required")
        if _blank(a.commodity_type_id):
            errors.append("Commodity type is required")
        if _blank(a.season_id):
            errors.append("Season is required")

    elif tab == "market-stats":
        if (report.supply_stats.offered_bales or 0) <= 0:
            errors.append("Offered bales must be greater than 0")
        if (report.greasy_stats.mass_kg or 0) <= 0:
            errors.append("Greasy mass must be greater than 0")
        if (report.supply_stats.sold_bales or 0) > (report.supply_stats.offered_bales or 0):
            errors.append("Sold bales cannot exceed offered bales")

    elif tab == "buyers-brokers":
        if not report.buyers:
            errors.append("At least one buyer is required")
        if not report.brokers:
            errors.append("At least one broker is required")
        for i, b in enumerate(report.buyers):
            msg = _row_name_error("Buyer", i, b.buyer, b.selection)
            if msg:
                errors.append(msg)
        for i, br in enumerate(report.brokers):
            msg = _row_name_error("Broker", i, br.name, br.selection)
            if msg:
                errors.append(msg)

    elif tab == "provincial-data":
        for gi, group in enumerate(report.provincial_producers):
            if _blank(group.province) and _blank(group.province_id):
                errors.append(f"Province group {gi + 1}: province is required")
            for p in group.producers:
                if _blank(p.name):
                    errors.append(f"Province group {gi + 1}, position {p.position}: producer name is required")

    else:
        raise ValueError(f"Unknown tab: {tab}")

    return errors


def validate_report(report: AuctionReport) -> dict[str, list[str]]:
    """Per-tab error lists; empty dict when the report may be published."""

    out: dict[str, list[str]] = {}
    for tab in TABS:
        errs = validate_tab(report, tab)
        if errs:
            out[tab] = errs
    return out
