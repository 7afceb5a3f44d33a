"""Derived statistics computed identically on save, on load and while editing.

Everything here is pure: functions take report models and return new values
or mutate the copy they were handed; nothing touches the database.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from auction_reports.schemas.reports import (
    AuctionReport,
    BrokerRow,
    BuyerRow,
    FieldEdit,
    MicronPriceRow,
    ProvincialGroup,
    ProvincialProducer,
)

# Editing one of these re-derives `sold` and clears a manual override.
SOLD_INPUT_FIELDS = frozenset({"catalogue_offering", "withdrawn_before_sale", "not_sold"})


def clearance_rate(offered_bales: float, sold_bales: float) -> float:
    if not offered_bales or offered_bales <= 0:
        return 0
    return round(sold_bales / offered_bales * 100, 2)


def micron_pct_difference(non_cert: Optional[float], cert: Optional[float]) -> Optional[float]:
    if non_cert is None or cert is None:
        return None
    if non_cert <= 0 or cert <= 0:
        return None
    return round((cert - non_cert) / non_cert * 100, 2)


def convert_sa_cents(sa_cents: float, zar_rate: float) -> float:
    """SA cents-clean to a foreign-currency cents-clean figure (ZAR per unit rate)."""

    if not zar_rate or zar_rate <= 0:
        return 0
    return round(sa_cents / zar_rate, 2)


def apply_buyer_shares(buyers: list[BuyerRow]) -> list[BuyerRow]:
    total = sum(b.cat or 0 for b in buyers)
    for b in buyers:
        b.share_pct = (b.cat or 0) / total * 100 if total > 0 else 0
    return buyers


def derive_broker_row(row: BrokerRow, *, edited_field: Optional[str] = None) -> BrokerRow:
    if edited_field == "sold":
        row.sold_overridden = True
    elif edited_field in SOLD_INPUT_FIELDS:
        row.sold_overridden = False

    row.wool_offered = row.catalogue_offering - row.withdrawn_before_sale
    if not row.sold_overridden:
        row.sold = row.wool_offered - row.not_sold
    row.sold_pct = round(row.sold / row.wool_offered * 100, 2) if row.wool_offered > 0 else 0
    row.sold_ytd = row.sold + row.previous_week.sold_ytd if row.previous_week else row.sold
    return row


def apply_micron_row(row: MicronPriceRow) -> MicronPriceRow:
    row.pct_difference = micron_pct_difference(row.non_cert_clean_zar_per_kg, row.cert_clean_zar_per_kg)
    return row


def resequence_positions(producers: Iterable[ProvincialProducer]) -> list[ProvincialProducer]:
    out = list(producers)
    for i, p in enumerate(out, start=1):
        p.position = i
    return out


def autofill_currency(report: AuctionReport) -> bool:
    """Fill US/Euro indicator fields from the SA figures, once per report.

    Returns True when the fill happened. After that the fields are left to
    manual entry and never overwritten.
    """

    mi = report.market_indices
    fx = report.currency_fx
    if mi.currency_autofilled:
        return False
    if (fx.zar_usd or 0) <= 0 or (fx.zar_eur or 0) <= 0:
        return False
    if (mi.merino_indicator_sa_cents_clean or 0) <= 0 and (mi.certified_indicator_sa_cents_clean or 0) <= 0:
        return False

    mi.merino_indicator_us_cents_clean = convert_sa_cents(mi.merino_indicator_sa_cents_clean, fx.zar_usd)
    mi.merino_indicator_euro_cents_clean = convert_sa_cents(mi.merino_indicator_sa_cents_clean, fx.zar_eur)
    mi.certified_indicator_us_cents_clean = convert_sa_cents(mi.certified_indicator_sa_cents_clean, fx.zar_usd)
    mi.certified_indicator_euro_cents_clean = convert_sa_cents(
        mi.certified_indicator_sa_cents_clean, fx.zar_eur
    )
    mi.currency_autofilled = True
    return True


def apply_derived_fields(report: AuctionReport) -> AuctionReport:
    """Recompute every derived field in place (used on save and on load)."""

    report.supply_stats.clearance_rate_pct = clearance_rate(
        report.supply_stats.offered_bales, report.supply_stats.sold_bales
    )
    apply_buyer_shares(report.buyers)
    for broker in report.brokers:
        derive_broker_row(broker)
    for row in report.micron_prices:
        apply_micron_row(row)
    for group in report.provincial_producers:
        group.producers = resequence_positions(sorted(group.producers, key=lambda p: p.position))
    return report


def _set_field(model: Any, field: str, value: Any) -> Any:
    cls = type(model)
    if field not in cls.model_fields:
        raise ValueError(f"Unknown field '{field}' for {cls.__name__}")
    return cls.model_validate({**model.model_dump(), field: value})


def _row_at(rows: list, index: Optional[int], section: str):
    if index is None or index >= len(rows):
        raise ValueError(f"Row index {index} out of range for {section}")
    return rows[index]


def apply_edit(report: AuctionReport, edit: FieldEdit) -> AuctionReport:
    """Apply one field edit to a copy of `report` and recompute what depends on it."""

    out = report.model_copy(deep=True)
    section = edit.section

    if section in {"supply_stats", "market_indices", "currency_fx"}:
        setattr(out, section, _set_field(getattr(out, section), edit.field, edit.value))
        if section == "supply_stats":
            out.supply_stats.clearance_rate_pct = clearance_rate(
                out.supply_stats.offered_bales, out.supply_stats.sold_bales
            )
        else:
            autofill_currency(out)
        return out

    if section == "provincial_producers":
        group: ProvincialGroup = _row_at(out.provincial_producers, edit.index, section)
        if edit.row is None:
            out.provincial_producers[edit.index] = _set_field(group, edit.field, edit.value)
        else:
            _row_at(group.producers, edit.row, section)
            group.producers[edit.row] = _set_field(group.producers[edit.row], edit.field, edit.value)
        return out

    rows = getattr(out, section)
    _row_at(rows, edit.index, section)
    updated = _set_field(rows[edit.index], edit.field, edit.value)
    rows[edit.index] = updated

    if section == "buyers":
        apply_buyer_shares(out.buyers)
    elif section == "brokers":
        derive_broker_row(updated, edited_field=edit.field)
    elif section == "micron_prices":
        apply_micron_row(updated)
    return out


def add_producer(report: AuctionReport, group_index: int, producer: ProvincialProducer) -> AuctionReport:
    out = report.model_copy(deep=True)
    group = _row_at(out.provincial_producers, group_index, "provincial_producers")
    added = producer.model_copy()
    added.position = len(group.producers) + 1
    group.producers.append(added)
    return out


def remove_producer(report: AuctionReport, group_index: int, row: int) -> AuctionReport:
    out = report.model_copy(deep=True)
    group = _row_at(out.provincial_producers, group_index, "provincial_producers")
    _row_at(group.producers, row, "provincial_producers")
    del group.producers[row]
    group.producers = resequence_positions(group.producers)
    return out
