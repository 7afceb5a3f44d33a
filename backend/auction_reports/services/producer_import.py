"""CSV import of top-performing producers into province groups."""

from __future__ import annotations

import csv
import io
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from pydantic import ValidationError

from auction_reports.schemas.reports import ProvincialGroup, ProvincialProducer

logger = logging.getLogger("auction_reports.producer_import")

CSV_COLUMNS = (
    "province",
    "name",
    "district",
    "producer_number",
    "no_bales",
    "description",
    "micron",
    "price",
    "certified",
    "buyer_name",
)

PROVINCES = (
    "Eastern Cape",
    "Free State",
    "Western Cape",
    "Northern Cape",
    "KwaZulu-Natal",
    "Mpumalanga",
    "Gauteng",
    "Limpopo",
    "North West",
)

# Keys are lower-cased with spaces, hyphens and underscores removed.
PROVINCE_ALIASES = {
    "easterncape": "Eastern Cape",
    "ec": "Eastern Cape",
    "ooskaap": "Eastern Cape",
    "freestate": "Free State",
    "fs": "Free State",
    "vrystaat": "Free State",
    "westerncape": "Western Cape",
    "wc": "Western Cape",
    "northerncape": "Northern Cape",
    "nc": "Northern Cape",
    "kwazulunatal": "KwaZulu-Natal",
    "kzn": "KwaZulu-Natal",
    "natal": "KwaZulu-Natal",
    "mpumalanga": "Mpumalanga",
    "mp": "Mpumalanga",
    "gauteng": "Gauteng",
    "gp": "Gauteng",
    "limpopo": "Limpopo",
    "lp": "Limpopo",
    "northwest": "North West",
    "nw": "North West",
}


def _alias_key(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch not in " -_")


def normalize_province(value: Optional[str]) -> Optional[str]:
    """Canonical province name for `value`, or None when it is not recognized."""

    if value is None or not value.strip():
        return None
    return PROVINCE_ALIASES.get(_alias_key(value.strip()))


@dataclass
class ProducerImportResult:
    groups: list[ProvincialGroup] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    imported: int = 0

    @property
    def skipped(self) -> int:
        return len(self.errors)


def _cell(row: dict, key: str) -> Optional[str]:
    v = row.get(key)
    if v is None:
        return None
    v = v.strip()
    return v or None


def _number(row: dict, key: str, cast, line: int, errors: list[str]):
    raw = _cell(row, key)
    if raw is None:
        return None
    try:
        return cast(raw.replace(",", "").replace(" ", ""))
    except ValueError:
        errors.append(f"Line {line}: {key} '{raw}' is not a number")
        return None


def import_producer_rows(rows: Iterable[dict]) -> ProducerImportResult:
    result = ProducerImportResult()
    groups: "OrderedDict[str, ProvincialGroup]" = OrderedDict()

    # Line 1 is the header.
    for line, row in enumerate(rows, start=2):
        province = normalize_province(_cell(row, "province"))
        if province is None:
            result.errors.append(f"Line {line}: unknown province '{_cell(row, 'province') or ''}'")
            continue
        name = _cell(row, "name")
        if not name:
            result.errors.append(f"Line {line}: producer name is required")
            continue

        row_errors: list[str] = []
        no_bales = _number(row, "no_bales", int, line, row_errors)
        micron = _number(row, "micron", float, line, row_errors)
        price = _number(row, "price", float, line, row_errors)
        if row_errors:
            result.errors.extend(row_errors)
            continue

        group = groups.setdefault(province, ProvincialGroup(province=province))
        try:
            producer = ProvincialProducer(
                position=len(group.producers) + 1,
                name=name,
                district=_cell(row, "district"),
                producer_number=_cell(row, "producer_number"),
                no_bales=no_bales,
                description=_cell(row, "description"),
                micron=micron,
                price=price,
                certified="RWS" if (_cell(row, "certified") or "").upper() == "RWS" else "",
                buyer_name=_cell(row, "buyer_name"),
            )
        except ValidationError as e:
            result.errors.append(f"Line {line}: {e.errors()[0]['msg']}")
            continue
        group.producers.append(producer)
        result.imported += 1

    result.groups = list(groups.values())
    logger.info(
        "producers_imported",
        extra={"imported": result.imported, "skipped": result.skipped, "provinces": len(result.groups)},
    )
    return result


def import_producers_csv(content: str | bytes) -> ProducerImportResult:
    """Parse CSV text with a header row naming `CSV_COLUMNS` (extra columns are ignored)."""

    if isinstance(content, bytes):
        content = content.decode("utf-8-sig")
    reader = csv.DictReader(io.StringIO(content))
    if reader.fieldnames is None:
        return ProducerImportResult(errors=["CSV file is empty"])

    reader.fieldnames = [f.strip().lower() for f in reader.fieldnames]
    missing = [c for c in ("province", "name") if c not in reader.fieldnames]
    if missing:
        return ProducerImportResult(errors=[f"Missing required columns: {', '.join(missing)}"])
    return import_producer_rows(reader)
