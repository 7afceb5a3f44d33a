"""Display name -> reference id lookups for buyers, brokers, provinces and certifications.

Snapshots are loaded once per save. A miss is not an error: the caller stores a
null foreign key and the miss is logged as `name_unresolved`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Literal, Optional

from auction_reports.config import settings
from auction_reports.schemas.reports import (
    LEGACY_ADD_NEW_SENTINEL,
    AuctionReport,
    CreateNewSelection,
    ExistingSelection,
)
from auction_reports.services.errors import StoreOperationError
from auction_reports.services.table_store import TableStore

logger = logging.getLogger("auction_reports.name_resolver")

ReferenceKind = Literal["buyer", "broker", "province", "certification"]
MatchMode = Literal["normalized", "exact"]

# kind -> (table, name column)
REFERENCE_TABLES: dict[str, tuple[str, str]] = {
    "buyer": ("buyers", "buyer_name"),
    "broker": ("brokers", "name"),
    "province": ("provinces", "name"),
    "certification": ("certifications", "code"),
}

RECOGNIZED_CERTIFICATION = "RWS"

_WS = re.compile(r"\s+")


def normalize_name(name: Optional[str], mode: MatchMode = "normalized") -> str:
    if name is None:
        return ""
    if mode == "exact":
        return name
    return _WS.sub(" ", name).strip().casefold()


@dataclass
class ReferenceSnapshot:
    kind: str
    mode: MatchMode = "normalized"
    by_key: dict[str, str] = field(default_factory=dict)
    names: dict[str, str] = field(default_factory=dict)

    def add(self, ref_id: str, name: str) -> None:
        self.names[ref_id] = name
        # First row wins when two reference rows normalize to the same key.
        self.by_key.setdefault(normalize_name(name, self.mode), ref_id)

    def resolve(self, name: Optional[str]) -> Optional[str]:
        if not name or name == LEGACY_ADD_NEW_SENTINEL:
            return None
        key = normalize_name(name, self.mode)
        if not key:
            return None
        return self.by_key.get(key)

    def name_for(self, ref_id: Optional[str]) -> Optional[str]:
        if not ref_id:
            return None
        return self.names.get(ref_id)


@dataclass
class ReferenceSnapshots:
    buyers: ReferenceSnapshot
    brokers: ReferenceSnapshot
    provinces: ReferenceSnapshot
    certifications: ReferenceSnapshot


async def load_snapshot(store: TableStore, kind: ReferenceKind, *, mode: Optional[MatchMode] = None) -> ReferenceSnapshot:
    table, column = REFERENCE_TABLES[kind]
    res = await store.select(table, columns=["id", column], order_by=column)
    if not res.success:
        raise StoreOperationError(table, res.error or "select failed")
    snap = ReferenceSnapshot(kind=kind, mode=mode or settings.name_match_mode)
    for row in res.data:
        snap.add(str(row["id"]), str(row[column]))
    return snap


async def load_snapshots(store: TableStore, *, mode: Optional[MatchMode] = None) -> ReferenceSnapshots:
    return ReferenceSnapshots(
        buyers=await load_snapshot(store, "buyer", mode=mode),
        brokers=await load_snapshot(store, "broker", mode=mode),
        provinces=await load_snapshot(store, "province", mode=mode),
        certifications=await load_snapshot(store, "certification", mode=mode),
    )


async def ensure_reference(
    store: TableStore,
    snapshot: ReferenceSnapshot,
    name: str,
    *,
    created_by: Optional[str] = None,
) -> tuple[str, bool]:
    """Return the id for `name`, inserting a reference row when none matches.

    Returns `(id, created)`. Only buyers and brokers can be created this way.
    """

    clean = _WS.sub(" ", name or "").strip()
    if not clean or clean == LEGACY_ADD_NEW_SENTINEL:
        raise ValueError(f"Invalid {snapshot.kind} name: {name!r}")
    if snapshot.kind not in {"buyer", "broker"}:
        raise ValueError(f"Cannot create {snapshot.kind} references on demand")

    existing = snapshot.resolve(clean)
    if existing:
        return existing, False

    table, column = REFERENCE_TABLES[snapshot.kind]
    res = await store.insert(table, {column: clean, "created_by": created_by})
    if not res.success:
        raise StoreOperationError(table, res.error or "insert failed")
    ref_id = str(res.data[0]["id"])
    snapshot.add(ref_id, clean)
    logger.info("reference_created", extra={"kind": snapshot.kind, "reference_id": ref_id})
    return ref_id, True


async def apply_selections(
    store: TableStore,
    report: AuctionReport,
    snapshots: ReferenceSnapshots,
    *,
    created_by: Optional[str] = None,
) -> None:
    """Turn create-new selections into real rows and sync row names with chosen ids."""

    pairs = [(row, "buyer", snapshots.buyers) for row in report.buyers]
    pairs += [(row, "broker", snapshots.brokers) for row in report.brokers]
    for row, kind, snap in pairs:
        name_attr = "buyer" if kind == "buyer" else "name"
        sel = row.selection
        if isinstance(sel, CreateNewSelection):
            ref_id, _ = await ensure_reference(store, snap, sel.name, created_by=created_by)
            row.selection = ExistingSelection(id=ref_id)
            setattr(row, name_attr, snap.name_for(ref_id))
        elif isinstance(sel, ExistingSelection):
            known = snap.name_for(sel.id)
            if known is not None:
                setattr(row, name_attr, known)


def resolve_row_reference(
    snapshot: ReferenceSnapshot,
    name: Optional[str],
    selection=None,
    *,
    warnings: Optional[list[str]] = None,
) -> Optional[str]:
    """Id for a buyer/broker row: an explicit existing selection wins over the name."""

    if isinstance(selection, ExistingSelection) and snapshot.name_for(selection.id) is not None:
        return selection.id
    ref_id = snapshot.resolve(name)
    if ref_id is None:
        _warn_unresolved(snapshot.kind, name, warnings)
    return ref_id


def resolve_province(
    snapshot: ReferenceSnapshot,
    name: Optional[str],
    province_id: Optional[str] = None,
    *,
    warnings: Optional[list[str]] = None,
) -> Optional[str]:
    if province_id and snapshot.name_for(province_id) is not None:
        return province_id
    ref_id = snapshot.resolve(name)
    if ref_id is None:
        _warn_unresolved("province", name, warnings)
    return ref_id


def resolve_certification(snapshot: ReferenceSnapshot, code: Optional[str]) -> Optional[str]:
    if (code or "").strip().upper() != RECOGNIZED_CERTIFICATION:
        return None
    return snapshot.resolve(RECOGNIZED_CERTIFICATION)


def _warn_unresolved(kind: str, name: Optional[str], warnings: Optional[list[str]]) -> None:
    logger.warning("name_unresolved", extra={"kind": kind, "ref_name": name})
    if warnings is not None:
        warnings.append(f"{kind} not found: {name!r}")
