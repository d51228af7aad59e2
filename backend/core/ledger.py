"""
Transaction ledger helpers.

The ledger is an append-only, newest-first tuple of immutable ``LogEntry``
values. Item and partner names are copied into each entry when it is written,
so renaming or deleting them later never changes history.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from schemas.inventory import DailyReport, DaySummary, Item, ItemFlow, LogEntry, TransactionType
from schemas.partners import Partner


BASELINE_REGISTRATION_NOTE = "Baseline stock registration"
INBOUND_REGISTRATION_NOTE = "Inbound with signal number registration"
DATA_CORRECTION_PREFIX = "Data correction: "
UNKNOWN_ITEM_NAME = "Unknown item"

# Notes written by the first (Korean) release still show up in restored backups
_LEGACY_BASELINE_NOTES = {"기초 재고 등록"}
_LEGACY_CORRECTION_PREFIXES = ("데이터 삭제:",)


def data_correction_note(signal_number: str) -> str:
    return f"{DATA_CORRECTION_PREFIX}{signal_number}"


def new_entry(
    *,
    entry_id: str,
    item_id: str,
    item: Optional[Item],
    type: TransactionType,
    quantity: int,
    timestamp: datetime,
    partner: Optional[Partner] = None,
    asset_id: Optional[str] = None,
    signal_number: Optional[str] = None,
    note: Optional[str] = None,
) -> LogEntry:
    return LogEntry(
        id=entry_id,
        item_id=item_id,
        item_name=item.name if item else UNKNOWN_ITEM_NAME,
        asset_id=asset_id,
        signal_number=signal_number,
        partner_id=partner.id if partner else None,
        partner_name=partner.name if partner else None,
        type=type,
        quantity=quantity,
        timestamp=timestamp,
        note=note,
    )


def append(logs: Tuple[LogEntry, ...], entry: LogEntry) -> Tuple[LogEntry, ...]:
    return (entry,) + tuple(logs)


def is_baseline_registration(entry: LogEntry) -> bool:
    return entry.note == BASELINE_REGISTRATION_NOTE or entry.note in _LEGACY_BASELINE_NOTES


def is_data_correction(entry: LogEntry) -> bool:
    note = entry.note or ""
    return note.startswith(DATA_CORRECTION_PREFIX) or note.startswith(_LEGACY_CORRECTION_PREFIXES)


def entry_day(entry: LogEntry) -> str:
    return entry.timestamp.date().isoformat()


def search_logs(logs: Iterable[LogEntry], term: Optional[str]) -> List[LogEntry]:
    needle = (term or "").strip().lower()
    if not needle:
        return list(logs)
    out = []
    for log in logs:
        haystacks = [log.item_name, log.partner_name or "", log.note or ""]
        if any(needle in h.lower() for h in haystacks):
            out.append(log)
    return out


def group_by_date(logs: Iterable[LogEntry]) -> List[DaySummary]:
    groups: Dict[str, DaySummary] = {}
    for log in logs:
        day = entry_day(log)
        g = groups.get(day)
        if g is None:
            g = groups[day] = DaySummary(day=day, in_count=0, out_count=0, entries=0)
        g.entries += 1
        if log.type == "IN":
            g.in_count += log.quantity
        else:
            g.out_count += log.quantity
    return sorted(groups.values(), key=lambda g: g.day, reverse=True)


def daily_report(logs: Iterable[LogEntry], day: str) -> DailyReport:
    """Operational movements of one day, oldest first; baseline registrations are not movements."""
    day_logs = [
        log for log in logs
        if entry_day(log) == day and not is_baseline_registration(log)
    ]
    day_logs.sort(key=lambda log: log.timestamp)

    flows: Dict[str, ItemFlow] = {}
    for log in day_logs:
        flow = flows.setdefault(log.item_name, ItemFlow(item_name=log.item_name))
        if log.type == "IN":
            flow.in_quantity += log.quantity
        else:
            flow.out_quantity += log.quantity
    return DailyReport(day=day, logs=day_logs, totals=list(flows.values()))
