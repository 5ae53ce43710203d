"""Fold raw staking activity into one record per address."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .models import DEPOSIT, WITHDRAW, StakerRecord, StakingEvent

LOGGER = logging.getLogger(__name__)


def normalize_address(address: str) -> str:
    return address.strip().lower()


class StakerAggregator:
    """Per-invocation address -> record map.

    Two input modes feed the same map:

    - event stream: ``add_event`` folds individual deposits/withdrawals,
      accumulating window totals, counts and activity bounds;
    - snapshot: ``add_snapshot`` copies totals already aggregated by an
      external ledger.

    Addresses are keyed lowercased so differently-cased sightings of one
    address always land in the same record.
    """

    def __init__(self) -> None:
        self._records: dict[str, StakerRecord] = {}
        self._ledger_supplied: set[str] = set()

    def __len__(self) -> int:
        return len(self._records)

    def add_event(
        self,
        address: str,
        event: StakingEvent,
        *,
        lifetime_deposited: int | None = None,
        lifetime_withdrawn: int | None = None,
    ) -> StakerRecord:
        if event.kind not in (DEPOSIT, WITHDRAW):
            raise ValueError(f"Unknown staking event kind: {event.kind!r}")
        key = normalize_address(address)
        record = self._records.get(key)
        if record is None:
            record = StakerRecord(
                address=key,
                first_activity_at=event.timestamp,
                last_activity_at=event.timestamp,
            )
            self._records[key] = record

        if event.kind == DEPOSIT:
            record.period_deposited += event.amount
            record.deposit_count += 1
        else:
            record.period_withdrawn += event.amount
            record.withdraw_count += 1

        record.first_activity_at = min(record.first_activity_at, event.timestamp)
        record.last_activity_at = max(record.last_activity_at, event.timestamp)
        record.events.append(event)

        if lifetime_deposited is not None or lifetime_withdrawn is not None:
            record.lifetime_deposited = lifetime_deposited or 0
            record.lifetime_withdrawn = lifetime_withdrawn or 0
            self._ledger_supplied.add(key)
        return record

    def add_snapshot(
        self,
        address: str,
        *,
        deposited: int,
        withdrawn: int,
        deposit_count: int,
        withdraw_count: int,
        first_activity_at: int,
        last_activity_at: int,
        events: Iterable[StakingEvent] = (),
    ) -> StakerRecord:
        key = normalize_address(address)
        if key in self._records:
            LOGGER.debug("Replacing duplicate snapshot row for %s", key)
        record = StakerRecord(
            address=key,
            period_deposited=deposited,
            period_withdrawn=withdrawn,
            deposit_count=deposit_count,
            withdraw_count=withdraw_count,
            first_activity_at=first_activity_at,
            last_activity_at=last_activity_at,
            events=list(events),
            lifetime_deposited=deposited,
            lifetime_withdrawn=withdrawn,
        )
        self._records[key] = record
        self._ledger_supplied.add(key)
        return record

    def records(self) -> list[StakerRecord]:
        """Finalize and return records in first-sighting order."""
        for key, record in self._records.items():
            record.events.sort(key=lambda e: e.timestamp)
            if key not in self._ledger_supplied:
                # Without an external ledger the window is all we know.
                record.lifetime_deposited = record.period_deposited
                record.lifetime_withdrawn = record.period_withdrawn
        return list(self._records.values())


def aggregate_events(
    events: Iterable[tuple[str, StakingEvent]],
    *,
    ledger: Mapping[str, tuple[int, int]] | None = None,
) -> list[StakerRecord]:
    """Aggregate ``(address, event)`` pairs.

    ``ledger`` optionally maps an address to its lifetime
    ``(deposited, withdrawn)`` totals.
    """
    ledger_by_key = {normalize_address(k): v for k, v in (ledger or {}).items()}
    aggregator = StakerAggregator()
    for address, event in events:
        lifetime = ledger_by_key.get(normalize_address(address))
        if lifetime is None:
            aggregator.add_event(address, event)
        else:
            aggregator.add_event(
                address,
                event,
                lifetime_deposited=lifetime[0],
                lifetime_withdrawn=lifetime[1],
            )
    return aggregator.records()


def aggregate_snapshots(rows: Iterable[Mapping[str, Any]]) -> list[StakerRecord]:
    """Aggregate pre-computed ledger rows (keys match ``add_snapshot``)."""
    aggregator = StakerAggregator()
    for row in rows:
        aggregator.add_snapshot(
            row["address"],
            deposited=row["deposited"],
            withdrawn=row["withdrawn"],
            deposit_count=row["deposit_count"],
            withdraw_count=row["withdraw_count"],
            first_activity_at=row["first_activity_at"],
            last_activity_at=row["last_activity_at"],
            events=row.get("events", ()),
        )
    return aggregator.records()
