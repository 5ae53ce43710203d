"""Derive accrued seigniorage from the lifetime ledger and on-chain stake."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .models import StakerRecord

LOGGER = logging.getLogger(__name__)


def compute_seigniorage(
    current_stake: int, lifetime_deposited: int, lifetime_withdrawn: int
) -> int:
    """Yield earned on top of principal, floored at zero (RAY integers)."""
    return max(0, current_stake + lifetime_withdrawn - lifetime_deposited)


def resolve_seigniorage(
    records: Iterable[StakerRecord], balances: Mapping[str, int]
) -> list[StakerRecord]:
    """Attach ``current_stake`` and ``seigniorage`` to each record.

    ``balances`` is keyed by lowercased address. Addresses without an entry
    (lookup failed or was never made) are treated as holding zero stake.
    """
    resolved: list[StakerRecord] = []
    missing = 0
    for record in records:
        balance = balances.get(record.address.lower())
        if balance is None:
            missing += 1
            balance = 0
        record.current_stake = balance
        record.seigniorage = compute_seigniorage(
            balance, record.lifetime_deposited, record.lifetime_withdrawn
        )
        resolved.append(record)
    if missing:
        LOGGER.info(
            "No on-chain stake for %s of %s addresses; defaulting to zero",
            missing,
            len(resolved),
        )
    return resolved
