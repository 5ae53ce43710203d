from __future__ import annotations

from staking_airdrop.fixed_point import RAY
from staking_airdrop.models import StakerRecord
from staking_airdrop.seigniorage import compute_seigniorage, resolve_seigniorage


def test_compute_seigniorage_is_floored_at_zero():
    assert compute_seigniorage(1100 * RAY, 1000 * RAY, 0) == 100 * RAY
    assert compute_seigniorage(600 * RAY, 1000 * RAY, 450 * RAY) == 50 * RAY
    assert compute_seigniorage(900 * RAY, 1000 * RAY, 0) == 0
    assert compute_seigniorage(0, 0, 0) == 0


def test_compute_seigniorage_is_exact_on_huge_balances():
    deposited = 10**12 * RAY + 1
    assert compute_seigniorage(deposited + 7, deposited, 0) == 7


def test_resolve_defaults_missing_balances_to_zero():
    records = [
        StakerRecord(address="0xaaa", lifetime_deposited=1000 * RAY),
        StakerRecord(
            address="0xBBB", lifetime_deposited=500 * RAY, lifetime_withdrawn=600 * RAY
        ),
        StakerRecord(address="0xccc", lifetime_deposited=10 * RAY),
    ]
    balances = {"0xaaa": 1250 * RAY, "0xbbb": 0}

    resolved = resolve_seigniorage(records, balances)

    aaa, bbb, ccc = resolved
    assert aaa.current_stake == 1250 * RAY
    assert aaa.seigniorage == 250 * RAY
    # Withdrew more than deposited: yield was taken out, stake now zero.
    assert bbb.current_stake == 0
    assert bbb.seigniorage == 100 * RAY
    assert ccc.current_stake == 0
    assert ccc.seigniorage == 0
    assert all(isinstance(r.seigniorage, int) for r in resolved)
