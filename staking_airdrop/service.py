"""Validated entry points: staker lookup and airdrop simulation.

Both operations reject bad parameters with ``ValidationError`` before any
data is fetched. Data providers are injectable so callers (and tests) can
supply an already-resolved snapshot instead of the live subgraph and RPC.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, date, datetime, time

from . import onchain, subgraph
from .fixed_point import to_ray
from .models import (
    CriteriaWeights,
    SimulationConfig,
    SimulationResult,
    StakerLookup,
    StakerRecord,
)
from .scoring import compute_airdrop_scores
from .seigniorage import resolve_seigniorage

LOGGER = logging.getLogger(__name__)

DEFAULT_WEIGHTS = CriteriaWeights(staking_amount=33, staking_duration=33, seigniorage=34)
DEFAULT_TOKEN_SYMBOL = "TOKEN"

RecordFetcher = Callable[[int, int], Sequence[StakerRecord]]
BalanceFetcher = Callable[[Iterable[str]], dict[str, int]]

DateLike = str | int | float | date | datetime


class ValidationError(ValueError):
    """Client-facing parameter error; the computation never started."""


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def parse_timestamp(value: DateLike) -> int:
    """Unix seconds from an ISO date/datetime string, date, datetime or number."""
    if isinstance(value, bool):
        raise ValidationError("Invalid parameter values")
    if isinstance(value, datetime):
        return int(_as_utc(value).timestamp())
    if isinstance(value, date):
        return int(datetime.combine(value, time.min, tzinfo=UTC).timestamp())
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValidationError("Invalid parameter values")
        return int(value)
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError("Invalid parameter values") from exc
    return int(_as_utc(parsed).timestamp())


def _parse_number(value: object) -> float:
    if isinstance(value, bool):
        raise ValidationError("Invalid parameter values")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid parameter values") from exc
    if not math.isfinite(number):
        raise ValidationError("Invalid parameter values")
    return number


def _parse_window(from_date: DateLike, to_date: DateLike) -> tuple[int, int]:
    start = parse_timestamp(from_date)
    end = parse_timestamp(to_date)
    if start > end:
        raise ValidationError("'from' must not be later than 'to'")
    return start, end


def _parse_min_amount(min_amount: object) -> int:
    amount = _parse_number(min_amount)
    if amount < 0:
        raise ValidationError("minAmount must not be negative")
    # Whole tokens only, matching the subgraph filter granularity.
    return to_ray(math.floor(amount))


def validate_weights(weights: CriteriaWeights | Sequence[object] | None) -> CriteriaWeights:
    """Coerce weights to ``CriteriaWeights`` and require they sum to 100."""
    if weights is None:
        return DEFAULT_WEIGHTS
    if isinstance(weights, CriteriaWeights):
        values: Sequence[object] = (
            weights.staking_amount,
            weights.staking_duration,
            weights.seigniorage,
        )
    else:
        values = tuple(weights)
    if len(values) != 3:
        raise ValidationError("Expected three weights: amount, duration, seigniorage")

    parsed: list[int] = []
    for value in values:
        if isinstance(value, bool):
            raise ValidationError("Invalid parameter values")
        try:
            weight = int(str(value).strip())
        except ValueError as exc:
            raise ValidationError("Invalid parameter values") from exc
        if not 0 <= weight <= 100:
            raise ValidationError("Each weight must be between 0 and 100")
        parsed.append(weight)

    if sum(parsed) != 100:
        raise ValidationError("Weights must sum to 100")
    return CriteriaWeights(*parsed)


def _resolve(
    records: Sequence[StakerRecord], fetch_balances: BalanceFetcher
) -> list[StakerRecord]:
    balances = fetch_balances([record.address for record in records]) if records else {}
    return resolve_seigniorage(records, balances)


def list_stakers(
    from_date: DateLike | None,
    to_date: DateLike | None,
    min_amount: object,
    *,
    fetch_records: RecordFetcher | None = None,
    fetch_balances: BalanceFetcher | None = None,
) -> StakerLookup:
    """Stakers who deposited at least ``min_amount`` tokens within the window."""
    if _is_missing(from_date) or _is_missing(to_date) or _is_missing(min_amount):
        raise ValidationError("Missing required parameters: from, to, minAmount")
    start, end = _parse_window(from_date, to_date)
    min_ray = _parse_min_amount(min_amount)

    fetch_records = fetch_records or subgraph.fetch_stakers
    fetch_balances = fetch_balances or onchain.fetch_stake_balances

    records = [
        record
        for record in fetch_records(start, end)
        if record.deposit_count > 0 and record.period_deposited >= min_ray
    ]
    records = _resolve(records, fetch_balances)

    total_staked = sum(record.net_position for record in records)
    total_seigniorage = sum(record.seigniorage for record in records)
    LOGGER.info("Staker lookup [%s, %s] matched %s addresses", start, end, len(records))
    return StakerLookup(
        stakers=records,
        total_staked_amount=total_staked,
        total_seigniorage=total_seigniorage,
    )


def _all_depositors(start: int, end: int) -> Sequence[StakerRecord]:
    return subgraph.fetch_all_depositors()


def simulate_airdrop(
    from_date: DateLike | None,
    to_date: DateLike | None,
    total_tokens: object,
    *,
    token_symbol: str | None = None,
    weights: CriteriaWeights | Sequence[object] | None = None,
    min_amount: object = 0,
    fetch_records: RecordFetcher | None = None,
    fetch_balances: BalanceFetcher | None = None,
) -> SimulationResult:
    """Simulate distributing ``total_tokens`` across current depositors.

    The snapshot is taken at ``to_date``; staking duration is measured up to
    that instant.
    """
    if _is_missing(from_date) or _is_missing(to_date) or _is_missing(total_tokens):
        raise ValidationError("Missing required parameters: from, to, totalTokens")
    start, end = _parse_window(from_date, to_date)
    tokens = _parse_number(total_tokens)
    if tokens <= 0:
        raise ValidationError("totalTokens must be positive")
    min_ray = _parse_min_amount(0 if _is_missing(min_amount) else min_amount)
    criteria = validate_weights(weights)

    fetch_records = fetch_records or _all_depositors
    fetch_balances = fetch_balances or onchain.fetch_stake_balances

    records = list(fetch_records(start, end))
    if min_ray > 0:
        records = [r for r in records if r.lifetime_deposited >= min_ray]
    records = _resolve(records, fetch_balances)

    config = SimulationConfig(
        total_tokens=tokens,
        token_symbol=(token_symbol or DEFAULT_TOKEN_SYMBOL).strip() or DEFAULT_TOKEN_SYMBOL,
        weights=criteria,
        snapshot_timestamp=end,
    )
    result = compute_airdrop_scores(records, config)
    LOGGER.info(
        "Simulated %s %s across %s eligible of %s stakers",
        tokens,
        config.token_symbol,
        result.summary.eligible_count,
        len(records),
    )
    return result
