"""Records shared by the aggregation, scoring and reporting layers.

Fixed-point balances are plain ``int`` values in RAY units. ``to_dict`` output
emits them as decimal strings so JSON consumers never see a rounded balance;
derived metrics and statistics are floats.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Sequence

EventKind = Literal["deposit", "withdraw"]

DEPOSIT: EventKind = "deposit"
WITHDRAW: EventKind = "withdraw"


@dataclass(frozen=True)
class StakingEvent:
    tx_hash: str
    kind: EventKind
    amount: int
    counterparty: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "txHash": self.tx_hash,
            "type": self.kind,
            "amount": str(self.amount),
            "layer2": self.counterparty,
            "timestamp": self.timestamp,
        }


@dataclass
class StakerRecord:
    """One address worth of staking activity.

    Period fields cover the queried window only; lifetime fields are the
    cumulative ledger used for seigniorage. ``current_stake`` and
    ``seigniorage`` are filled in by the seigniorage resolver.
    """

    address: str
    period_deposited: int = 0
    period_withdrawn: int = 0
    deposit_count: int = 0
    withdraw_count: int = 0
    first_activity_at: int = 0
    last_activity_at: int = 0
    events: list[StakingEvent] = field(default_factory=list)
    lifetime_deposited: int = 0
    lifetime_withdrawn: int = 0
    current_stake: int = 0
    seigniorage: int = 0

    @property
    def net_position(self) -> int:
        return self.period_deposited - self.period_withdrawn

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "totalStaked": str(self.period_deposited),
            "totalWithdrawn": str(self.period_withdrawn),
            "netPosition": str(self.net_position),
            "depositCount": self.deposit_count,
            "withdrawCount": self.withdraw_count,
            "firstStakedAt": self.first_activity_at,
            "lastStakedAt": self.last_activity_at,
            "events": [event.to_dict() for event in self.events],
            "lifetimeDeposited": str(self.lifetime_deposited),
            "lifetimeWithdrawn": str(self.lifetime_withdrawn),
            "currentStake": str(self.current_stake),
            "seigniorage": str(self.seigniorage),
        }


@dataclass(frozen=True)
class CriteriaWeights:
    """Percentage weights per criterion; callers guarantee they sum to 100."""

    staking_amount: int = 33
    staking_duration: int = 33
    seigniorage: int = 34

    @property
    def total(self) -> int:
        return self.staking_amount + self.staking_duration + self.seigniorage

    def to_dict(self) -> dict[str, int]:
        return {
            "stakingAmount": self.staking_amount,
            "stakingDuration": self.staking_duration,
            "seigniorage": self.seigniorage,
        }


@dataclass(frozen=True)
class SimulationConfig:
    total_tokens: float
    token_symbol: str
    weights: CriteriaWeights
    snapshot_timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTokens": self.total_tokens,
            "tokenSymbol": self.token_symbol,
            "weights": self.weights.to_dict(),
            "snapshotTimestamp": self.snapshot_timestamp,
        }


@dataclass(frozen=True)
class MetricValues:
    staking_amount: float
    staking_duration: float
    seigniorage: float

    def to_dict(self) -> dict[str, float]:
        return {
            "stakingAmount": self.staking_amount,
            "stakingDuration": self.staking_duration,
            "seigniorage": self.seigniorage,
        }


@dataclass(frozen=True)
class StakerScore:
    address: str
    raw: MetricValues
    scaled: MetricValues
    normalized: MetricValues
    composite_score: float
    allocation: float
    allocation_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "raw": self.raw.to_dict(),
            "sqrt": self.scaled.to_dict(),
            "normalized": self.normalized.to_dict(),
            "compositeScore": self.composite_score,
            "allocation": self.allocation,
            "allocationPct": self.allocation_pct,
        }


@dataclass(frozen=True)
class SimulationSummary:
    eligible_count: int = 0
    total_distributed: float = 0.0
    top10_pct_concentration: float = 0.0
    median_allocation: float = 0.0
    max_allocation: float = 0.0
    min_allocation: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "eligibleStakers": self.eligible_count,
            "totalDistributed": self.total_distributed,
            "top10PctConcentration": self.top10_pct_concentration,
            "medianAllocation": self.median_allocation,
            "maxAllocation": self.max_allocation,
            "minAllocation": self.min_allocation,
        }


@dataclass(frozen=True)
class SimulationResult:
    config: SimulationConfig
    scores: Sequence[StakerScore]
    summary: SimulationSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "stakerScores": [score.to_dict() for score in self.scores],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class StakerLookup:
    stakers: Sequence[StakerRecord]
    total_staked_amount: int
    total_seigniorage: int

    @property
    def total_count(self) -> int:
        return len(self.stakers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stakers": [staker.to_dict() for staker in self.stakers],
            "totalCount": self.total_count,
            "summary": {
                "uniqueStakers": self.total_count,
                "totalStakedAmount": str(self.total_staked_amount),
                "totalSeigniorage": str(self.total_seigniorage),
            },
        }
