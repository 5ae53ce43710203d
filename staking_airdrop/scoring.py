"""Airdrop allocation scoring.

Each eligible staker is measured on three criteria:

- staking amount: current on-chain stake (tokens);
- staking duration: days between first stake and the snapshot;
- seigniorage: yield accrued on top of principal (tokens).

Every metric is square-root scaled (100x the stake yields 10x the score),
max-normalised into [0, 1] across the eligible population and combined with
the configured percentage weights. The token budget is then split in
proportion to the composite score.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from .fixed_point import ray_to_float
from .models import (
    MetricValues,
    SimulationConfig,
    SimulationResult,
    StakerRecord,
    StakerScore,
)
from .summary import empty_summary, summarize_allocations

LOGGER = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
NORMALIZATION_FLOOR = 1e-18


def is_eligible(record: StakerRecord) -> bool:
    """Eligible stakers hold stake or have earned seigniorage."""
    return ray_to_float(record.current_stake) > 0 or ray_to_float(record.seigniorage) > 0


def extract_raw_metrics(record: StakerRecord, snapshot_timestamp: int) -> MetricValues:
    duration_days = (snapshot_timestamp - record.first_activity_at) / SECONDS_PER_DAY
    return MetricValues(
        staking_amount=ray_to_float(record.current_stake),
        staking_duration=max(0.0, duration_days),
        seigniorage=ray_to_float(record.seigniorage),
    )


def _sqrt_scale(raw: MetricValues) -> MetricValues:
    return MetricValues(
        staking_amount=math.sqrt(raw.staking_amount),
        staking_duration=math.sqrt(raw.staking_duration),
        seigniorage=math.sqrt(raw.seigniorage),
    )


def _column_max(values: list[MetricValues]) -> MetricValues:
    return MetricValues(
        staking_amount=max([v.staking_amount for v in values] + [NORMALIZATION_FLOOR]),
        staking_duration=max([v.staking_duration for v in values] + [NORMALIZATION_FLOOR]),
        seigniorage=max([v.seigniorage for v in values] + [NORMALIZATION_FLOOR]),
    )


def _normalize(scaled: MetricValues, maxima: MetricValues) -> MetricValues:
    return MetricValues(
        staking_amount=scaled.staking_amount / maxima.staking_amount,
        staking_duration=scaled.staking_duration / maxima.staking_duration,
        seigniorage=scaled.seigniorage / maxima.seigniorage,
    )


def compute_airdrop_scores(
    records: Iterable[StakerRecord], config: SimulationConfig
) -> SimulationResult:
    """Score stakers and split ``config.total_tokens`` between them.

    Records are read, never modified. Weights are assumed validated (summing
    to 100) by the caller. When every composite score is zero all allocations
    are zero and nothing is distributed.
    """
    records = list(records)
    eligible = [record for record in records if is_eligible(record)]
    if not eligible:
        return SimulationResult(config=config, scores=[], summary=empty_summary())

    weights = config.weights
    w_amount = weights.staking_amount / 100
    w_duration = weights.staking_duration / 100
    w_seig = weights.seigniorage / 100

    raw_values = [extract_raw_metrics(r, config.snapshot_timestamp) for r in eligible]
    scaled_values = [_sqrt_scale(raw) for raw in raw_values]
    maxima = _column_max(scaled_values)

    normalized_values = [_normalize(scaled, maxima) for scaled in scaled_values]
    composites = [
        w_amount * norm.staking_amount
        + w_duration * norm.staking_duration
        + w_seig * norm.seigniorage
        for norm in normalized_values
    ]

    total_score = sum(composites)
    if total_score <= 0:
        LOGGER.warning(
            "Composite scores collapsed to zero for %s stakers; nothing allocated",
            len(eligible),
        )

    scores: list[StakerScore] = []
    for record, raw, scaled, norm, composite in zip(
        eligible, raw_values, scaled_values, normalized_values, composites
    ):
        share = composite / total_score if total_score > 0 else 0.0
        scores.append(
            StakerScore(
                address=record.address,
                raw=raw,
                scaled=scaled,
                normalized=norm,
                composite_score=composite,
                allocation=share * config.total_tokens,
                allocation_pct=share * 100,
            )
        )

    # sorted() is stable with reverse=True, so ties keep input order.
    scores = sorted(scores, key=lambda s: s.allocation, reverse=True)
    LOGGER.debug("Scored %s of %s stakers", len(scores), len(records))

    summary = summarize_allocations(
        [score.allocation for score in scores], config.total_tokens
    )
    return SimulationResult(config=config, scores=scores, summary=summary)
