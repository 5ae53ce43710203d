"""Tabular and JSON export of lookup and simulation results."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

from . import config as cfg
from .fixed_point import format_ray
from .models import SimulationResult, StakerLookup

SCORE_COLUMNS = [
    "rank",
    "address",
    "staking_amount",
    "staking_duration_days",
    "seigniorage",
    "norm_staking_amount",
    "norm_staking_duration",
    "norm_seigniorage",
    "composite_score",
    "allocation",
    "allocation_pct",
]

STAKER_COLUMNS = [
    "address",
    "deposited",
    "withdrawn",
    "net_position",
    "deposit_count",
    "withdraw_count",
    "first_staked_at",
    "last_staked_at",
    "current_stake",
    "seigniorage",
]


def scores_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per eligible staker, ordered by allocation (largest first)."""
    if not result.scores:
        return pd.DataFrame(columns=SCORE_COLUMNS)
    records = [
        {
            "rank": rank,
            "address": score.address,
            "staking_amount": score.raw.staking_amount,
            "staking_duration_days": score.raw.staking_duration,
            "seigniorage": score.raw.seigniorage,
            "norm_staking_amount": score.normalized.staking_amount,
            "norm_staking_duration": score.normalized.staking_duration,
            "norm_seigniorage": score.normalized.seigniorage,
            "composite_score": score.composite_score,
            "allocation": score.allocation,
            "allocation_pct": score.allocation_pct,
        }
        for rank, score in enumerate(result.scores, start=1)
    ]
    return pd.DataFrame.from_records(records, columns=SCORE_COLUMNS)


def stakers_frame(lookup: StakerLookup) -> pd.DataFrame:
    """Staker lookup table; token columns are formatted strings, not floats."""
    if not lookup.stakers:
        return pd.DataFrame(columns=STAKER_COLUMNS)
    records = [
        {
            "address": staker.address,
            "deposited": format_ray(staker.period_deposited),
            "withdrawn": format_ray(staker.period_withdrawn),
            "net_position": format_ray(staker.net_position),
            "deposit_count": staker.deposit_count,
            "withdraw_count": staker.withdraw_count,
            "first_staked_at": pd.to_datetime(staker.first_activity_at, unit="s", utc=True),
            "last_staked_at": pd.to_datetime(staker.last_activity_at, unit="s", utc=True),
            "current_stake": format_ray(staker.current_stake),
            "seigniorage": format_ray(staker.seigniorage),
        }
        for staker in lookup.stakers
    ]
    return pd.DataFrame.from_records(records, columns=STAKER_COLUMNS)


def write_simulation(result: SimulationResult, out_dir: Path | None = None) -> tuple[Path, Path]:
    """Write ``airdrop_scores.csv`` and ``airdrop_result.json``."""
    target = out_dir or cfg.OUT_DIR
    target.mkdir(parents=True, exist_ok=True)
    csv_path = target / "airdrop_scores.csv"
    json_path = target / "airdrop_result.json"
    scores_frame(result).to_csv(csv_path, index=False)
    with json_path.open("w") as fh:
        json.dump(result.to_dict(), fh, indent=2)
    return csv_path, json_path


def write_stakers(lookup: StakerLookup, out_dir: Path | None = None) -> tuple[Path, Path]:
    """Write ``stakers.csv`` and ``stakers.json``."""
    target = out_dir or cfg.OUT_DIR
    target.mkdir(parents=True, exist_ok=True)
    csv_path = target / "stakers.csv"
    json_path = target / "stakers.json"
    stakers_frame(lookup).to_csv(csv_path, index=False)
    with json_path.open("w") as fh:
        json.dump(lookup.to_dict(), fh, indent=2)
    return csv_path, json_path
