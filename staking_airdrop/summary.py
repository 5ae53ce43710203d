"""Population-level statistics over a scored allocation set."""

from __future__ import annotations

from collections.abc import Sequence

from .models import SimulationSummary

TOP_SHARE_DIVISOR = 10  # top decile


def empty_summary() -> SimulationSummary:
    return SimulationSummary()


def top_decile_count(count: int) -> int:
    """Number of recipients in the top 10%, never fewer than one."""
    return max(1, -(-count // TOP_SHARE_DIVISOR))


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def summarize_allocations(
    allocations: Sequence[float], total_tokens: float
) -> SimulationSummary:
    """Summarise allocations already ordered largest first.

    Concentration is the share of ``total_tokens`` going to the top decile of
    recipients, in percent.
    """
    if not allocations:
        return empty_summary()

    top_sum = sum(allocations[: top_decile_count(len(allocations))])
    concentration = (top_sum / total_tokens) * 100 if total_tokens > 0 else 0.0

    return SimulationSummary(
        eligible_count=len(allocations),
        total_distributed=sum(allocations),
        top10_pct_concentration=concentration,
        median_allocation=median(allocations),
        max_allocation=allocations[0],
        min_allocation=allocations[-1],
    )
