from __future__ import annotations

import pytest

from staking_airdrop import summary


@pytest.mark.parametrize(
    "count, expected",
    [(0, 1), (1, 1), (9, 1), (10, 1), (11, 2), (30, 3), (31, 4), (100, 10)],
)
def test_top_decile_count_includes_at_least_one(count, expected):
    assert summary.top_decile_count(count) == expected


def test_median_odd_and_even():
    assert summary.median([5.0, 1.0, 3.0]) == 3.0
    assert summary.median([4.0, 1.0, 3.0, 2.0]) == 2.5
    assert summary.median([]) == 0.0


def test_summarize_allocations():
    allocations = [500.0, 300.0, 150.0, 50.0]
    result = summary.summarize_allocations(allocations, 1000.0)

    assert result.eligible_count == 4
    assert result.total_distributed == pytest.approx(1000.0)
    assert result.top10_pct_concentration == pytest.approx(50.0)
    assert result.median_allocation == pytest.approx(225.0)
    assert result.max_allocation == 500.0
    assert result.min_allocation == 50.0


def test_summarize_allocations_empty_is_all_zero():
    result = summary.summarize_allocations([], 1000.0)
    assert result == summary.empty_summary()
    assert result.to_dict() == {
        "eligibleStakers": 0,
        "totalDistributed": 0.0,
        "top10PctConcentration": 0.0,
        "medianAllocation": 0.0,
        "maxAllocation": 0.0,
        "minAllocation": 0.0,
    }


def test_concentration_zero_when_budget_is_zero():
    result = summary.summarize_allocations([0.0, 0.0], 0.0)
    assert result.top10_pct_concentration == 0.0
    assert result.eligible_count == 2
