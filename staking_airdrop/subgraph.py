"""Staking subgraph (The Graph) helper functions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator

import requests

from . import config as cfg
from .aggregation import StakerAggregator
from .fixed_point import parse_ray
from .http_utils import RequestOptions, build_session, cached_json_request
from .models import DEPOSIT, WITHDRAW, StakerRecord, StakingEvent

LOGGER = logging.getLogger(__name__)

# "withdrawal" events only process an earlier "unstake" request; counting
# them as well would double the withdrawn amount.
EVENT_KINDS = {"stake": DEPOSIT, "unstake": WITHDRAW}

STAKING_EVENTS_QUERY = """
query StakingEvents($from: BigInt!, $to: BigInt!, $first: Int!, $skip: Int!) {
  stakingEvents(
    where: { type_in: ["stake", "unstake"], timestamp_gte: $from, timestamp_lte: $to }
    orderBy: timestamp
    orderDirection: asc
    first: $first
    skip: $skip
  ) {
    id
    type
    amount
    layer2
    timestamp
    txHash
    staker {
      id
      totalDeposited
      totalWithdrawn
    }
  }
}
"""

# ``withdrawalCount`` is the subgraph's own counter and includes both
# "unstake" and "withdrawal" events, so snapshot records can report more
# withdrawals than the event stream for the same address.
DEPOSITORS_QUERY = """
query Depositors($first: Int!, $skip: Int!) {
  stakers(
    where: { totalDeposited_gt: "0" }
    orderBy: id
    orderDirection: asc
    first: $first
    skip: $skip
  ) {
    id
    totalDeposited
    totalWithdrawn
    depositCount
    withdrawalCount
    firstStakedAt
    lastStakedAt
  }
}
"""


class SubgraphError(RuntimeError):
    """Raised when the subgraph answers with GraphQL errors."""


def _subgraph_session() -> requests.Session:
    return build_session(
        {"User-Agent": "staking-airdrop/1.0", "Content-Type": "application/json"}
    )


def _has_data(payload: Any) -> bool:
    return isinstance(payload, dict) and not payload.get("errors") and "data" in payload


def run_query(
    query: str,
    variables: Dict[str, Any] | None = None,
    *,
    force_refresh: bool = False,
) -> Dict[str, Any]:
    """POST a GraphQL query and return its ``data`` object."""
    if not cfg.subgraph_configured():
        raise SubgraphError("SUBGRAPH_URL is not configured")
    payload = cached_json_request(
        RequestOptions(
            prefix="subgraph",
            session=_subgraph_session(),
            method="POST",
            url=cfg.SUBGRAPH_URL,
            json_body={"query": query, "variables": variables or {}},
            ttl_seconds=cfg.HTTP_CACHE_TTL_SECONDS,
            force_refresh=force_refresh,
            cacheable=_has_data,
        )
    )
    if not isinstance(payload, dict):
        raise SubgraphError(f"Unexpected subgraph response: {payload!r}")
    errors = payload.get("errors")
    if errors:
        messages = "; ".join(str(err.get("message", err)) for err in errors)
        raise SubgraphError(f"Subgraph query failed: {messages}")
    return payload.get("data") or {}


def _paginate(
    query: str,
    field: str,
    variables: Dict[str, Any],
    *,
    page_size: int | None = None,
    force_refresh: bool = False,
) -> Iterator[Dict[str, Any]]:
    """Yield rows page by page until a short page signals the end."""
    size = page_size or cfg.SUBGRAPH_PAGE_SIZE
    skip = 0
    while True:
        data = run_query(
            query,
            {**variables, "first": size, "skip": skip},
            force_refresh=force_refresh,
        )
        rows = data.get(field) or []
        LOGGER.debug("Fetched %s %s rows at skip=%s", len(rows), field, skip)
        yield from rows
        if len(rows) < size:
            break
        skip += len(rows)


def iterate_staking_events(
    start: int,
    end: int,
    *,
    page_size: int | None = None,
    force_refresh: bool = False,
) -> Iterator[Dict[str, Any]]:
    """Deposit and withdrawal-request events with ``start <= timestamp <= end``."""
    return _paginate(
        STAKING_EVENTS_QUERY,
        "stakingEvents",
        {"from": str(start), "to": str(end)},
        page_size=page_size,
        force_refresh=force_refresh,
    )


def iterate_depositors(
    *, page_size: int | None = None, force_refresh: bool = False
) -> Iterator[Dict[str, Any]]:
    """Every staker entity that has ever deposited."""
    return _paginate(
        DEPOSITORS_QUERY,
        "stakers",
        {},
        page_size=page_size,
        force_refresh=force_refresh,
    )


def parse_staking_event(row: Dict[str, Any]) -> StakingEvent:
    kind = EVENT_KINDS.get(row["type"])
    if kind is None:
        raise ValueError(f"Unsupported staking event type: {row['type']!r}")
    return StakingEvent(
        tx_hash=row["txHash"],
        kind=kind,
        amount=parse_ray(row["amount"]),
        counterparty=(row.get("layer2") or "").lower(),
        timestamp=int(row["timestamp"]),
    )


def fetch_stakers(
    start: int,
    end: int,
    *,
    page_size: int | None = None,
    force_refresh: bool = False,
) -> list[StakerRecord]:
    """Stakers active in ``[start, end]``, aggregated from their events."""
    aggregator = StakerAggregator()
    event_count = 0
    for row in iterate_staking_events(
        start, end, page_size=page_size, force_refresh=force_refresh
    ):
        staker = row["staker"]
        aggregator.add_event(
            staker["id"],
            parse_staking_event(row),
            lifetime_deposited=parse_ray(staker["totalDeposited"]),
            lifetime_withdrawn=parse_ray(staker["totalWithdrawn"]),
        )
        event_count += 1
    LOGGER.info(
        "Aggregated %s staking events into %s stakers", event_count, len(aggregator)
    )
    return aggregator.records()


def fetch_all_depositors(
    *, page_size: int | None = None, force_refresh: bool = False
) -> list[StakerRecord]:
    """Lifetime snapshot of every depositor."""
    aggregator = StakerAggregator()
    for row in iterate_depositors(page_size=page_size, force_refresh=force_refresh):
        aggregator.add_snapshot(
            row["id"],
            deposited=parse_ray(row["totalDeposited"]),
            withdrawn=parse_ray(row["totalWithdrawn"]),
            deposit_count=int(row["depositCount"]),
            withdraw_count=int(row["withdrawalCount"]),
            first_activity_at=int(row["firstStakedAt"]),
            last_activity_at=int(row["lastStakedAt"]),
        )
    LOGGER.info("Loaded %s depositors from subgraph", len(aggregator))
    return aggregator.records()
