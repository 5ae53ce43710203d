"""On-chain stake lookups against the SeigManager contract.

``stakeOf(account)`` is read for many addresses at once by packing the
``eth_call``s into JSON-RPC batch requests, one HTTP round trip per chunk.
A failed call only drops that address; callers default it to zero stake.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Dict

import requests
from web3 import Web3

from . import config as cfg
from .http_utils import (
    RequestOptions,
    TransientHTTPError,
    build_session,
    cached_json_request,
)

LOGGER = logging.getLogger(__name__)

STAKE_OF_SELECTOR = bytes(Web3.keccak(text="stakeOf(address)")[:4]).hex()


def encode_stake_of(address: str) -> str:
    """ABI-encode ``stakeOf(address)`` call data."""
    return "0x" + STAKE_OF_SELECTOR + address.lower().removeprefix("0x").rjust(64, "0")


def decode_uint256(result: Any) -> int | None:
    if not isinstance(result, str) or not result.startswith("0x") or len(result) <= 2:
        return None
    try:
        return int(result, 16)
    except ValueError:
        return None


def _rpc_session() -> requests.Session:
    return build_session({"User-Agent": "staking-airdrop/1.0"})


def _chunks(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for index in range(0, len(items), size):
        yield items[index : index + size]


def _build_batch(addresses: Sequence[str], contract: str) -> list[Dict[str, Any]]:
    return [
        {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "eth_call",
            "params": [{"to": contract, "data": encode_stake_of(address)}, "latest"],
        }
        for request_id, address in enumerate(addresses)
    ]


def _fetch_chunk(
    session: requests.Session, addresses: Sequence[str], contract: str
) -> Dict[str, int]:
    payload = cached_json_request(
        RequestOptions(
            prefix="rpc_stake_of",
            session=session,
            method="POST",
            url=cfg.ETHEREUM_RPC_URL,
            json_body=_build_batch(addresses, contract),
            use_cache=False,
        )
    )
    if not isinstance(payload, list):
        # A single error object instead of a batch answer.
        LOGGER.warning("RPC rejected stakeOf batch of %s calls: %s", len(addresses), payload)
        return {}

    balances: Dict[str, int] = {}
    for item in payload:
        if not isinstance(item, dict):
            continue
        request_id = item.get("id")
        if not isinstance(request_id, int) or not 0 <= request_id < len(addresses):
            continue
        address = addresses[request_id]
        if item.get("error"):
            LOGGER.debug("stakeOf failed for %s: %s", address, item["error"])
            continue
        value = decode_uint256(item.get("result"))
        if value is not None:
            balances[address] = value
    return balances


def fetch_stake_balances(
    addresses: Iterable[str],
    *,
    batch_size: int | None = None,
    contract: str | None = None,
) -> Dict[str, int]:
    """Return ``{lowercased address: stakeOf}`` for every successful lookup.

    Returns an empty mapping when no RPC endpoint is configured.
    """
    unique: list[str] = []
    seen: set[str] = set()
    for address in addresses:
        key = address.lower()
        if key in seen:
            continue
        seen.add(key)
        if not Web3.is_address(key):
            LOGGER.warning("Skipping stake lookup for invalid address %s", address)
            continue
        unique.append(key)

    if not unique:
        return {}
    if not cfg.rpc_configured():
        LOGGER.warning("ETHEREUM_RPC_URL not configured; on-chain stake defaults to zero")
        return {}

    size = batch_size or cfg.RPC_BATCH_SIZE
    target = (contract or cfg.SEIG_MANAGER_ADDRESS).lower()
    session = _rpc_session()
    balances: Dict[str, int] = {}
    for chunk in _chunks(unique, size):
        # RuntimeError: non-JSON body from a misbehaving gateway.
        try:
            balances.update(_fetch_chunk(session, chunk, target))
        except (TransientHTTPError, requests.RequestException, RuntimeError) as exc:
            LOGGER.warning(
                "stakeOf batch of %s addresses failed, defaulting to zero: %s",
                len(chunk),
                exc,
            )
    LOGGER.info("Resolved on-chain stake for %s of %s addresses", len(balances), len(unique))
    return balances
