"""Configuration helpers for the staking airdrop simulator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path("data")
RAW_DATA_DIR = DATA_DIR / "raw"
OUT_DIR = Path("out")

SUBGRAPH_URL = os.getenv(
    "SUBGRAPH_URL",
    "https://api.studio.thegraph.com/query/YOUR_ID/tokamak-airdrop/version/latest",
)
ETHEREUM_RPC_URL = os.getenv("ETHEREUM_RPC_URL")

# SeigManager proxy on Ethereum mainnet; stakeOf(account) sums across all layer2s.
SEIG_MANAGER_ADDRESS = os.getenv(
    "SEIG_MANAGER_ADDRESS", "0x0b55a0f463b6defb81c6063973763951712d0e5f"
)

RAW_DATA_DIR.mkdir(parents=True, exist_ok=True)
OUT_DIR.mkdir(parents=True, exist_ok=True)


def _int_from_env(name: str, default: int) -> int:
    env_value = os.getenv(name)
    if env_value:
        try:
            return int(env_value)
        except ValueError:
            pass
    return default


SUBGRAPH_PAGE_SIZE = _int_from_env("SUBGRAPH_PAGE_SIZE", 1000)
RPC_BATCH_SIZE = _int_from_env("RPC_BATCH_SIZE", 500)
HTTP_CACHE_TTL_SECONDS = _int_from_env("HTTP_CACHE_TTL_SECONDS", 300)


@dataclass(frozen=True)
class RetryConfig:
    """Settings for HTTP retry/backoff behaviour."""

    wait_min_seconds: float = 0.5
    wait_max_seconds: float = 8.0
    max_attempts: int = 5
    status_forcelist: tuple[int, ...] = field(
        default_factory=lambda: (429, 500, 502, 503, 504, 522, 525)
    )


DEFAULT_RETRY_CONFIG = RetryConfig()


def _is_placeholder(url: str | None, marker: str) -> bool:
    return not url or marker in url


def subgraph_configured() -> bool:
    """True when a real subgraph endpoint (not the template URL) is set."""
    return not _is_placeholder(SUBGRAPH_URL, "YOUR_ID")


def rpc_configured() -> bool:
    return not _is_placeholder(ETHEREUM_RPC_URL, "YOUR_KEY")


def resolve_cache_path(prefix: str, key: str, suffix: str = ".json") -> Path:
    """Return a deterministic cache path under data/raw for a given key."""
    sanitized_prefix = prefix.replace("/", "_")
    filename = f"{sanitized_prefix}_{key}{suffix}"
    return RAW_DATA_DIR / filename
