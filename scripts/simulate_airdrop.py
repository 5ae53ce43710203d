#!/usr/bin/env python3
"""Simulate an airdrop across current stakers and write the allocation table."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from staking_airdrop import export, service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%H:%M:%S",
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--from", dest="from_date", required=True, help="Window start (YYYY-MM-DD).")
    parser.add_argument(
        "--to",
        dest="to_date",
        required=True,
        help="Window end and snapshot date (YYYY-MM-DD).",
    )
    parser.add_argument(
        "--total-tokens",
        required=True,
        help="Token budget to distribute.",
    )
    parser.add_argument(
        "--token-symbol",
        default=service.DEFAULT_TOKEN_SYMBOL,
        help="Symbol of the distributed token (default: TOKEN).",
    )
    parser.add_argument(
        "--weights",
        nargs=3,
        metavar=("AMOUNT", "DURATION", "SEIGNIORAGE"),
        default=["33", "33", "34"],
        help="Criteria weights in percent, must sum to 100 (default: 33 33 34).",
    )
    parser.add_argument(
        "--min-amount",
        default="0",
        help="Minimum lifetime deposit in whole WTON (default: 0).",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        help="Output directory (defaults to out/).",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=20,
        help="Rows of the allocation table to print (default: 20).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    try:
        result = service.simulate_airdrop(
            args.from_date,
            args.to_date,
            args.total_tokens,
            token_symbol=args.token_symbol,
            weights=args.weights,
            min_amount=args.min_amount,
        )
    except service.ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    csv_path, json_path = export.write_simulation(result, args.out_dir)
    summary = result.summary
    symbol = result.config.token_symbol
    print(f"Eligible stakers:      {summary.eligible_count}")
    print(f"Total distributed:     {summary.total_distributed:,.2f} {symbol}")
    print(f"Top 10% concentration: {summary.top10_pct_concentration:.2f}%")
    print(f"Median allocation:     {summary.median_allocation:,.2f} {symbol}")
    print(f"Max / min allocation:  {summary.max_allocation:,.2f} / {summary.min_allocation:,.2f}")
    if result.scores:
        frame = export.scores_frame(result).head(args.top)
        print(frame[["rank", "address", "composite_score", "allocation", "allocation_pct"]].to_string(index=False))
    print(f"Wrote {csv_path} and {json_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
