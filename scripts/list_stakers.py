#!/usr/bin/env python3
"""List stakers who deposited within a date window."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from staking_airdrop import export, service
from staking_airdrop.fixed_point import format_ray

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%H:%M:%S",
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--from", dest="from_date", required=True, help="Window start (YYYY-MM-DD).")
    parser.add_argument("--to", dest="to_date", required=True, help="Window end (YYYY-MM-DD).")
    parser.add_argument(
        "--min-amount",
        required=True,
        help="Minimum deposited amount within the window, in whole WTON.",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        help="Write stakers.csv/stakers.json here (skipped when omitted).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    try:
        lookup = service.list_stakers(args.from_date, args.to_date, args.min_amount)
    except service.ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    frame = export.stakers_frame(lookup)
    if frame.empty:
        print("No stakers matched the filter.")
    else:
        print(frame.to_string(index=False))
    print(f"Unique stakers:    {lookup.total_count}")
    print(f"Net staked:        {format_ray(lookup.total_staked_amount)} WTON")
    print(f"Total seigniorage: {format_ray(lookup.total_seigniorage)} WTON")
    if args.out_dir is not None:
        csv_path, json_path = export.write_stakers(lookup, args.out_dir)
        print(f"Wrote {csv_path} and {json_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
