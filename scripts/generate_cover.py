#!/usr/bin/env python3
"""Generate cover products for one chip.

Usage:
    python generate_cover.py --cx 1484415 --cy 2414805 --tile h05v02 \
        --dates 2010-07-01 2011-07-01 --config cover.json

The configuration file is optional; it holds any ``Config`` fields as a
JSON object (for example ``nemo_host`` and ``storage_dir``).
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

try:
    import coverproducts as cp
except ImportError:
    print("Error: coverproducts not installed. Run: pip install -e .")
    sys.exit(1)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--cx", type=int, required=True, help="Chip x coordinate")
    parser.add_argument("--cy", type=int, required=True, help="Chip y coordinate")
    parser.add_argument("--tile", default="", help="Tile identifier, e.g. h05v02")
    parser.add_argument(
        "--dates", nargs="+", required=True, help="Query dates as YYYY-MM-DD"
    )
    parser.add_argument("--config", default=None, help="JSON configuration file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = cp.load_config(args.config) if args.config else cp.get_default_config()
        request = cp.ChipRequest(cx=args.cx, cy=args.cy, tile=args.tile, dates=args.dates)
        summary = cp.generate(request, config=config)
    except (cp.CoverProductsError, ValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Stored {len(summary.keys)} document(s) for {summary.pixel_count} pixels:")
    for key in summary.keys:
        print(f"  {key}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
