#!/usr/bin/env python
"""Load seed data from CSV for one restaurant.

Example:
    python -m scripts.load_seed_data suppliers data/suppliers.csv --restaurant 1
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from larder.core.data_loader import REQUIRED_COLUMNS, load_seed
from larder.db import get_engine_and_session


async def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("type", choices=sorted(REQUIRED_COLUMNS))
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--restaurant", type=int, required=True, help="restaurant id")
    args = parser.parse_args()

    engine, SessionLocal = get_engine_and_session()
    try:
        async with SessionLocal() as session:
            count = await load_seed(session, args.type, args.csv_path, args.restaurant)
    finally:
        await engine.dispose()
    print(f"✓ inserted {count} rows into {args.type}")


if __name__ == "__main__":
    asyncio.run(main())
