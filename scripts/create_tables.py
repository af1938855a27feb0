#!/usr/bin/env python3
"""
Create all tables of the configured database.

Example:
    python -m scripts.create_tables --drop
"""
import argparse
import asyncio

import structlog

from larder.db import create_tables, get_engine_and_session

logger = structlog.get_logger()


async def main(drop_existing: bool) -> None:
    engine, _ = get_engine_and_session()
    try:
        await create_tables(engine, drop_existing=drop_existing)
        logger.info("Tables created", url=str(engine.url), dropped=drop_existing)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    asyncio.run(main(args.drop))
