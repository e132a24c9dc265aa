#!/usr/bin/env python
"""Create the payroll schema in the target database.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --database-url postgresql+asyncpg://...
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.exc import SQLAlchemyError

from hrms_payroll.config import get_settings
from hrms_payroll.database import create_schema, get_engine
from hrms_payroll.models import Base


async def init_schema(database_url: str) -> None:
    """Create every table that does not exist yet."""
    engine = get_engine(database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the payroll schema")
    parser.add_argument(
        "--database-url",
        default=get_settings().database_url,
        help="Async database URL",
    )
    args = parser.parse_args()

    print("Payroll Schema Setup")
    print("=" * 50)
    print(f"Database: {args.database_url.split('@')[-1] if '@' in args.database_url else args.database_url}")
    print(f"Tables: {', '.join(sorted(Base.metadata.tables))}")
    print()

    try:
        asyncio.run(init_schema(args.database_url))
    except SQLAlchemyError as e:
        print(f"ERROR: Could not create schema: {e}")
        return 1

    print("Schema is up to date.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
