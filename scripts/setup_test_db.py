#!/usr/bin/env python3
"""
Create (or drop) the PostgreSQL database used by the database-backed tests.

Usage:
    python scripts/setup_test_db.py           # drop, recreate, create tables
    python scripts/setup_test_db.py cleanup   # drop only
"""

import asyncio
import os
import sys

import asyncpg
from sqlalchemy.ext.asyncio import create_async_engine

from carebook import models  # noqa: F401
from carebook.core.database import Base

DB_HOST = os.getenv("TEST_DB_HOST", "localhost")
DB_PORT = int(os.getenv("TEST_DB_PORT", "5432"))
DB_USER = os.getenv("TEST_DB_USER", "carebook")
DB_PASSWORD = os.getenv("TEST_DB_PASSWORD", "carebook")
MASTER_DB_NAME = os.getenv("TEST_DB_MASTER", "carebook")
TEST_DB_NAME = os.getenv("TEST_DB_NAME", "test_carebook")

TEST_DB_URL = (
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:"
    f"{DB_PORT}/{TEST_DB_NAME}"
)


async def _master_connection():
    return await asyncpg.connect(
        host=DB_HOST,
        port=DB_PORT,
        user=DB_USER,
        password=DB_PASSWORD,
        database=MASTER_DB_NAME,
    )


async def setup_test_database() -> bool:
    print(f"Setting up test database: {TEST_DB_NAME}")

    try:
        master_conn = await _master_connection()
        await master_conn.execute(f'DROP DATABASE IF EXISTS "{TEST_DB_NAME}"')
        await master_conn.execute(f'CREATE DATABASE "{TEST_DB_NAME}"')
        await master_conn.close()

        engine = create_async_engine(TEST_DB_URL, echo=False)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

        print("Test database ready")
        print(f"Export TEST_DATABASE_URL={TEST_DB_URL}")

    except (OSError, asyncpg.PostgresError) as e:
        print(f"Error setting up test database: {e}")
        print(f"Check that PostgreSQL accepts {DB_USER}@{DB_HOST}:{DB_PORT}")
        return False

    return True


async def cleanup_test_database() -> bool:
    print(f"Cleaning up test database: {TEST_DB_NAME}")

    try:
        master_conn = await _master_connection()
        await master_conn.execute(f'DROP DATABASE IF EXISTS "{TEST_DB_NAME}"')
        await master_conn.close()
    except (OSError, asyncpg.PostgresError) as e:
        print(f"Error cleaning up test database: {e}")
        return False

    return True


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "cleanup":
        ok = asyncio.run(cleanup_test_database())
    else:
        ok = asyncio.run(setup_test_database())
    sys.exit(0 if ok else 1)
