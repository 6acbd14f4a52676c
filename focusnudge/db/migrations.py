"""Database migration runner."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# version -> statements bringing a database from version - 1 to version.
# Version 1 is the full schema in schema.sql.
MIGRATIONS: dict[int, list[str]] = {}


async def init_database(db_path: Path) -> None:
    """Create every table and index from schema.sql."""
    schema_path = Path(__file__).parent / "schema.sql"

    async with aiosqlite.connect(db_path) as db:
        with open(schema_path) as f:
            schema_sql = f.read()

        await db.executescript(schema_sql)
        await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await db.commit()

        logger.info(f"Database initialized at {db_path} (schema v{SCHEMA_VERSION})")


async def get_schema_version(db_path: Path) -> int:
    async with aiosqlite.connect(db_path) as db:
        async with db.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
            return int(row[0]) if row else 0


async def run_migrations(db_path: Path) -> None:
    """Bring the database up to SCHEMA_VERSION.

    A fresh database (user_version 0) gets the whole schema; an existing one
    gets each pending migration applied in order.
    """
    version = await get_schema_version(db_path)

    if version == 0:
        await init_database(db_path)
        return

    if version > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema v{version} is newer than this release (v{SCHEMA_VERSION})"
        )

    async with aiosqlite.connect(db_path) as db:
        for target in range(version + 1, SCHEMA_VERSION + 1):
            for statement in MIGRATIONS.get(target, []):
                await db.execute(statement)
            await db.execute(f"PRAGMA user_version = {target}")
            await db.commit()
            logger.info(f"Migrated database to schema v{target}")
