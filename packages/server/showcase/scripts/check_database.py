"""
Check that the configured database is reachable.

Connects with retry, counts users and disconnects. Exits 1 on failure.
"""

import argparse
import asyncio
import sys

from sqlalchemy import func
from sqlmodel import select

from showcase.core.config import ConfigurationError, build_database_config, get_configuration
from showcase.core.database import Database, DatabaseConnectionError
from showcase.core.diagnostics import mask_database_url
from showcase.core.settings import get_settings
from showcase.models.user import User


async def check_database(database: Database, attempts: int) -> int:
    """Return the number of users, raising if the database is unreachable."""
    settings = get_settings()
    try:
        await database.connect_with_retry(
            max_attempts=attempts,
            base_delay=settings.db_connect_base_delay_seconds,
            max_delay=settings.db_connect_max_delay_seconds,
        )
        async with database.session() as session:
            result = await session.execute(select(func.count()).select_from(User))
            return result.scalar_one()
    finally:
        await database.disconnect()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Check database connectivity.")
    parser.add_argument(
        "--attempts",
        type=int,
        default=get_settings().db_connect_attempts,
        help="Connection attempts before giving up",
    )
    args = parser.parse_args(argv)

    try:
        configuration = get_configuration()
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    config = build_database_config(configuration)
    print(f"Checking {config.provider.value} database at {mask_database_url(config.url)}")

    try:
        count = asyncio.run(check_database(Database(config), args.attempts))
    except DatabaseConnectionError as exc:
        print(f"Database connection failed: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Database query failed: {exc}", file=sys.stderr)
        print("Run showcase-seed to create the tables.", file=sys.stderr)
        sys.exit(1)

    print(f"Database connection successful. Users: {count}")


if __name__ == "__main__":
    main()
