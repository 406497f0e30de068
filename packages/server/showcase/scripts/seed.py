"""
Create the tables and seed demo users.

Safe to run repeatedly: existing users are left untouched.
"""

import argparse
import asyncio
import sys

from sqlmodel import select

from showcase.core.auth import hash_password
from showcase.core.config import ConfigurationError, build_database_config, get_configuration
from showcase.core.database import Database
from showcase.core.environment import Mode
from showcase.models.user import User

DEMO_USER = ("demo@example.com", "Demo User", "demo123")
DEVELOPMENT_USERS = (
    ("test1@example.com", "Test User 1", "test123"),
    ("test2@example.com", "Test User 2", "test123"),
)


def seed_users(mode: Mode) -> tuple[tuple[str, str, str], ...]:
    if mode is Mode.DEVELOPMENT:
        return (DEMO_USER,) + DEVELOPMENT_USERS
    return (DEMO_USER,)


async def seed(database: Database, mode: Mode) -> list[str]:
    """Create missing seed users. Returns the emails that were created."""
    created = []
    try:
        await database.init_db()
        async with database.session() as session:
            for email, name, password in seed_users(mode):
                result = await session.execute(select(User).where(User.email == email))
                if result.scalar_one_or_none():
                    print(f"User {email} already exists.")
                    continue
                session.add(User(email=email, name=name, password_hash=hash_password(password)))
                created.append(email)
                print(f"Created user: {email}")
    finally:
        await database.disconnect()
    return created


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the Speech Showcase database.")
    parser.parse_args(argv)

    try:
        configuration = get_configuration()
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    print(f"Seeding {configuration.mode.value} database...")
    try:
        asyncio.run(seed(Database(build_database_config(configuration)), configuration.mode))
    except Exception as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        sys.exit(1)
    print("Done.")


if __name__ == "__main__":
    main()
