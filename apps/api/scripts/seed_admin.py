"""
Seed Admin User

Creates an administrator account. Self-registration only ever creates
students, so this script is the way admins come into existence.

Credentials are read from the environment:
    ADMIN_USERNAME  (an email address)
    ADMIN_PASSWORD

Usage:
    cd apps/api
    ADMIN_USERNAME=registrar@example.edu ADMIN_PASSWORD=... python scripts/seed_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from admission_portal.core.database import async_session_maker, close_db
from admission_portal.core.security import hash_password
from admission_portal.modules.users.models import UserRole
from admission_portal.modules.users.repository import UserRepository

MIN_PASSWORD_LENGTH = 8


async def seed_admin(username: str, password: str) -> None:
    """Create the admin user if it doesn't exist."""
    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_username(db, username)

        if existing_user:
            print(f"User already exists: {existing_user.username}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            return

        admin_user = await UserRepository.create(
            db,
            username=username,
            password_hash=hash_password(password),
            role=UserRole.ADMIN,
        )

        print("Admin created successfully!")
        print(f"  Username: {admin_user.username}")
        print(f"  ID: {admin_user.id}")

    await close_db()


def main() -> int:
    username = os.environ.get("ADMIN_USERNAME", "").strip()
    password = os.environ.get("ADMIN_PASSWORD", "")

    if not username or "@" not in username:
        print("ADMIN_USERNAME must be set to an email address", file=sys.stderr)
        return 1
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"ADMIN_PASSWORD must be at least {MIN_PASSWORD_LENGTH} characters", file=sys.stderr)
        return 1

    asyncio.run(seed_admin(username, password))
    return 0


if __name__ == "__main__":
    sys.exit(main())
