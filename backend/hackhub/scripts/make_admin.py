"""Promote a user to ADMIN, creating the account when the email is unknown.

    python -m hackhub.scripts.make_admin <email> [name] [--password PASSWORD]
"""
from __future__ import annotations
import argparse
import asyncio
import sys
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.db import SessionLocal
from hackhub.models.user import User, ROLE_ADMIN
from hackhub.security import hash_password


async def make_admin(session: AsyncSession, email: str, name: str | None = None, password: str | None = None) -> tuple[User, bool]:
    """Returns (user, created)."""
    email = email.strip().lower()
    user = await session.scalar(select(User).where(User.email == email))
    created = user is None
    if created:
        user = User(email=email, name=name or email.split("@")[0], role=ROLE_ADMIN)
        session.add(user)
    else:
        user.role = ROLE_ADMIN
    if password:
        user.password_hash = hash_password(password)
    await session.commit()
    await session.refresh(user)
    return user, created


async def _run(email: str, name: str | None, password: str | None) -> None:
    async with SessionLocal() as session:
        user, created = await make_admin(session, email, name, password)
    if created:
        print(f"Created new admin user {user.name} ({user.email})")
    else:
        print(f"Updated user {user.email} to ADMIN role")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="make_admin", description="Promote or create an admin user")
    parser.add_argument("email")
    parser.add_argument("name", nargs="?", default=None)
    parser.add_argument("--password", default=None, help="set a password so the admin can log in")
    args = parser.parse_args(argv)
    try:
        asyncio.run(_run(args.email, args.name, args.password))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
