"""Print a user's role.

    python -m hackhub.scripts.check_role <email>
"""
from __future__ import annotations
import argparse
import asyncio
import sys
from sqlalchemy import select
from hackhub.db import SessionLocal
from hackhub.models.user import User


async def _run(email: str) -> int:
    async with SessionLocal() as session:
        user = await session.scalar(select(User).where(User.email == email.strip().lower()))
    if not user:
        print(f"User with email {email} not found")
        return 1
    print("User Details:")
    print(f"   ID: {user.id}")
    print(f"   Email: {user.email}")
    print(f"   Name: {user.name or 'N/A'}")
    print(f"   Role: {user.role}")
    print(f"Role is {'ADMIN' if user.is_admin else 'NOT ADMIN'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="check_role", description="Show a user's role")
    parser.add_argument("email")
    args = parser.parse_args(argv)
    return asyncio.run(_run(args.email))


if __name__ == "__main__":
    sys.exit(main())
