#!/usr/bin/env python3
"""Provision a user row for local development and print a bearer token.

In production users come from the identity service; this mirrors that for a
dev database.
"""

import asyncio
import sys

sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from sqlalchemy import select

from portfolio_sync.core.database import Database
from portfolio_sync.core.security import create_access_token
from portfolio_sync.models import Base
from portfolio_sync.models.user import User


async def create_user():
    """Create (or reuse) a user interactively."""
    database = Database.from_settings()

    # Create tables if they don't exist
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    email = input("Email: ").strip()
    if not email:
        print("Email required.")
        await database.dispose()
        return

    async with database.session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            print(f"User {email} already exists, reusing it.")
        else:
            user = User(email=email, is_active=True)
            session.add(user)
            await session.commit()
            print(f"\nUser created: {email}")

        print(f"   Id: {user.id}")
        print(f"   Token: {create_access_token(subject=str(user.id))}")

    await database.dispose()


if __name__ == "__main__":
    asyncio.run(create_user())
