#!/usr/bin/env python3
"""
Seed script to create a groot account and a demo mentoring group.
Prints a bearer token for each account so the API can be tried out.

Usage:
    python scripts/seed_users.py
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import timedelta

from auth.jwt_handler import create_access_token
from database import create_db_engine, create_session_factory, init_db
from models import Group, User
from services.document_store import SqlDocumentStore
from services.repository import Repository

TOKEN_LIFETIME = timedelta(days=30)


async def create_user(users: Repository, user_id: str, name: str, email: str) -> User:
    """Create a user if it doesn't exist"""
    if await users.exists(user_id):
        print(f"  [EXISTS] User: {name} ({user_id})")
        return await users.get(user_id)

    user = await users.create(User(id=user_id, name=name, email=email))
    print(f"  [CREATED] User: {name} ({user_id})")
    return user


async def seed(store: SqlDocumentStore) -> None:
    users = Repository(store, User, "users")
    groups = Repository(store, Group, "groups")

    print("\n[1] Creating users...")
    groot = await create_user(users, "groot", "Groot", "groot@example.com")
    mentor = await create_user(users, "demo-mentor", "Demo Mentor", "mentor@example.com")
    mentee = await create_user(users, "demo-mentee", "Demo Mentee", "mentee@example.com")

    print("\n[2] Creating demo group...")
    group = Group(
        id="demo-group",
        name="Demo Group",
        participants={mentor.id: "mentor", mentee.id: "mentee"},
        code="join-the-demo",
    )
    await groups.save(group)
    print(f"  [SAVED] Group: {group.name} (join code: {group.code})")

    print("\n" + "=" * 60)
    print("SEED COMPLETE!")
    print("=" * 60)
    for user, is_groot in ((groot, True), (mentor, False), (mentee, False)):
        token = create_access_token(user.id, groot=is_groot, expires_delta=TOKEN_LIFETIME)
        print(f"\n{user.name} ({user.id}):\n  {token}")


def main():
    engine = create_db_engine()
    init_db(engine)
    asyncio.run(seed(SqlDocumentStore(create_session_factory(engine))))


if __name__ == "__main__":
    main()
