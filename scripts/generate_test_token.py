#!/usr/bin/env python3
"""Generate a bearer token for an existing identity, for manual API testing.

Usage:
    python scripts/generate_test_token.py admin@example.com
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio

from sqlalchemy import select
from src.api.deps import issue_smoke_token
from src.core.auth import Role
from src.infrastructure.db import dispose_engine, get_session_factory
from src.infrastructure.db.models import UserModel


async def token_for(email: str) -> str:
    session_factory = get_session_factory()
    try:
        async with session_factory() as session:
            user = await session.scalar(select(UserModel).where(UserModel.email == email.lower()))
    finally:
        await dispose_engine()

    if user is None:
        raise SystemExit(f"No user registered with email {email}")
    return issue_smoke_token(user.id, role=Role(user.role.value), email=user.email)


def main() -> None:
    if len(sys.argv) != 2:
        raise SystemExit("usage: generate_test_token.py <email>")
    print(asyncio.run(token_for(sys.argv[1])))


if __name__ == "__main__":
    main()
