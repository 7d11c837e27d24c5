#!/usr/bin/env python
"""
Issue a bearer token for an existing user.

The token embeds the user's effective permissions as resolved right now; it has
to be reissued to pick up later assignment changes.

Usage:
    python -m scripts.issue_token --username admin
    python -m scripts.issue_token --username jane.smith --expires-minutes 15
"""
import argparse
import asyncio
import sys

from sqlalchemy import select

from app.core.cache import close_cache, get_cache, get_cache_keys
from app.core.database.engine import AsyncSessionLocal
from app.features.permissions.resolver import PermissionResolver
from app.features.users.auth import create_access_token
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


async def issue_token(username: str, expires_minutes: int | None = None) -> str | None:
    async with AsyncSessionLocal() as db:
        user = (await db.execute(select(User).where(User.username == username))).scalar_one_or_none()
        if user is None:
            log.error("User %s not found", username)
            return None
        if not user.is_active:
            log.error("User %s is inactive", username)
            return None

        permissions = await PermissionResolver(db, get_cache(), get_cache_keys()).resolve(user.id)

    log.info("Issuing token for %s with %d permissions", username, len(permissions.all_permissions))
    return create_access_token(user.id, user.username, permissions.all_permissions, expires_minutes)


async def main(username: str, expires_minutes: int | None) -> int:
    try:
        token = await issue_token(username, expires_minutes)
    finally:
        await close_cache()
    if token is None:
        return 1
    print(token)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Issue a bearer token for an existing user")
    parser.add_argument("--username", required=True, help="Username of the token holder")
    parser.add_argument(
        "--expires-minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (defaults to JWT_EXPIRATION_MINUTES)",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.username, args.expires_minutes)))
