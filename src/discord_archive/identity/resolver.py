"""
Read-through resolution of Discord user ids to display identities.
Lookup failures are absorbed into a synthetic fallback identity.
"""
import asyncio
import logging
import re
from typing import Any, Dict, Iterable, Optional

import httpx

from ..models.archive_models import Identity, Message
from .cache import IdentityCache

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"
AVATAR_URL_TEMPLATE = "https://cdn.discordapp.com/avatars/{user_id}/{avatar}.png"

# Discord user ids are decimal snowflakes
SNOWFLAKE_PATTERN = re.compile(r"[0-9]{1,20}")


def is_snowflake(user_id: str) -> bool:
    return bool(SNOWFLAKE_PATTERN.fullmatch(user_id))


def fallback_identity(user_id: str) -> Identity:
    """Synthetic identity used when the real one cannot be fetched"""
    return Identity(id=user_id, username=f"User {user_id[-4:]}", avatar=None)


def identity_from_record(record: Any) -> Identity:
    """Normalize a Discord user object; raises ValueError if it is malformed"""
    if not isinstance(record, dict):
        raise ValueError(f"Expected a user object, got {type(record).__name__}")

    user_id = record.get("id")
    username = record.get("username")
    if not user_id or not isinstance(username, str) or not username:
        raise ValueError("User object is missing id or username")

    user_id = str(user_id)
    avatar = record.get("avatar")
    return Identity(
        id=user_id,
        username=username,
        avatar=AVATAR_URL_TEMPLATE.format(user_id=user_id, avatar=avatar) if avatar else None,
    )


class IdentityResolver:
    def __init__(self, cache: IdentityCache, http_client: httpx.AsyncClient,
                 default_token: Optional[str] = None, api_base: str = DISCORD_API_BASE):
        self.cache = cache
        self.http_client = http_client
        self.default_token = default_token
        self.api_base = api_base.rstrip("/")

    async def resolve(self, user_id: str, token: Optional[str] = None) -> Identity:
        """Resolve a user id to an Identity. Never raises for lookup failures."""
        cached = self.cache.get(user_id)
        if cached is not None:
            return cached

        token = token or self.default_token
        if not token:
            # No credential is not a transient condition; skip the remote call
            return self.cache.set(user_id, fallback_identity(user_id))

        if not is_snowflake(user_id):
            logger.warning(f"Not looking up malformed user id {user_id!r}")
            return self.cache.set(user_id, fallback_identity(user_id))

        try:
            identity = await self._fetch_identity(user_id, token)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error(f"Error fetching user {user_id}: {e}")
            identity = fallback_identity(user_id)

        return self.cache.set(user_id, identity)

    async def _fetch_identity(self, user_id: str, token: str) -> Identity:
        response = await self.http_client.get(
            f"{self.api_base}/users/{user_id}",
            headers={"Authorization": f"Bot {token}"},
        )
        if not response.is_success:
            raise ValueError(f"Discord API error: {response.status_code}")
        return identity_from_record(response.json())

    async def resolve_many(self, user_ids: Iterable[str], token: Optional[str] = None) -> Dict[str, Identity]:
        """Resolve every distinct id concurrently, one lookup per id"""
        distinct_ids = list(dict.fromkeys(user_ids))
        identities = await asyncio.gather(
            *(self.resolve(user_id, token) for user_id in distinct_ids)
        )
        return dict(zip(distinct_ids, identities))

    async def resolve_messages(self, messages: Iterable[Message], token: Optional[str] = None) -> Dict[str, Identity]:
        """Identities for the authors of a page of messages"""
        return await self.resolve_many(
            (message.author_id for message in messages if message.author_id), token
        )
