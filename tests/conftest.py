from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from _fakes import DiscordUsersApi, FakeElasticsearch, make_message
from discord_archive.config.settings import Settings
from discord_archive.identity.cache import IdentityCache
from discord_archive.identity.resolver import IdentityResolver
from discord_archive.search.index import ArchiveIndex


@pytest.fixture
def config() -> Settings:
    return Settings(
        elasticsearch_cloud_id="archive:ZXhhbXBsZS5jb20kYWJjJGRlZg==",
        elasticsearch_username="elastic",
        elasticsearch_password="secret",
    )


@pytest.fixture
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch(documents=[make_message(i) for i in range(120)])


@pytest.fixture
def archive_index(fake_es: FakeElasticsearch, config: Settings) -> ArchiveIndex:
    return ArchiveIndex(client=fake_es, config=config)


@pytest.fixture
def identity_cache() -> IdentityCache:
    return IdentityCache()


@pytest.fixture
def discord_api() -> DiscordUsersApi:
    return DiscordUsersApi(
        users={
            "1234567890123456": {"id": "1234567890123456", "username": "alice", "avatar": "a1b2c3"},
            "2222222222222222": {"id": "2222222222222222", "username": "bob", "avatar": None},
            "3333333333333333": {"id": "3333333333333333", "username": "carol", "avatar": "ffee"},
        },
    )


@pytest.fixture
async def resolver(
    identity_cache: IdentityCache,
    discord_api: DiscordUsersApi,
) -> AsyncIterator[IdentityResolver]:
    async with discord_api.client() as client:
        yield IdentityResolver(identity_cache, client, default_token="bot-token")
