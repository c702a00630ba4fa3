from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from _fakes import DiscordUsersApi, FakeElasticsearch
from discord_archive.api.middleware import MiddlewareSetup, extract_bot_token
from discord_archive.api.routes import APIRoutes
from discord_archive.config.settings import Settings
from discord_archive.identity.cache import IdentityCache
from discord_archive.identity.resolver import IdentityResolver
from discord_archive.search.index import ArchiveIndex


@pytest.fixture
def api_client(
    archive_index: ArchiveIndex,
    identity_cache: IdentityCache,
    discord_api: DiscordUsersApi,
    config: Settings,
) -> TestClient:
    config.discord_bot_token = None
    app = FastAPI()
    resolver = IdentityResolver(
        identity_cache,
        httpx.AsyncClient(transport=httpx.MockTransport(discord_api)),
    )
    MiddlewareSetup(app, config)
    APIRoutes(app, archive_index, resolver, config)
    return TestClient(app)


def test_health(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_lists_indices(api_client: TestClient) -> None:
    assert api_client.get("/").json()["indices"] == ["chunk1", "chunk2", "chunk3", "chunk4", "chunk5"]


def test_search_first_page(api_client: TestClient, fake_es: FakeElasticsearch) -> None:
    response = api_client.get("/api/search", params={"content": "hello", "page": 1, "sort": "desc"})

    assert response.status_code == 200
    body = response.json()
    assert len(body["messages"]) == 50
    assert body["total"] == 120
    assert body["page"] == 1
    assert body["has_more"] is True
    assert "bool" in fake_es.search_calls[0]["query"]["bool"]["must"][0]


def test_search_defaults_and_blank_params(api_client: TestClient, fake_es: FakeElasticsearch) -> None:
    response = api_client.get("/api/search", params={"content": "", "author_id": ""})

    assert response.status_code == 200
    call = fake_es.search_calls[0]
    assert call["query"] == {"bool": {"must": [{"match_all": {}}]}}
    assert call["sort"] == [{"timestamp": {"order": "desc"}}]
    assert call["from_"] == 0


@pytest.mark.parametrize("params", [{"page": 0}, {"page": "two"}, {"sort": "sideways"}])
def test_search_rejects_invalid_filters(api_client: TestClient, params: dict) -> None:
    assert api_client.get("/api/search", params=params).status_code == 422


def test_search_failure_is_visible(api_client: TestClient, fake_es: FakeElasticsearch) -> None:
    fake_es.search_response = {"unexpected": True}

    response = api_client.get("/api/search")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to search messages"}


def test_stats(api_client: TestClient, fake_es: FakeElasticsearch) -> None:
    fake_es.aggregations = {"unique_users": {"value": 7}, "unique_guilds": {"value": 1}}

    response = api_client.get("/api/stats")

    assert response.status_code == 200
    assert response.json() == {"total_messages": 120, "unique_users": 7, "unique_guilds": 1}


def test_stats_failure(api_client: TestClient, fake_es: FakeElasticsearch) -> None:
    fake_es.count_error = ConnectionError("down")

    response = api_client.get("/api/stats")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch statistics"}


def test_user_without_any_credential_gets_fallback(api_client: TestClient, discord_api: DiscordUsersApi) -> None:
    response = api_client.get("/api/user/1234567890123456")

    assert response.status_code == 200
    assert response.json() == {"id": "1234567890123456", "username": "User 3456", "avatar": None}
    assert discord_api.calls == []


def test_user_with_header_token(api_client: TestClient, discord_api: DiscordUsersApi) -> None:
    response = api_client.get(
        "/api/user/1234567890123456",
        headers={"Authorization": "Bot header-token"},
    )

    assert response.json()["username"] == "alice"
    assert discord_api.auth_headers == ["Bot header-token"]


def test_batch_users(api_client: TestClient, discord_api: DiscordUsersApi) -> None:
    response = api_client.get(
        "/api/users",
        params={"ids": "1234567890123456,2222222222222222,1234567890123456"},
        headers={"Authorization": "Bot header-token"},
    )

    body = response.json()
    assert set(body) == {"1234567890123456", "2222222222222222"}
    assert body["2222222222222222"]["username"] == "bob"
    assert len(discord_api.calls) == 2


def test_batch_users_with_malformed_ids(api_client: TestClient, discord_api: DiscordUsersApi) -> None:
    response = api_client.get(
        "/api/users",
        params={"ids": "12\x0034,../guilds/1,@me"},
        headers={"Authorization": "Bot header-token"},
    )

    assert response.status_code == 200
    assert response.json()["@me"] == {"id": "@me", "username": "User @me", "avatar": None}
    assert len(response.json()) == 3
    assert discord_api.calls == []


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Bot abc", "abc"),
        ("abc", "abc"),
        ("Bearer abc", "Bearer abc"),
        ("Bot ", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bot_token(header: str | None, expected: str | None) -> None:
    assert extract_bot_token(header) == expected
