"""
Elasticsearch-backed message archive.
Runs composed searches and the dashboard statistics against the sharded index set.
"""
import asyncio
import logging
from typing import Any, Mapping, Optional

from elasticsearch import AsyncElasticsearch

from ..config.settings import Settings, settings as default_settings
from ..core.exceptions import ConfigurationError, SearchError, SearchResponseError, StatisticsError
from ..models.archive_models import SearchFilter, SearchResultPage, Statistics
from .query import QueryComposer, unwrap_response

logger = logging.getLogger(__name__)

# Five shards of the archive, queried together as one corpus
ARCHIVE_INDICES = ("chunk1", "chunk2", "chunk3", "chunk4", "chunk5")


def _response_body(response: Any) -> Mapping[str, Any]:
    try:
        return unwrap_response(response)
    except SearchResponseError:
        return {}


class ArchiveIndex:
    def __init__(self, client: Optional[AsyncElasticsearch] = None, config: Optional[Settings] = None,
                 composer: Optional[QueryComposer] = None):
        config = config or default_settings
        if client is None:
            if not config.has_search_credentials:
                raise ConfigurationError("Elasticsearch credentials not configured")
            client = AsyncElasticsearch(
                cloud_id=config.elasticsearch_cloud_id,
                basic_auth=(config.elasticsearch_username, config.elasticsearch_password),
            )
        self.client = client
        self.composer = composer or QueryComposer()
        self.indices = list(ARCHIVE_INDICES)

    async def close(self):
        await self.client.close()

    async def search_messages(self, filters: SearchFilter) -> SearchResultPage:
        """Run a ranked, paginated message search"""
        request = self.composer.build_request(filters)
        try:
            response = await self.client.search(
                index=self.indices,
                query=request["query"],
                sort=request["sort"],
                from_=request["from"],
                size=request["size"],
            )
            return self.composer.interpret_response(response, filters.page)
        except SearchError as e:
            logger.error(f"Error interpreting search response: {e}")
            raise
        except Exception as e:
            logger.error(f"Error searching messages: {e}")
            raise SearchError("Failed to search messages") from e

    async def get_statistics(self) -> Statistics:
        """Total messages plus distinct author and guild counts"""
        total_messages, unique_users, unique_guilds = await asyncio.gather(
            self.get_total_messages(),
            self.get_cardinality("unique_users", "author_id"),
            self.get_cardinality("unique_guilds", "guild_id"),
        )
        return Statistics(
            total_messages=total_messages,
            unique_users=unique_users,
            unique_guilds=unique_guilds,
        )

    async def get_total_messages(self) -> int:
        try:
            response = await self.client.count(index=self.indices)
        except Exception as e:
            logger.error(f"Error counting messages: {e}")
            raise StatisticsError("Failed to fetch statistics") from e

        count = _response_body(response).get("count")
        if isinstance(count, bool) or not isinstance(count, int):
            logger.error(f"Unexpected count response format: {response!r}")
            raise StatisticsError("Invalid count response format")
        return count

    async def get_cardinality(self, name: str, field: str) -> int:
        """Distinct-value count of a field. Advisory only: failures yield 0."""
        try:
            response = await self.client.search(
                index=self.indices,
                size=0,
                aggs={name: {"cardinality": {"field": field}}},
            )
        except Exception as e:
            logger.error(f"Error in cardinality aggregation {name}: {e}")
            return 0

        aggregations = _response_body(response).get("aggregations")
        aggregation = aggregations.get(name) if isinstance(aggregations, Mapping) else None
        if not isinstance(aggregation, Mapping):
            logger.error(f"No {name} aggregation found in response")
            return 0

        value = aggregation.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.error(f"Malformed {name} aggregation value: {value!r}")
            return 0
        return int(value)
