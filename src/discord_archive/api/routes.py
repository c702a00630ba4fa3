from fastapi import Header, Query
from fastapi.responses import JSONResponse
import logging
from typing import Dict, Optional

from ..config.settings import Settings, settings as default_settings
from ..core.exceptions import SearchError, StatisticsError
from ..models.archive_models import Identity, SearchFilter, SearchResultPage, SortOrder, Statistics
from .middleware import extract_bot_token

logger = logging.getLogger(__name__)

class APIRoutes:
    def __init__(self, app, archive_index, identity_resolver, config: Optional[Settings] = None):
        self.app = app
        self.archive_index = archive_index
        self.identity_resolver = identity_resolver
        self.config = config or default_settings
        self._setup_routes()

    def _credential(self, authorization: Optional[str]) -> Optional[str]:
        """Header token takes precedence over the configured bot token"""
        return extract_bot_token(authorization) or self.config.discord_bot_token

    def _setup_routes(self):
        @self.app.get("/", summary="Service info")
        async def root():
            return {
                "service": "Discord Archive Search",
                "status": "running",
                "indices": self.archive_index.indices,
            }

        @self.app.get("/health", summary="Health check for monitoring")
        async def health_check():
            """Simple health check that doesn't touch the index"""
            return {"status": "ok"}

        @self.app.get("/api/stats", response_model=Statistics, summary="Archive statistics")
        async def get_stats():
            try:
                return await self.archive_index.get_statistics()
            except StatisticsError as e:
                logger.error(f"Error fetching stats: {e}")
                return JSONResponse({"error": "Failed to fetch statistics"}, status_code=500)

        @self.app.get("/api/search", response_model=SearchResultPage, summary="Search messages")
        async def search_messages(
            content: Optional[str] = Query(None),
            author_id: Optional[str] = Query(None),
            channel_id: Optional[str] = Query(None),
            guild_id: Optional[str] = Query(None),
            sort: SortOrder = Query("desc"),
            page: int = Query(1, ge=1),
        ):
            filters = SearchFilter(
                content=content or None,
                author_id=author_id or None,
                channel_id=channel_id or None,
                guild_id=guild_id or None,
                sort=sort,
                page=page,
            )
            try:
                return await self.archive_index.search_messages(filters)
            except SearchError as e:
                logger.error(f"Error searching messages: {e}")
                return JSONResponse({"error": "Failed to search messages"}, status_code=500)

        @self.app.get("/api/user/{user_id}", response_model=Identity, summary="Resolve a Discord user")
        async def get_user(user_id: str, authorization: Optional[str] = Header(None)):
            return await self.identity_resolver.resolve(user_id, self._credential(authorization))

        @self.app.get("/api/users", response_model=Dict[str, Identity], summary="Resolve several Discord users")
        async def get_users(ids: str = Query(..., description="Comma-separated user ids"),
                            authorization: Optional[str] = Header(None)):
            user_ids = [user_id.strip() for user_id in ids.split(",") if user_id.strip()]
            return await self.identity_resolver.resolve_many(user_ids, self._credential(authorization))
