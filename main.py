import asyncio
import logging
from fastapi import FastAPI
import httpx
import uvicorn

from discord_archive.search.index import ArchiveIndex
from discord_archive.identity.cache import IdentityCache
from discord_archive.identity.resolver import IdentityResolver
from discord_archive.api.routes import APIRoutes
from discord_archive.api.middleware import MiddlewareSetup
from discord_archive.config.settings import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

class ArchiveSearchServer:
    def __init__(self):
        self.app = FastAPI(title="Discord Archive Search", version="1.0.0")
        # Fails fast when the index credentials are missing
        self.archive_index = ArchiveIndex(config=settings)
        self.http_client = httpx.AsyncClient(timeout=settings.discord_api_timeout)
        self.identity_cache = IdentityCache()
        self.identity_resolver = IdentityResolver(
            self.identity_cache,
            self.http_client,
            default_token=settings.discord_bot_token,
        )

        # Setup middleware and routes
        self.middleware_setup = MiddlewareSetup(self.app, settings)
        self.api_routes = APIRoutes(self.app, self.archive_index, self.identity_resolver, settings)

    async def run_api_server(self):
        """Run the FastAPI server"""
        config = uvicorn.Config(
            self.app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower()
        )
        server = uvicorn.Server(config)
        await server.serve()

    async def close(self):
        await self.http_client.aclose()
        await self.archive_index.close()

    async def start(self):
        """Start the API server and release clients on shutdown"""
        logger.info("Starting Discord Archive Search...")
        try:
            await self.run_api_server()
        finally:
            await self.close()

async def main():
    server = ArchiveSearchServer()
    await server.start()

if __name__ == "__main__":
    asyncio.run(main())
