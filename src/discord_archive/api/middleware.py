from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import time
from typing import Optional

from ..config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

class MiddlewareSetup:
    def __init__(self, app, config: Optional[Settings] = None):
        self.app = app
        self.config = config or default_settings
        self._setup_cors()
        self._setup_request_logging()

    def _setup_cors(self):
        """Setup CORS middleware with optional origin restrictions"""
        allowed_origins = self.config.allowed_origins if self.config.allowed_origins else ["*"]

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    def _setup_request_logging(self):
        """Log every API request with its status and duration"""
        @self.app.middleware("http")
        async def request_logging_middleware(request: Request, call_next):
            start = time.perf_counter()
            response = await call_next(request)
            if request.url.path.startswith("/api/"):
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger.info(f"{request.method} {request.url.path} {response.status_code} in {elapsed_ms:.0f}ms")
            return response

def extract_bot_token(authorization: Optional[str]) -> Optional[str]:
    """Pull a bot token out of an 'Authorization: Bot <token>' header"""
    if not authorization:
        return None
    # Any header without the Bot scheme is used verbatim as the token
    scheme, _, credential = authorization.strip().partition(" ")
    token = credential.strip() if scheme == "Bot" else authorization.strip()
    return token or None
