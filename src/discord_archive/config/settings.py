import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class Settings:
    def __init__(
        self,
        elasticsearch_cloud_id: Optional[str] = None,
        elasticsearch_username: Optional[str] = None,
        elasticsearch_password: Optional[str] = None,
        discord_bot_token: Optional[str] = None,
    ):
        self.elasticsearch_cloud_id = elasticsearch_cloud_id or os.getenv("ELASTICSEARCH_CLOUD_ID")
        self.elasticsearch_username = elasticsearch_username or os.getenv("ELASTICSEARCH_USERNAME")
        self.elasticsearch_password = elasticsearch_password or os.getenv("ELASTICSEARCH_PASSWORD")
        self.discord_bot_token = discord_bot_token or os.getenv("DISCORD_BOT_TOKEN")
        self.allowed_origins = self._parse_list(os.getenv("ALLOWED_ORIGINS", ""))
        self.api_host = os.getenv("API_HOST", "0.0.0.0")
        self.api_port = int(os.getenv("API_PORT", "8000"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.discord_api_timeout = float(os.getenv("DISCORD_API_TIMEOUT", "10"))

    def _parse_list(self, list_string: str) -> List[str]:
        """Parse comma-separated string list"""
        if not list_string:
            return []
        return [item.strip() for item in list_string.split(",") if item.strip()]

    @property
    def has_search_credentials(self) -> bool:
        return bool(self.elasticsearch_cloud_id and self.elasticsearch_username and self.elasticsearch_password)

# Global settings instance
settings = Settings()
