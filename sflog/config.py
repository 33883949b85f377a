"""Client configuration management."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from project-level .env if available
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


class Settings:
    """Client settings loaded from environment variables."""

    # Salesforce org
    instance_url: str = os.getenv("SF_INSTANCE_URL", "")
    access_token: str = os.getenv("SF_ACCESS_TOKEN", "")
    api_version: str = os.getenv("SF_API_VERSION", "60.0")

    # OAuth refresh-token grant
    login_url: str = os.getenv("SF_LOGIN_URL", "https://login.salesforce.com")
    client_id: str = os.getenv("SF_CLIENT_ID", "")
    client_secret: str = os.getenv("SF_CLIENT_SECRET", "")
    refresh_token: str = os.getenv("SF_REFRESH_TOKEN", "")

    # Transport
    http_timeout: float = float(os.getenv("SF_HTTP_TIMEOUT", "30"))
    deploy_poll_interval: float = float(os.getenv("SF_DEPLOY_POLL_INTERVAL", "2"))
    deploy_timeout: float = float(os.getenv("SF_DEPLOY_TIMEOUT", "600"))

    # Logger defaults
    log_echo: bool = os.getenv("LOG_ECHO", "False") == "True"
    log_system: str = os.getenv("LOG_SYSTEM", "")
    log_user: str = os.getenv("LOG_USER", "")

    # Library diagnostics
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")

    @property
    def can_refresh(self) -> bool:
        """Check if the refresh-token grant is configured."""
        return bool(self.client_id and self.refresh_token)


# Global settings instance
settings = Settings()
