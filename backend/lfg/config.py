"""Application configuration from environment variables."""

from functools import lru_cache
from typing import List
from urllib.parse import urlsplit

from pydantic_settings import BaseSettings


PLACEHOLDER = "placeholder"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./lfg.db"

    # JWT
    jwt_secret: str = ""
    jwt_expires_minutes: int = 60 * 24 * 7  # 7 days

    # Strava
    strava_client_id: str = ""
    strava_client_secret: str = ""
    strava_redirect_uri: str = ""
    require_strava: bool = False

    # Frontend
    frontend_url: str = "http://localhost:5173"

    # App settings
    app_name: str = "LFG Cycling API"
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def strava_enabled(self) -> bool:
        """Strava features need both halves of the client credentials."""
        return all(
            value and value != PLACEHOLDER
            for value in (self.strava_client_id, self.strava_client_secret)
        )

    @property
    def resolved_strava_redirect_uri(self) -> str:
        return self.strava_redirect_uri or f"{self.frontend_url}/auth/strava/callback"

    @property
    def allowed_redirect_hosts(self) -> List[str]:
        hosts = ["localhost:5173", "localhost:3000"]
        frontend_host = urlsplit(self.frontend_url).netloc.lower()
        if frontend_host and frontend_host not in hosts:
            hosts.append(frontend_host)
        return hosts


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
