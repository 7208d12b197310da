"""Application configuration via pydantic-settings."""

from functools import lru_cache

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from roster_watch.errors import ConfigError

# Environments where per-attempt fetch logging is shown at INFO
VERBOSE_ENVIRONMENTS = frozenset({"local", "dev", "development"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Settings
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "local"
    log_level: str = "INFO"

    # CORS - comma-separated origins (env var: CORS_ORIGINS)
    cors_origins: str = "*"

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Upstream sources behind the proxy endpoints
    players_api_url: str = ""
    metrics_api_url: str = ""
    shifts_csv_url: str = ""
    airtable_pat: str = ""
    airtable_base_id: str = ""
    airtable_table: str = "Players"
    upstream_timeout_ms: int = 10_000

    # Shift endpoint access guard
    protect_shifts: bool = True
    api_secret_token: str = ""
    allowed_domains: str = "localhost:3000,localhost:5173,localhost:8000,127.0.0.1,127.0.0.1:8000"
    deployment_url: str = ""

    @computed_field
    @property
    def allowed_domains_list(self) -> list[str]:
        """Allowed referer/origin hosts, including the deployment host when set."""
        domains = [d.strip() for d in self.allowed_domains.split(",") if d.strip()]
        if self.deployment_url:
            domains.insert(0, self.deployment_url.strip())
        return domains

    # Dashboard core
    dashboard_enabled: bool = True
    dashboard_players_url: str = "http://127.0.0.1:8000/api/players"
    dashboard_metrics_url: str = "http://127.0.0.1:8000/api/metrics"
    dashboard_shifts_url: str = "http://127.0.0.1:8000/api/shifts"
    refresh_interval_seconds: int = 30
    fetch_timeout_ms: int = 6000
    fetch_max_retries: int = 3
    shift_cache_ttl_ms: int = 60_000
    shift_header_rows: int = 6

    @property
    def verbose_fetch_logging(self) -> bool:
        """Whether fetch attempts are logged at INFO."""
        return self.environment.strip().lower() in VERBOSE_ENVIRONMENTS

    def require_dashboard_urls(self) -> None:
        """Raise ConfigError when a dashboard endpoint is not configured."""
        missing = [
            name
            for name in ("dashboard_players_url", "dashboard_metrics_url", "dashboard_shifts_url")
            if not getattr(self, name).strip()
        ]
        if missing:
            raise ConfigError(f"Missing dashboard endpoint configuration: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
