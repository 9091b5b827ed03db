"""Configuration management using pydantic-settings."""
from pydantic_settings import BaseSettings


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; CrOS x86_64 14541.0.0) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream (YouTube innertube) configuration
    youtube_base_url: str = "https://www.youtube.com"
    youtube_lang: str = "ja"
    youtube_location: str = "JP"
    # Used when the bootstrap page does not advertise a client version
    youtube_client_version: str = "2.20251212.01.00"
    user_agent: str = DEFAULT_USER_AGENT

    # Timeouts
    request_timeout_seconds: float = 10.0
    client_init_timeout_seconds: float = 30.0

    # Thumbnail cache settings
    thumbnail_cache_max_entries: int = 2000
    thumbnail_cache_ttl_seconds: int = 43200  # 12 hours
    thumbnail_workers: int = 8

    # Related video pagination
    related_page_delay_seconds: float = 0.2
    max_related_depth: int = 10

    # HTTP layer
    response_max_age_seconds: int = 3600
    warm_client_on_startup: bool = True

    # Logging verbosity, fixed at startup
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
