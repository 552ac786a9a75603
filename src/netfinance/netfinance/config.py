"""Configuration for the network finance service."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NETFINANCE_",
        env_file=".env",
        case_sensitive=False,
    )

    # Service
    host: str = "0.0.0.0"
    port: int = 8090
    debug: bool = False

    # Observium API
    observium_api_url: str = "http://localhost/api/v0"
    observium_username: str = ""
    observium_password: str = ""
    scoped_timeout_seconds: float = 15.0
    unscoped_timeout_seconds: float = 25.0
    scoped_page_size: int = 50
    unscoped_page_size: int = 200

    # Pipeline
    data_source: str = "live_scoped"
    currency: str = "USD"
    port_cost_per_mbps: float = 8.0

    # Claude
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 1024


settings = Settings()
