from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./invoices.db"

    # Reporting currency every cross-currency aggregate is expressed in
    reporting_currency: str = "USD"

    # Exchange rate source (Frankfurter-compatible "latest" endpoint)
    fx_api_base_url: str = "https://api.frankfurter.dev/v1"
    fx_timeout_seconds: float = 10.0
    fx_cache_ttl_seconds: int = 60  # Server-side conversions
    fx_display_cache_ttl_seconds: int = 3600  # UI-facing rate lookups

    # Duplicate detection on invoice creation
    duplicate_detection_enabled: bool = True

    # Pagination
    default_page_limit: int = 50
    max_page_limit: int = 1000

    # Tag color used when a tag is created implicitly by name
    default_tag_color: str = "#6B7280"

    # CORS Configuration
    cors_origins: str = "http://localhost:3000,http://localhost:3001"

    # Log level for the root logger configured in app.main
    log_level: Optional[str] = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields in .env file


settings = Settings()
