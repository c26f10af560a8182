"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "pulse-gateway"
    log_level: str = "INFO"

    # Market intelligence cache
    intelligence_cache_ttl_seconds: float = 600.0  # 10 minutes
    intelligence_cleanup_interval_seconds: float = 300.0  # Sweep every 5 minutes
    intelligence_cache_max_entries: int = 100

    # Simulated news provider latency (set both to 0 in tests)
    intelligence_latency_min_ms: int = 200
    intelligence_latency_max_ms: int = 800


settings = Settings()
