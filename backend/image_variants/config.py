"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = "image-variant-service"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"
    enable_structured_logging: bool = True

    # CORS
    cors_origins: str = "*"

    # Upload validation
    supported_image_extensions: str = "jpg,jpeg,png,gif,bmp,webp"
    max_image_size_bytes: int = 10 * 1024 * 1024

    # Variants
    thumbnail_height: int = 160
    single_flight_enabled: bool = True

    # Object store
    storage_backend: str = "redis"  # redis | memory
    public_base_url: str = ""

    # Redis
    redis_url: str = "redis://localhost:6379/0"
    redis_namespace: str = "imgvar"
    redis_max_connections: int = 20
    redis_socket_timeout: float = 5.0

    # Transfers
    upload_chunk_size_bytes: int = 4 * 1024 * 1024
    upload_max_concurrency: int = 4
    spool_max_memory_bytes: int = 1024 * 1024
    request_timeout_seconds: float = 30.0

    @property
    def supported_extensions_list(self) -> list[str]:
        """Parse allowed extensions from comma-separated string."""
        return [
            ext.strip().lstrip(".").lower()
            for ext in self.supported_image_extensions.split(",")
            if ext.strip()
        ]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
