"""Application configuration."""
import os
from dataclasses import dataclass


@dataclass
class DocumentServiceConfig:
    """Gateway serving the services' Swagger documents."""

    base_url: str = "http://localhost:8080"
    api_key: str = ""
    timeout: int = 30

    @classmethod
    def from_env(cls) -> "DocumentServiceConfig":
        """Load config from environment variables."""
        return cls(
            base_url=os.getenv("APIDOC_GATEWAY_URL", "http://localhost:8080"),
            api_key=os.getenv("APIDOC_API_KEY", ""),
            timeout=int(os.getenv("APIDOC_TIMEOUT", "30")),
        )


@dataclass
class CacheConfig:
    """Cache-aside settings for documentation trees and path details."""

    backend: str = "memory"  # "memory" or "file"
    cache_dir: str = "./.cache/apidoc"
    tree_ttl_days: int = 10

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Load config from environment variables."""
        return cls(
            backend=os.getenv("APIDOC_CACHE_BACKEND", "memory"),
            cache_dir=os.getenv("APIDOC_CACHE_DIR", "./.cache/apidoc"),
            tree_ttl_days=int(os.getenv("APIDOC_TREE_TTL_DAYS", "10")),
        )


@dataclass
class AppConfig:
    """Application configuration."""

    counters_dir: str = "./counters"
    log_level: str = "WARNING"
    # Operation field carrying the permission JSON blob
    extra_data_field: str = "description"
    documents: DocumentServiceConfig = None
    cache: CacheConfig = None

    def __post_init__(self):
        """Fill in default sub-configs."""
        if self.documents is None:
            self.documents = DocumentServiceConfig.from_env()
        if self.cache is None:
            self.cache = CacheConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            counters_dir=os.getenv("APIDOC_COUNTERS_DIR", "./counters"),
            log_level=os.getenv("APIDOC_LOG_LEVEL", "WARNING"),
            extra_data_field=os.getenv("APIDOC_EXTRA_DATA_FIELD", "description"),
            documents=DocumentServiceConfig.from_env(),
            cache=CacheConfig.from_env(),
        )


# Global instance
app_config = AppConfig.from_env()
