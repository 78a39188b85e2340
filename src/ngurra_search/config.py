"""
Configuration module using pydantic-settings.

All configuration loaded from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    
    Load from .env file or environment variables.
    """
    
    # Elasticsearch connection
    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_api_key: Optional[str] = None
    elasticsearch_username: Optional[str] = None
    elasticsearch_password: Optional[str] = None
    elasticsearch_ssl: bool = False
    elasticsearch_verify_certs: bool = True
    
    # Transport behaviour
    request_timeout: float = 30.0  # Seconds per engine call
    max_retries: int = 3  # Transport-level retries per call
    probe_timeout: float = 5.0  # Health probe timeout during connect
    probe_attempts: int = 2
    reconnect_interval: float = 5.0  # Minimum seconds between re-probes
    
    # Index layout
    index_prefix: str = "ngurra"
    index_shards: int = 1
    index_replicas: int = 1
    
    # Writes
    bulk_batch_size: int = 500
    
    # Queries
    default_page_size: int = 10
    max_page_size: int = 100
    suggest_min_prefix: int = 2
    highlight_fragment_size: int = 150
    
    # Record store (PostgreSQL)
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "ngurra"
    db_user: str = "ngurra"
    db_password: str = ""
    db_pool_min_conn: int = 1
    db_pool_max_conn: int = 10
    
    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    engine_log_level: str = "WARNING"  # elasticsearch / elastic_transport client loggers
    
    # Performance
    max_workers: int = 4  # Concurrent content types during resync_all
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    def physical_index_name(self, key: str) -> str:
        """Physical index name for a content type key"""
        return f"{self.index_prefix}_{key}"
    
    def db_params(self) -> dict:
        """Connection parameters for psycopg2"""
        return dict(
            host=self.db_host,
            port=self.db_port,
            dbname=self.db_name,
            user=self.db_user,
            password=self.db_password,
        )


# Global settings instance
settings = Settings()
