"""Application settings with environment variable support."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


# Compute base_dir at module level
_BASE_DIR = Path(__file__).parent.parent.parent.resolve()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HEX_",  # HEX_DATABASE_URL, HEX_LIBRARY_DIR, etc.
    )

    # Paths - computed from base_dir
    base_dir: Path = _BASE_DIR
    data_dir: Path = _BASE_DIR / "data"
    library_dir: Path = _BASE_DIR / "library"

    # Catalog database
    database_url: str = f"sqlite:///{_BASE_DIR / 'data' / 'hex_index.db'}"

    # Feed fetching
    fetch_timeout_seconds: int = 30
    fetch_delay_seconds: float = 2.0
    fetch_max_retries: int = 3
    feed_cache_ttl_seconds: int = 15 * 60
    user_agent: str = "hex-index/1.0 (Personal Library)"

    # Ingestion
    ingest_delay_seconds: float = 1.0
    min_read_time_minutes: int = 10
    text_only: bool = True  # Skip audio/video posts even if they carry transcripts

    # Discovery
    discovery_delay_seconds: float = 2.0
    min_quality_score: int = 50

    # Features
    enable_enrichment: bool = True


settings = Settings()
