"""Configuration for the site search index using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Build and query settings loaded from ``SITE_SEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SITE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Field weights
    title_weight: float = Field(default=10.0, gt=0, description="Score multiplier for title matches")
    tags_weight: float = Field(default=5.0, gt=0, description="Score multiplier for tag matches")
    categories_weight: float = Field(default=5.0, gt=0, description="Score multiplier for category matches")
    excerpt_weight: float = Field(default=1.0, gt=0, description="Score multiplier for excerpt matches")

    # Analysis
    stemming: bool = Field(default=True, description="Strip common English suffixes from terms")

    # Build
    workers: int = Field(default=1, ge=1, description="Threads used to tokenize documents")

    # Query
    snippet_length: int = Field(default=160, ge=20, description="Maximum snippet length for search results")
    default_limit: int = Field(default=10, ge=1, description="Number of results returned when no limit is given")

    log_level: str = Field(default="INFO", description="Logging level for the command line tool")

    def field_weights(self) -> dict[str, float]:
        """Return the weight of each indexed field."""
        return {
            "title": self.title_weight,
            "tags": self.tags_weight,
            "categories": self.categories_weight,
            "excerpt": self.excerpt_weight,
        }
