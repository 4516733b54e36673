"""Centralized configuration for austen-search using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BOOKS = (
    "emma",
    "lady-susan",
    "mansfield-park",
    "northanger-abbey",
    "persuasion",
    "pride-and-prejudice",
    "sense-and-sensibility",
)


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Corpus
    corpus_dir: Path = Field(default=Path("data/by-paragraph"), description="Directory of packed <book>.json files")
    books: str = Field(default=",".join(DEFAULT_BOOKS), description="Comma-separated book names to index")
    phrase_workers: int = Field(default=1, ge=1, description="Processes used to extract typeahead phrases")
    ngram_min_length: int = Field(default=1, ge=1, description="Shortest phrase (in words) in the phrase index")
    ngram_max_length: int = Field(default=3, ge=1, description="Longest phrase (in words) in the phrase index")

    # Server settings
    host: str = Field(default="127.0.0.1", description="HTTP server host")
    port: int = Field(default=5174, ge=1, le=65535, description="HTTP server port")
    cors_origins: str = Field(default="http://localhost:5173", description="Comma-separated allowed CORS origins")

    # Search
    search_top: int = Field(default=10, ge=1, description="Maximum paragraph hits per search")
    typeahead_limit: int = Field(default=10, ge=1, description="Maximum completions per typeahead request")
    fuzzy_max_distance: int = Field(
        default=0,
        ge=0,
        le=2,
        description="Edit distance allowed for single-word search-as-you-type queries",
    )
    clip_length: int = Field(default=80, ge=4, description="Length of the clipped paragraph preview")

    # Observability
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")
    otlp_endpoint: str = Field(default="", description="OTLP/HTTP span endpoint; empty disables trace export")

    @model_validator(mode="after")
    def _check_ngram_bounds(self) -> "Settings":
        if self.ngram_min_length > self.ngram_max_length:
            raise ValueError(
                f"NGRAM_MIN_LENGTH ({self.ngram_min_length}) must not exceed NGRAM_MAX_LENGTH ({self.ngram_max_length})"
            )
        return self

    def get_books(self) -> list[str]:
        """Get the list of book names to index."""
        return [book.strip() for book in self.books.split(",") if book.strip()]

    def get_cors_origins(self) -> list[str]:
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
