"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Gyanu"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Database
    # If database_url_override is set (e.g., for Supabase with SSL), it takes precedence
    database_url_override: str | None = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "gyanu"
    postgres_password: str = ""
    postgres_db: str = "gyanu"

    @computed_field
    @property
    def database_url(self) -> str:
        """Get async database URL. Uses override if provided, otherwise constructs from parts."""
        if self.database_url_override:
            url = self.database_url_override
            # Replace scheme for async driver
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            # asyncpg doesn't accept query params via URL
            if url.startswith("postgresql+asyncpg://") and "?" in url:
                url = url.split("?")[0]
            return url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @computed_field
    @property
    def database_requires_ssl(self) -> bool:
        """Check if the database connection requires SSL."""
        if self.database_url_override:
            return "sslmode=require" in self.database_url_override or "ssl=require" in self.database_url_override
        return False

    # Auth / JWT
    jwt_secret_key: str  # Required - no default, must be set in .env
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Page routing
    login_path: str = "/login"
    landing_path: str = "/dashboard"
    # Ordered prefix -> minimum role; first declared wins on equal-length prefixes
    protected_routes: list[tuple[str, str]] = [
        ("/admin", "admin"),
        ("/teacher", "teacher"),
        ("/dashboard", "student"),
        ("/learn", "student"),
        ("/profile", "student"),
    ]
    auth_redirect_routes: list[str] = ["/login"]

    # Embeddings (OpenAI-compatible endpoint)
    embedding_endpoint: str = "https://ollama.com/v1"
    embedding_api_key: str = ""
    embedding_model: str = "nomic-embed-text"
    embedding_dimensions: int = 768
    embedding_timeout_seconds: float = 30.0

    # Chunking (characters)
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Retrieval
    retrieval_top_k: int = 5
    retrieval_context_max_chars: int = 8000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
