from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_env: str = "development"
    app_debug: bool = False

    # Gazetteer database: PostgreSQL when DATABASE_URL is set, SQLite otherwise
    database_url: str = ""
    sqlite_path: str = ""  # defaults to backend/data/gazetteer.db

    @property
    def effective_database_url(self) -> str:
        """Return the async database URL to use."""
        if self.database_url:
            url = self.database_url
            if url.startswith("postgres://"):
                url = "postgresql+asyncpg://" + url[len("postgres://"):]
            elif url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://"):]
            elif not url.startswith(("postgresql+asyncpg://", "sqlite")):
                url = "postgresql+asyncpg://" + url
            return url
        db_path = Path(self.sqlite_path) if self.sqlite_path else (
            Path(__file__).parent.parent / "data" / "gazetteer.db"
        )
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.effective_database_url.startswith("sqlite")

    # Matching
    fuzzy_char: str | None = None  # wildcard character accepted in place of any kanji
    pattern_cache_size: int = 256  # compiled town pattern sets kept per (prefecture, city)
    max_concurrency: int = 8  # addresses resolved at once by resolve_many()
    max_batch_size: int = 1000

    # Store-layer retry for transient connection errors
    gazetteer_retry_attempts: int = 3

    # CORS allowed origins (comma-separated)
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def validate_production(self) -> list[str]:
        """Check critical env vars for production. Returns list of warnings."""
        warnings = []
        if self.app_env == "production":
            if not self.database_url:
                warnings.append("DATABASE_URL is required in production")
            if self.fuzzy_char and len(self.fuzzy_char) != 1:
                warnings.append("FUZZY_CHAR must be a single character")
        return warnings


settings = Settings()
