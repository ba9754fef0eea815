from __future__ import annotations

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[1]
ENV_FILE = REPO_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # human-readable console logs instead of JSON
    DEBUG: bool = False

    # persistence directory (defaults to ~/.eventfinder-data)
    DATA_DIR: Path | None = None
    DATABASE_URL: str | None = None

    # CORS allow origins (comma-separated). Default empty (no cross-origin).
    CORS_ALLOW_ORIGINS: str = ""

    # "today" for relative dates and recency is computed in this zone
    TIMEZONE: str = "Europe/Lisbon"

    # Prompt parsing
    KNOWN_CITIES: str = "lisboa,porto,coimbra,faro,braga,aveiro"

    # Ranking path: window = max(limit * multiplier, minimum)
    RANK_DEFAULT_LIMIT: int = 10
    RANK_CANDIDATE_MULTIPLIER: int = 10
    RANK_CANDIDATE_MIN: int = 100

    # Scheduling path
    SELECT_DEFAULT_LIMIT: int = 5
    SELECT_CANDIDATE_CAP: int = 200

    # Listing and keyword search
    LIST_PAGE_SIZE: int = 12

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def allow_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if s == "*":
            return ["*"]
        if s == "":
            return []
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def known_cities(self) -> list[str]:
        return [part.strip() for part in self.KNOWN_CITIES.split(",") if part.strip()]

    @property
    def data_dir(self) -> Path:
        # Blank DATA_DIR values count as unset instead of resolving to the cwd.
        def _materialize(path: Path) -> Path:
            path.mkdir(parents=True, exist_ok=True)
            return path

        raw_env = os.getenv("DATA_DIR")
        if raw_env is not None:
            trimmed = raw_env.strip()
            if trimmed:
                return _materialize(Path(trimmed).expanduser().resolve())
            return _materialize(Path.home() / ".eventfinder-data")

        if self.DATA_DIR is not None:
            candidate = Path(self.DATA_DIR).expanduser()
            candidate_str = str(candidate).strip()
            if candidate_str and candidate_str not in {".", "./", ".\\"}:
                return _materialize(candidate.resolve())
        return _materialize(Path.home() / ".eventfinder-data")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        default_path = self.data_dir / "eventfinder.db"
        return f"sqlite:///{default_path}"

    @property
    def async_database_url(self) -> str:
        return to_async_url(self.database_url)


def to_async_url(url: str) -> str:
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


settings = Settings()
