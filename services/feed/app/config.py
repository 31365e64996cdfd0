import json
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_files() -> list[str]:
    """Load .env from repo root (when running from services/feed) then local .env."""
    base = Path(__file__).resolve().parent.parent.parent.parent  # repo root
    return [str(base / ".env"), ".env"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required: the feed cannot rank anything without its backing store
    feed_database_url: str = ""
    redis_url: str = "redis://localhost:6379/0"
    env_name: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173"

    # Timeouts (seconds)
    store_timeout_s: float = 10.0        # candidate query
    auxiliary_timeout_s: float = 6.5     # each personalisation sub-query
    request_timeout_s: float = 20.0      # whole ranking pass

    # Ranking
    candidate_limit: int = 400
    section_cap: int = 20

    # Cache TTLs (seconds)
    action_cache_ttl_s: int = 60
    feed_weight_cache_ttl_s: int = 300

    def missing_required(self) -> list[str]:
        """Names of required settings that are unset."""
        missing: list[str] = []
        if not self.feed_database_url.strip():
            missing.append("FEED_DATABASE_URL")
        return missing

    @property
    def cors_origins_list(self) -> list[str]:
        raw = self.cors_origins.strip()
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    return [str(o).strip() for o in parsed if str(o).strip()]
            except (json.JSONDecodeError, ValueError):
                pass
        return [x.strip() for x in raw.split(",") if x.strip()]
