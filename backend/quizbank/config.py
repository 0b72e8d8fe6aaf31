"""
Application configuration from environment variables.
Loads .env from the backend directory so secrets are found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of quizbank/); load explicitly so values are set even when run from repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)
else:
    # Fallback: try backend/.env relative to cwd (e.g. when running from repo root)
    import os
    _cwd_env = Path(os.getcwd()) / "backend" / ".env"
    if _cwd_env.exists():
        from dotenv import load_dotenv
        load_dotenv(_cwd_env, override=False)

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local runs, postgresql for production
    database_url: str = "sqlite:///./quizbank_dev.db"

    # Environment: set ENV=production in production; used to enforce SECRET_KEY.
    env: str = ""

    # Bearer tokens are issued by the identity provider; "sub" carries its opaque user id.
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"

    # Duplicate check: keep corpus matches with similarity strictly above threshold, at most N per candidate.
    duplicate_threshold: float = 0.5
    duplicate_max_matches: int = 5

    # Upper bound on "count" for POST /quizzes/secure
    max_quiz_questions: int = 50

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:3000"

    debug: bool = False

    @field_validator("duplicate_threshold")
    @classmethod
    def _threshold_in_unit_range(cls, v: float) -> float:
        if v < 0.0 or v > 1.0:
            raise ValueError("duplicate_threshold must be between 0 and 1")
        return v

    @field_validator("duplicate_max_matches", "max_quiz_questions")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def is_production(self) -> bool:
        return (self.env or "").strip().lower() == "production"


settings = Settings()
