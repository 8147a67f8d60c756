"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
SPOOL_DIR = DATA_DIR / "spool"


def _env_bool(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    # Supabase
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # Scraper
    CONCURRENCY: int = int(os.getenv("CONCURRENCY", "1"))
    NAV_TIMEOUT_MS: int = int(os.getenv("NAV_TIMEOUT_MS", "30000"))
    NAV_RETRIES: int = int(os.getenv("NAV_RETRIES", "3"))
    REQUEST_DELAY: float = float(os.getenv("REQUEST_DELAY", "1.5"))
    DETAIL_TIMEOUT: float = float(os.getenv("DETAIL_TIMEOUT", "45"))
    ENDING_SOON_HOURS: int = int(os.getenv("ENDING_SOON_HOURS", "48"))
    TIMEZONE: str = os.getenv("TIMEZONE", "Europe/London")

    # Job timeouts (seconds, per source)
    FULL_JOB_TIMEOUT: float = float(os.getenv("FULL_JOB_TIMEOUT", "1800"))
    QUICK_JOB_TIMEOUT: float = float(os.getenv("QUICK_JOB_TIMEOUT", "300"))
    CLEANUP_JOB_TIMEOUT: float = float(os.getenv("CLEANUP_JOB_TIMEOUT", "120"))

    # Browser
    HEADLESS: bool = _env_bool("HEADLESS", "true")
    CLOSE_TIMEOUT: float = float(os.getenv("CLOSE_TIMEOUT", "5"))
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API
    API_KEY: str | None = os.getenv("API_KEY")
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    @classmethod
    def validate(cls, require_supabase: bool = True) -> None:
        """Validate required configuration."""
        errors = []
        if require_supabase:
            if not cls.SUPABASE_URL:
                errors.append("SUPABASE_URL is required")
            if not cls.SUPABASE_SERVICE_ROLE_KEY:
                errors.append("SUPABASE_SERVICE_ROLE_KEY is required")
        if cls.CONCURRENCY < 1:
            errors.append("CONCURRENCY must be at least 1")
        if cls.NAV_RETRIES < 1:
            errors.append("NAV_RETRIES must be at least 1")
        if not (cls.FULL_JOB_TIMEOUT > cls.QUICK_JOB_TIMEOUT > cls.CLEANUP_JOB_TIMEOUT > 0):
            errors.append(
                "Job timeouts must satisfy FULL_JOB_TIMEOUT > QUICK_JOB_TIMEOUT > CLEANUP_JOB_TIMEOUT > 0"
            )
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
