"""Configuration management for Guest Scout."""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def _get_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.getenv(key, default)


class Config:
    """Application configuration loaded from environment variables."""

    # --- API Keys ---
    GOOGLE_API_KEY: str = _get_str("GOOGLE_API_KEY")
    GOOGLE_SEARCH_ENGINE_ID: str = _get_str("GOOGLE_SEARCH_ENGINE_ID")
    GROQ_API_KEY: str = _get_str("GROQ_API_KEY")

    # --- LLM ---
    GROQ_MODEL: str = _get_str("GROQ_MODEL", "mixtral-8x7b-32768")
    GROQ_BASE_URL: str = _get_str("GROQ_BASE_URL", "https://api.groq.com/openai/v1")

    # --- Logging ---
    LOG_LEVEL: str = _get_str("LOG_LEVEL", "INFO")

    # --- Batch Processing ---
    CELEBRITY_BATCH_SIZE: int = _get_int("CELEBRITY_BATCH_SIZE", 5)
    BATCH_DELAY_SECONDS: float = _get_float("BATCH_DELAY_SECONDS", 1.0)
    CELEBRITY_CHECK_TIMEOUT_SECONDS: float = _get_float(
        "CELEBRITY_CHECK_TIMEOUT_SECONDS", 10.0
    )
    HTTP_TIMEOUT_SECONDS: float = _get_float("HTTP_TIMEOUT_SECONDS", 10.0)

    # --- Caching ---
    LOOKUP_CACHE_TTL_SECONDS: float = _get_float("LOOKUP_CACHE_TTL_SECONDS", 3600.0)

    # --- Celebrity Heuristics ---
    REFERENCE_WORDCOUNT_THRESHOLD: int = _get_int("REFERENCE_WORDCOUNT_THRESHOLD", 2000)
    BUSINESS_FOLLOWER_THRESHOLD: int = _get_int("BUSINESS_FOLLOWER_THRESHOLD", 500_000)
    GENERAL_FOLLOWER_THRESHOLD: int = _get_int("GENERAL_FOLLOWER_THRESHOLD", 2_000_000)
    NEWS_RESULTS_THRESHOLD: int = _get_int("NEWS_RESULTS_THRESHOLD", 1000)
    NEWS_QUALITY_SOURCE_MIN: int = _get_int("NEWS_QUALITY_SOURCE_MIN", 3)

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.
        Returns a list of error messages (empty if valid).
        """
        errors = []

        if not cls.GOOGLE_API_KEY:
            errors.append("GOOGLE_API_KEY is required")
        elif not cls.GOOGLE_API_KEY.startswith("AIza"):
            errors.append("GOOGLE_API_KEY has an invalid format")

        if not cls.GOOGLE_SEARCH_ENGINE_ID:
            errors.append("GOOGLE_SEARCH_ENGINE_ID is required")
        elif len(cls.GOOGLE_SEARCH_ENGINE_ID.strip()) < 10:
            errors.append("GOOGLE_SEARCH_ENGINE_ID has an invalid format")

        if cls.CELEBRITY_BATCH_SIZE < 1:
            errors.append("CELEBRITY_BATCH_SIZE must be at least 1")

        if cls.BATCH_DELAY_SECONDS < 0:
            errors.append("BATCH_DELAY_SECONDS cannot be negative")

        if cls.CELEBRITY_CHECK_TIMEOUT_SECONDS <= 0:
            errors.append("CELEBRITY_CHECK_TIMEOUT_SECONDS must be positive")

        if cls.BUSINESS_FOLLOWER_THRESHOLD > cls.GENERAL_FOLLOWER_THRESHOLD:
            errors.append(
                "BUSINESS_FOLLOWER_THRESHOLD should not exceed GENERAL_FOLLOWER_THRESHOLD"
            )

        return errors

    @classmethod
    def print_config(cls) -> None:
        """Print current configuration (masking sensitive values)."""
        print("=== Guest Scout Configuration ===")
        print(f"  GOOGLE_API_KEY: {'*' * 8 if cls.GOOGLE_API_KEY else 'NOT SET'}")
        print(
            f"  GOOGLE_SEARCH_ENGINE_ID: {'*' * 8 if cls.GOOGLE_SEARCH_ENGINE_ID else 'NOT SET'}"
        )
        print(f"  GROQ_API_KEY: {'*' * 8 if cls.GROQ_API_KEY else 'NOT SET'}")
        print(f"  GROQ_MODEL: {cls.GROQ_MODEL}")
        print(f"  LOG_LEVEL: {cls.LOG_LEVEL}")
        print(f"  CELEBRITY_BATCH_SIZE: {cls.CELEBRITY_BATCH_SIZE}")
        print(f"  BATCH_DELAY_SECONDS: {cls.BATCH_DELAY_SECONDS}")
        print(f"  CELEBRITY_CHECK_TIMEOUT_SECONDS: {cls.CELEBRITY_CHECK_TIMEOUT_SECONDS}")
        print(f"  LOOKUP_CACHE_TTL_SECONDS: {cls.LOOKUP_CACHE_TTL_SECONDS}")
        print(f"  REFERENCE_WORDCOUNT_THRESHOLD: {cls.REFERENCE_WORDCOUNT_THRESHOLD}")
        print(f"  BUSINESS_FOLLOWER_THRESHOLD: {cls.BUSINESS_FOLLOWER_THRESHOLD}")
        print(f"  GENERAL_FOLLOWER_THRESHOLD: {cls.GENERAL_FOLLOWER_THRESHOLD}")
        print(f"  NEWS_RESULTS_THRESHOLD: {cls.NEWS_RESULTS_THRESHOLD}")
        print("=================================")
