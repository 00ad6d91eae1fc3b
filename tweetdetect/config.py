"""
tweetdetect Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_BUNDLED_PATTERNS = str(Path(__file__).resolve().parent / "patterns" / "ai-patterns.json")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    ENGINE_VERSION: str = "2.0.0"

    # --- Pattern Store ---
    # A JSON file path or an http(s) URL
    PATTERNS_SOURCE: str = os.getenv("TWEETDETECT_PATTERNS_SOURCE", _BUNDLED_PATTERNS)
    PATTERNS_TIMEOUT: float = float(os.getenv("TWEETDETECT_PATTERNS_TIMEOUT", "5.0"))

    # --- Duplicate Tracker ---
    DUPLICATE_CACHE_SIZE: int = int(os.getenv("TWEETDETECT_CACHE_SIZE", "500"))
    DUPLICATE_EVICTION_BATCH: int = int(os.getenv("TWEETDETECT_EVICTION_BATCH", "100"))
    JACCARD_THRESHOLD: float = float(os.getenv("TWEETDETECT_JACCARD_THRESHOLD", "0.60"))
    BIGRAM_OVERLAP: float = float(os.getenv("TWEETDETECT_BIGRAM_OVERLAP", "0.5"))

    # --- Display ---
    # Only decides whether a detection is surfaced; never feeds back into scoring.
    CONFIDENCE_THRESHOLD: float = float(
        os.getenv("TWEETDETECT_CONFIDENCE_THRESHOLD", "0.6")
    )
    SKIP_VERIFIED: bool = _env_bool("TWEETDETECT_SKIP_VERIFIED")
    DETECTION_LOG_SIZE: int = int(os.getenv("TWEETDETECT_DETECTION_LOG_SIZE", "100"))

    # --- Server ---
    HOST: str = os.getenv("TWEETDETECT_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("TWEETDETECT_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("TWEETDETECT_CORS_ORIGINS", "*")


settings = Settings()
