"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No playback logic
- No behavioral constants (see constants.py for defaults)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    DEFAULT_PAUSE_MULTIPLIER,
    RECENT_AVOID_COUNT,
    SEGMENT_SAFETY_TIMEOUT_MS,
    STALL_CHECK_INTERVAL_MS,
)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory and the player gateway.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    catalog_path: str | None
    audio_cache_dir: str | None
    audio_base_url: str

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    pause_multiplier: float
    recent_avoid_count: int
    stall_check_interval_ms: int
    segment_safety_timeout_ms: int

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str
    port: int

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable cannot be parsed.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            catalog_path=os.environ.get("CATALOG_PATH"),
            audio_cache_dir=os.environ.get("AUDIO_CACHE_DIR"),
            audio_base_url=os.environ.get("AUDIO_BASE_URL", "/api/audio"),

            pause_multiplier=float(
                os.environ.get("PAUSE_MULTIPLIER", DEFAULT_PAUSE_MULTIPLIER)
            ),
            recent_avoid_count=int(
                os.environ.get("RECENT_AVOID_COUNT", RECENT_AVOID_COUNT)
            ),
            stall_check_interval_ms=int(
                os.environ.get("STALL_CHECK_INTERVAL_MS", STALL_CHECK_INTERVAL_MS)
            ),
            segment_safety_timeout_ms=int(
                os.environ.get("SEGMENT_SAFETY_TIMEOUT_MS", SEGMENT_SAFETY_TIMEOUT_MS)
            ),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "8000")),
        )
