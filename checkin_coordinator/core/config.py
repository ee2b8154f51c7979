# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "checkin-coordinator")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8010"))

    # ── Job runner ──
    CHECKIN_POLL_INTERVAL_SECONDS: int = int(
        os.getenv("CHECKIN_POLL_INTERVAL_SECONDS", "60")
    )
    TASK_WORKER_NAME: str = os.getenv("TASK_WORKER_NAME", "TEAM_CHECK_IN_SERVICE")
    TASK_TAGS: list[str] = os.getenv(
        "TASK_TAGS", "queue,repeat,team_coordinator"
    ).split(",")
    TASK_REGISTRATION_RETRIES: int = int(os.getenv("TASK_REGISTRATION_RETRIES", "10"))
    TASK_REGISTRATION_INITIAL_DELAY: float = float(
        os.getenv("TASK_REGISTRATION_INITIAL_DELAY", "1.0")
    )
    TASK_REGISTRATION_MAX_DELAY: float = float(
        os.getenv("TASK_REGISTRATION_MAX_DELAY", "30.0")
    )

    # ── Chat platform ──
    DISCORD_API_URL: str = os.getenv("DISCORD_API_URL", "https://discord.com/api/v10")
    DISCORD_BOT_TOKEN: str = os.getenv("DISCORD_BOT_TOKEN", "")
    MESSAGING_TIMEOUT: float = float(os.getenv("MESSAGING_TIMEOUT", "5.0"))

    # ── Generative text model ──
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
    MODEL_TIMEOUT: float = float(os.getenv("MODEL_TIMEOUT", "60.0"))

    # ── Reports & updates ──
    DEFAULT_REPORT_WINDOW_HOURS: int = int(os.getenv("DEFAULT_REPORT_WINDOW_HOURS", "24"))
    MAX_UPDATE_TEXT_LENGTH: int = int(os.getenv("MAX_UPDATE_TEXT_LENGTH", "4000"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
