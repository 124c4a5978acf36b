"""
SkillSphere – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "SkillSphere"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./skillgraph.db"

    # ── Mastery ──
    # Single canonical scale: integer 0-100. A skill counts as mastered at 70.
    MASTERY_THRESHOLD: int = 70
    DEFAULT_DECAY_RATE: float = 0.05
    DECAY_FLOOR: float = 0.0
    REINFORCEMENT_STEP: int = 10

    # ── Recommendations ──
    RECOMMENDATION_LIMIT: int = 10
    RECOMMENDATION_PERSIST_LIMIT: int = 5
    NEAR_UNLOCK_RATIO: float = 0.5
    ADVANCED_USER_MASTERED: int = 10

    # ── Readiness ──
    CONSISTENCY_WINDOW: int = 10


settings = Settings()
