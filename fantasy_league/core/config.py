from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # --- GENERAL ---
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Fantasy Downhill League"
    SECRET_KEY: str

    # --- DATABASE ---
    SQLALCHEMY_DATABASE_URI: str

    # --- URLs ---
    FRONTEND_URL: str = "http://localhost:5173"

    # --- TEAM RULES ---
    TEAM_SIZE: int = 6
    BENCH_SIZE: int = 1
    GENDER_SLOTS_MALE: int = 4
    GENDER_SLOTS_FEMALE: int = 2
    BUDGET_ELITE: int = 2_000_000
    BUDGET_JUNIOR: int = 500_000
    MAX_TRANSFERS_PER_RACE: int = 2

    # --- SCORING ---
    DSQ_PENALTY: int = -10
    QUAL_BONUS_ENABLED: bool = True
    AUTO_SUB_ENABLED: bool = True

    # --- FEATURES ---
    JUNIOR_TEAM_ENABLED: bool = False

    # --- LIFECYCLE ---
    # Used when a race has no explicit lock_at
    LOCK_LEAD_HOURS: int = 48
    SCHEDULER_ENABLED: bool = True
    TICK_INTERVAL_MINUTES: int = 1
    TICK_ALLOW_PROVISIONAL: bool = False

    # ISO timestamp, freezes the engine clock (replays and manual testing)
    NOW_OVERRIDE: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
