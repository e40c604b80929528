"""
Configuration settings for ahrian
Loads environment variables and provides configuration access
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_float(name: str) -> float | None:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


class Settings:
    """Application settings loaded from environment"""

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Supabase (conversation store)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    CONVERSATIONS_TABLE: str = os.getenv("CONVERSATIONS_TABLE", "conversations")
    CONVERSATIONS_NAMESPACE: str = os.getenv("CONVERSATIONS_NAMESPACE", "ahrian_conversations")

    # Google Gemini
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    MODEL_NAME: str = os.getenv("MODEL_NAME", "gemini-2.5-flash")
    PLANNER_MODEL_NAME: str = os.getenv("PLANNER_MODEL_NAME", "gemini-2.5-pro")

    # Orchestration
    PLANNING_CYCLES: int = int(os.getenv("PLANNING_CYCLES", "1"))
    STEP_PACING_SECONDS: float = float(os.getenv("STEP_PACING_SECONDS", "5"))
    STEP_TIMEOUT_SECONDS: float | None = _optional_float("STEP_TIMEOUT_SECONDS")
    PRIOR_CONVERSATIONS_LIMIT: int = int(os.getenv("PRIOR_CONVERSATIONS_LIMIT", "5"))

    @classmethod
    def validate(cls) -> list[str]:
        """Validate required settings, returns list of missing vars"""
        missing = []
        if not cls.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY")
        # Supabase is optional, but both halves must be present together
        if bool(cls.SUPABASE_URL) != bool(cls.SUPABASE_KEY):
            missing.append("SUPABASE_KEY" if cls.SUPABASE_URL else "SUPABASE_URL")
        if cls.PLANNING_CYCLES < 1:
            missing.append("PLANNING_CYCLES (must be >= 1)")
        return missing

    @classmethod
    def use_supabase(cls) -> bool:
        return bool(cls.SUPABASE_URL and cls.SUPABASE_KEY)


settings = Settings()
