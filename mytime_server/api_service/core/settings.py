import os
import logging
from typing import List
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
DEFAULT_DATA_DIR = PROJECT_ROOT / "database"


class Settings(BaseSettings):
    """Manages application-wide settings and configurations for the MyTime API service."""
    # API Configuration
    API_V1_STR: str = "/api"
    PROJECT_NAME: str = "MyTime API"
    VERSION: str = "1.0.0"
    HOST: str = os.getenv("MYTIME_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("MYTIME_PORT", "5001"))

    # Database Configuration
    DATA_DIR: Path = Path(os.getenv("MYTIME_DATA_DIR", str(DEFAULT_DATA_DIR)))
    DATABASE_URL: str = os.getenv("MYTIME_DATABASE_URL", "")
    DB_WRITE_MAX_RETRIES: int = int(os.getenv("MYTIME_DB_WRITE_MAX_RETRIES", "5"))

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite+aiosqlite:///{self.DATA_DIR / 'mytime.db'}"

    # Activity tracking
    WAKE_CATEGORY_NAME: str = os.getenv("MYTIME_WAKE_CATEGORY_NAME", "Obudzenie")
    SEED_DEFAULT_CATEGORIES: bool = os.getenv("MYTIME_SEED_DEFAULT_CATEGORIES", "True").lower() == "true"
    AGGREGATE_FALLBACK_MINUTES: int = int(os.getenv("MYTIME_AGGREGATE_FALLBACK_MINUTES", "60"))
    MIN_ACTIVITY_MINUTES: int = int(os.getenv("MYTIME_MIN_ACTIVITY_MINUTES", "1"))

    # CORS Configuration
    ALLOWED_ORIGINS_STR: str = os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
    )

    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """
        Returns a list of allowed origins for CORS.
        Reads from the ALLOWED_ORIGINS_STR environment variable.
        """
        if not self.ALLOWED_ORIGINS_STR:
            return []
        return [origin.strip() for origin in self.ALLOWED_ORIGINS_STR.split(",")]

    # Development settings
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    class Config:
        case_sensitive = True


settings = Settings()
