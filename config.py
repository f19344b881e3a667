"""
Application configuration using environment variables
"""
from pydantic_settings import BaseSettings
from typing import List
from dotenv import load_dotenv

# Load .env file
load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./mentoring.db"

    # App settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # ==========================================================================
    # SECURITY SETTINGS
    # ==========================================================================

    # Bearer token verification (tokens are issued by the identity service)
    JWT_SECRET: str = "dev-secret-change-in-production-min-32-chars!"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_HOURS: int = 1

    # CORS Configuration
    ALLOWED_ORIGINS: str = "*"  # Comma-separated list, e.g., "https://console.example.com"

    # ==========================================================================
    # SCRIPTS
    # ==========================================================================

    # Upper bound on Lua VM instructions per script run (0 disables the limit)
    SCRIPT_MAX_INSTRUCTIONS: int = 1_000_000

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS into a list"""
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()
