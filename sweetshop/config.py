from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Exported into os.environ before Settings is built; real environment wins
load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./sweetshop.db"

    # JWT Authentication
    SECRET_KEY: str = "change-this-in-production-secret-key-12345"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Application
    APP_NAME: str = "Sweet Shop API"
    APP_VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]  # Restrict in production

    # Password security
    BCRYPT_ROUNDS: int = 10
    MIN_PASSWORD_LENGTH: int = 6

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
