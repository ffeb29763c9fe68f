"""
Configuration management for the Ingredient Catalog
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Ingredient Catalog"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./ingredient_catalog.db"

    # Security
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Catalog
    NUTS_DIET_NAME: str = "Contains nuts"
    DEFAULT_AGE_GROUP: str = "adult"
    LISTENER_TIMEOUT_SECONDS: float = 10.0

    # Pagination
    DEFAULT_PER_PAGE: int = 15
    MAX_PER_PAGE: int = 100

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
