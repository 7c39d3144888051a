"""Storefront Configuration"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Storefront"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Cart service
    cart_service_base_url: str = "http://localhost:8001"
    cart_service_timeout: float = 30.0

    # Session cookie carrying the storefront session id
    session_cookie_name: str = "storefront_session"
    session_max_age_hours: int = 24

    class Config:
        env_file = "../config/.env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
