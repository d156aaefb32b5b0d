"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "plastics_oms API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    log_level: str = getenv("LOG_LEVEL", "INFO").upper()
    database_url: str = getenv("DATABASE_URL", "sqlite:///./plastics_oms.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", str(60 * 12)))
    admin_user: str = getenv("ADMIN_USER", "admin")
    admin_pass: str = getenv("ADMIN_PASS", "admin123")
    virtual_list_limit: int = int(getenv("VIRTUAL_LIST_LIMIT", "5000"))
    virtual_get_limit: int = int(getenv("VIRTUAL_GET_LIMIT", "8000"))


settings: Settings = Settings()
