from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./lab_results.db"
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    api_base_url: str = "http://localhost:8000"
    allowed_origins: str = "http://localhost:8501"
    session_ttl_hours: int = 12

    data_source: Literal["local", "firebase"] = "local"
    firebase_database_url: str | None = None
    firebase_auth_token: str | None = None
    store_timeout_seconds: int = 10

    notification_limit: int = 50
    data_deletion_password: str | None = None


settings = Settings()
