"""Application configuration from environment."""
from pathlib import Path
from typing import Literal

from fastapi import Request
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "GeoQuiz Admin"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origin_regex: str = r"^http://localhost:\d+$"

    # Database
    database_url: str = "sqlite+aiosqlite:///./quiz.db"
    sqlite_busy_timeout: float = 5.0

    # JWT
    secret_key: str = "change-me-in-production-use-env"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24h

    # "account": quizzes belong to users, requests need a bearer token.
    # "creator": no accounts, quizzes carry a free-text creator name.
    attribution_mode: Literal["account", "creator"] = "account"

    # Uploaded images and the legacy flat-file document
    images_dir: str = "images"
    legacy_photos_path: str = "photos.json"

    # Account that owns quizzes imported from the legacy document
    migration_username: str = "migration_user"
    migration_password: str = "changeme123"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def requires_account(self) -> bool:
        return self.attribution_mode == "account"


def get_settings() -> Settings:
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


# Repository root (parent of geoquiz/)
BASE_DIR = Path(__file__).resolve().parent.parent.parent
