# src/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수(.env 포함)에서 읽어오는 애플리케이션 설정입니다."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///blog_metadata.db"
    database_echo: bool = False

    # Auth
    secret_key: str = "change-me-in-production"
    token_algorithm: str = "HS256"
    token_ttl_minutes: int = 60

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Blog / Comment 정책
    blog_title_min_length: int = 1
    blog_description_min_length: int = 1
    comment_fetch_limit: int = 5
    user_fetch_limit: int = 5

    # 초기 관리자 계정 (db_init)
    admin_username: str = "admin"
    admin_password: str = "admin"

    # Server
    host: str = ""
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
