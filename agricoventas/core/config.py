# agricoventas/core/config.py
import os
from functools import lru_cache
from typing import List, Annotated
from pydantic import ConfigDict, BeforeValidator
from pydantic_settings import BaseSettings, NoDecode


def _parse_origin_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return []
        return [origin.strip() for origin in value.split(",") if origin.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(origin).strip() for origin in value if str(origin).strip()]
    return [str(value).strip()]


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = ""

    # JWT
    SECRET_KEY: str
    REFRESH_SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_COOKIE_NAME: str = "refresh_token"

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Media storage
    MEDIA_ROOT: str = "media"
    MEDIA_URL_PREFIX: str = "/media"
    MEDIA_BASE_URL: str = ""
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024
    MAX_PRODUCT_IMAGES_PER_UPLOAD: int = 5

    # Business rules
    LOW_STOCK_THRESHOLD: int = 10
    REQUIRE_SELLER_CERTIFICATIONS: bool = True
    ADMIN_EMAIL_DOMAIN: str = "agricoventas.com"

    # HTTP
    CORS_ORIGINS: Annotated[List[str], NoDecode, BeforeValidator(lambda v: _parse_origin_list(v))] = [
        "http://localhost:5173",
    ]

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists('.env') else None,
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def refresh_secret(self) -> str:
        return self.REFRESH_SECRET_KEY or f"{self.SECRET_KEY}:refresh"


@lru_cache()
def get_settings():
    return Settings()


def get_settings_no_cache():
    return Settings()


def clear_settings_cache():
    get_settings.cache_clear()
