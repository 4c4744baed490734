from typing import Literal, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr, field_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    APP_NAME: str = "Counterdesk API"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["local", "dev", "staging", "prod", "test"] = "local"
    DEBUG: bool = False
    CORS_ORIGINS: str = "*"      # CSV or '*'
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # DB
    DATABASE_URL: SecretStr = SecretStr("sqlite+aiosqlite:///./counterdesk.db")
    STORE_TIMEOUT_SEC: float = 10.0

    # Queries
    DEFAULT_PAGE_SIZE: int = 10
    HIGHLIGHT_LIMIT: int = 6
    TIMEZONE: str = "UTC"

    # -------- validators (presence, format) --------
    @field_validator("DATABASE_URL")
    @classmethod
    def _required_secret(cls, v, info):
        if v is None or (hasattr(v, "get_secret_value") and v.get_secret_value() == ""):
            raise ValueError(f"{info.field_name} is required (set it in .env)")
        return v

    @field_validator("DEFAULT_PAGE_SIZE", "HIGHLIGHT_LIMIT")
    @classmethod
    def _positive_int(cls, v: int, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("STORE_TIMEOUT_SEC")
    @classmethod
    def _timeout_positive(cls, v: float, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("TIMEZONE")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def CORS_ORIGINS_LIST(self) -> List[str]:
        return ["*"] if self.CORS_ORIGINS.strip() == "*" else [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def TZ(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)

settings = Settings()
