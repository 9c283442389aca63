import re
from datetime import timedelta
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "your-secret-jwt-key"
DEFAULT_JWT_REFRESH_SECRET = "your-refresh-secret"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str | int) -> timedelta:
    """
    Parse a TTL such as "15m", "7d", "12h", "30s" or a bare number of seconds.
    Raises ValueError for anything else.
    """
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit])


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "Session Auth Service"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str  = "sqlite:///./sessionauth.db"
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── JWT ───────────────────────────────────────────────────────────────────
    JWT_SECRET:             str = DEFAULT_JWT_SECRET
    JWT_REFRESH_SECRET:     str = DEFAULT_JWT_REFRESH_SECRET
    JWT_EXPIRES_IN:         str = "15m"
    JWT_REFRESH_EXPIRES_IN: str = "7d"
    ALGORITHM:              str = "HS256"

    # ─── Password hashing (argon2) ─────────────────────────────────────────────
    ARGON2_TIME_COST:   int = 2
    ARGON2_MEMORY_COST: int = 19456
    ARGON2_PARALLELISM: int = 1

    # ─── Cookies ───────────────────────────────────────────────────────────────
    ACCESS_COOKIE_NAME:  str = "access_token"
    REFRESH_COOKIE_NAME: str = "refresh_token"

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    @field_validator("JWT_EXPIRES_IN", "JWT_REFRESH_EXPIRES_IN")
    @classmethod
    def check_duration(cls, v: str) -> str:
        parse_duration(v)
        return v

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_EXPIRES_IN)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_REFRESH_EXPIRES_IN)

    @property
    def uses_default_secrets(self) -> bool:
        return (
            self.JWT_SECRET == DEFAULT_JWT_SECRET
            or self.JWT_REFRESH_SECRET == DEFAULT_JWT_REFRESH_SECRET
        )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
