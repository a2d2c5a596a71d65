from decimal import Decimal
from functools import lru_cache
import json
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "Airtime Giveaway"
    environment: str = "development"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Database
    database_url: str
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True
    auto_create_tables: bool = False

    # One4All top-up API
    one4all_base_url: str = "https://tppgh.myone4all.com/api/TopUpApi"
    one4all_airtime_path: str = "/airtime"
    one4all_api_key: Optional[str] = None
    one4all_api_secret: Optional[str] = None
    one4all_retailer: str = ""
    one4all_timeout_seconds: float = Field(default=10, gt=0, le=120)

    # Giveaway policy. The amount is never taken from the caller.
    airtime_amount: Decimal = Decimal("10.00")
    airtime_currency: str = "NGN"
    # Simulates provider success without any network call. Never enable in production.
    airtime_test_mode: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Read-only admin listing is disabled unless a key is configured.
    admin_api_key: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
