from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CUSTOMER_API_KEY = "sf-customer-dev-key"
DEFAULT_ADMIN_API_KEY = "sf-admin-dev-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SF_", extra="ignore")

    app_name: str = "Storefront Orders"
    env: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./storefront.db"

    auth_enabled: bool = True
    customer_api_key: str = DEFAULT_CUSTOMER_API_KEY
    admin_api_key: str = DEFAULT_ADMIN_API_KEY
    customer_user_id: int = 1
    admin_user_id: int = 999

    # Delivery estimate: fixed | random
    delivery_mode: Literal["fixed", "random"] = "random"
    delivery_fixed_days: int = Field(default=1, ge=0)
    delivery_min_days: int = Field(default=3, ge=0)
    delivery_max_days: int = Field(default=7, ge=0)

    delivery_sweep_enabled: bool = True
    delivery_sweep_on_startup: bool = True
    delivery_sweep_interval_seconds: float = Field(default=300, gt=0)

    orders_default_page_size: int = Field(default=20, ge=1)
    orders_max_page_size: int = Field(default=100, ge=1)

    def model_post_init(self, __context) -> None:
        if self.delivery_min_days > self.delivery_max_days:
            raise ValueError("delivery_min_days must not exceed delivery_max_days")

        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.customer_api_key == DEFAULT_CUSTOMER_API_KEY:
            insecure_items.append("SF_CUSTOMER_API_KEY")
        if self.admin_api_key == DEFAULT_ADMIN_API_KEY:
            insecure_items.append("SF_ADMIN_API_KEY")

        if insecure_items:
            raise ValueError(
                "insecure default api keys are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
