from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ADMIN_API_KEY = "foodshop-admin-dev-key"
DEFAULT_STATIC_SNAPSHOT_BASE = str(Path(__file__).resolve().parents[1] / "static")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="FOODSHOP_", extra="ignore")

    app_name: str = "Tulamia Mini Food Shop"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    database_url: str = "sqlite+pysqlite:///./foodshop.db"
    bootstrap_menu_on_startup: bool = False

    static_snapshot_base: str = Field(
        default=DEFAULT_STATIC_SNAPSHOT_BASE,
        description="Directory or http(s) base URL holding json/dishes.json and json/orders.json",
    )
    local_cache_path: Path = Path("./.foodshop/local-orders.json")
    local_cache_slot: str = "foodshop-orders"

    # Client side: empty disables the remote tier.
    remote_base_url: str = ""
    remote_api_key: str | None = None
    remote_timeout_seconds: int = 10

    paypal_enabled: bool = False
    paypal_client_id: str | None = None
    paypal_client_secret: str | None = None
    paypal_api_base: str = "https://api-m.sandbox.paypal.com"
    paypal_timeout_seconds: int = 15
    currency: str = "EUR"

    auth_enabled: bool = True
    admin_api_key: str = DEFAULT_ADMIN_API_KEY

    default_locale: str = "de"
    orders_default_limit: int = 25

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return
        if self.auth_enabled and self.admin_api_key == DEFAULT_ADMIN_API_KEY:
            raise ValueError(
                "insecure default secrets are not allowed outside dev mode; set env vars: FOODSHOP_ADMIN_API_KEY"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
