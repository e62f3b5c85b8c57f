from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so local/dev .env can include frontend settings.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Chai Vision API"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    enable_supabase: bool = Field(default=True, alias="ENABLE_SUPABASE")
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")
    supabase_page_size: int = Field(default=1000, alias="SUPABASE_PAGE_SIZE")

    local_data_dir: str = Field(default=".chai_vision", alias="LOCAL_DATA_DIR")
    sales_cache_ttl_seconds: float = Field(default=300.0, alias="SALES_CACHE_TTL_SECONDS")
    upload_batch_size: int = Field(default=1000, alias="UPLOAD_BATCH_SIZE")

    @property
    def supabase_enabled(self) -> bool:
        return bool(
            self.enable_supabase
            and self.supabase_url
            and (self.supabase_service_role_key or self.supabase_anon_key)
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
