from __future__ import annotations

import json
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Bulky Waste Pickup Portal"
    env: str = "dev"

    api_base_url: str = Field("http://localhost:8080/api")
    api_timeout_seconds: float = Field(10.0)
    api_connect_timeout_seconds: float = Field(5.0)

    # comma separated or a JSON array
    cors_origins: str = Field(
        "http://localhost:5173,http://localhost:5174,"
        "http://127.0.0.1:5173,http://127.0.0.1:5174"
    )

    log_level: str = Field("INFO")
    host: str = Field("0.0.0.0")
    port: int = Field(8000)
    reload: bool = Field(False)

    class Config:
        env_file = ".env"
        extra = "ignore"

    @classmethod
    def parse_list_env(cls, value: str) -> List[str]:
        if not value:
            return []
        if value.lstrip().startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def cors_origin_list(self) -> List[str]:
        return Settings.parse_list_env(self.cors_origins)


@lru_cache
def get_settings() -> Settings:
    return Settings()
