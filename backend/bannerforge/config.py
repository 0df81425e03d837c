"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    bannerforge_env: str = "development"
    bannerforge_log_level: str = "debug"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Asset loading
    asset_fetch_timeout_s: float = 5.0
    asset_max_concurrency: int = 5

    # Export
    export_quality: int = 92
    export_min_quality: int = 65
    export_quality_step: int = 5
    export_max_bytes: int = int(4.5 * 1024 * 1024)
    export_filename_prefix: str = "Banner"

    # Optional TrueType font used for all banner text
    font_path: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
