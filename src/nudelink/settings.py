"""Global settings loaded from environment variables via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NUDELINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rules_url: str = "https://rules2.clearurls.xyz/data.minify.json"
    hash_url: str = "https://rules2.clearurls.xyz/rules.minify.hash"
    data_dir: str = "./data"
    log_dir: str = "./data/logs"
    # HTTP (operational)
    http_timeout: float = 30.0
    proxy_url: str = ""

    @property
    def rules_path(self) -> Path:
        return Path(self.data_dir) / "rules.json"

    @property
    def state_path(self) -> Path:
        return Path(self.data_dir) / "refresh_state.json"

    @property
    def options_path(self) -> Path:
        return Path(self.data_dir) / "options.yaml"
