from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .shard import constants as C


class Settings(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(env_nested_delimiter="__")

    runware_api_key: str | None = Field(default=None, description="API key for Runware; a key saved in the store takes precedence")
    runware_endpoint: str = Field(default=C.DEFAULT_ENDPOINT, description="Runware image inference endpoint")
    request_timeout: float = Field(default=C.DEFAULT_TIMEOUT_SECONDS, gt=0, description="HTTP timeout in seconds for API calls and image downloads")

    store_path: Path = Field(default=Path.home() / ".mindful_poster", description="Directory holding the key-value store")
    export_directory: str | None = Field(default=None, description="Default directory for exported posters; a temp directory when unset")

    log_level: str = Field(default="INFO", description="Log level for the loguru sink")

    @property
    def use_runware(self) -> bool:
        """Determine if an environment-provided Runware key is available."""
        return bool(self.runware_api_key and self.runware_api_key.strip())


@lru_cache
def get_settings() -> Settings:
    return Settings()
