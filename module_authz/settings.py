from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Authorization settings.

    Notes:
    - Without ``AUTHZ_MATRIX_CONFIG_PATH`` the built-in grant table is used.
    - Everything is read once at startup; changing the environment later has no effect.
    """

    model_config = SettingsConfigDict(env_prefix="AUTHZ_", extra="ignore")

    matrix_config_path: str | None = None
    log_level: str = "INFO"
    decision_log_queue_size: int = 10_000
    decision_log_json: bool = True

    def resolved_matrix_config_path(self) -> Path | None:
        if self.matrix_config_path:
            return Path(self.matrix_config_path)
        return None


@lru_cache
def get_settings() -> Settings:
    return Settings()
