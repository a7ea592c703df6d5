from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ObserverConfig:
    include_timestamp: bool = False
    suppress_duration: bool = False
    trailing_blank_lines: int = 0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    include_timestamp: bool = Field(default=False, alias="LOGREQUEST_TIMESTAMP")
    suppress_duration: bool = Field(default=False, alias="LOGREQUEST_HIDE_DURATION")
    trailing_blank_lines: int = Field(default=0, ge=0, alias="LOGREQUEST_NEW_LINES")

    def observer_config(self) -> ObserverConfig:
        return ObserverConfig(
            include_timestamp=self.include_timestamp,
            suppress_duration=self.suppress_duration,
            trailing_blank_lines=self.trailing_blank_lines,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
