"""Configuration for the smart album engine using pydantic-settings.

Settings can be configured via environment variables:
- SMART_ALBUMS_DATABASE_URL: SQLAlchemy URL of the catalog database
- SMART_ALBUMS_DEBUG: Enable debug mode (verbose logging)
- SMART_ALBUMS_SMART_SEARCH_ENABLED: Allow semantic (CLIP) search
- SMART_ALBUMS_ML_URL: Base URL of the machine-learning text encoder
- SMART_ALBUMS_CLIP_MODEL_NAME: Model used to encode album queries
- SMART_ALBUMS_ENCODER_TIMEOUT: Encoder request timeout in seconds
- SMART_ALBUMS_BARRIER_POLL_INTERVAL: Seconds between upstream queue polls
- SMART_ALBUMS_BARRIER_TIMEOUT: Give up waiting for upstream queues after this many seconds
- SMART_ALBUMS_MAX_CONCURRENT_ALBUMS: Albums evaluated in parallel per trigger
- SMART_ALBUMS_SEMANTIC_PAGE_SIZE / SMART_ALBUMS_METADATA_PAGE_SIZE: Default page sizes
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Protocol

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartalbums.core.enums import Feature
from smartalbums.core.errors import FeatureDisabled


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SMART_ALBUMS_", extra="ignore")

    database_url: str = "sqlite:///./smartalbums.db"
    debug: bool = False

    smart_search_enabled: bool = True
    ml_url: str = "http://localhost:3003"
    clip_model_name: str = "ViT-B-32__openai"
    encoder_timeout: float = Field(default=20.0, gt=0)

    barrier_poll_interval: float = Field(default=2.0, gt=0)
    barrier_timeout: Optional[float] = Field(default=None, gt=0)

    max_concurrent_albums: int = Field(default=4, ge=1)
    semantic_page_size: int = Field(default=100, ge=1)
    metadata_page_size: int = Field(default=250, ge=1)


@lru_cache
def get_settings() -> Settings:
    return Settings()


@dataclass(frozen=True)
class MachineLearningConfig:
    url: str
    clip_model_name: str


@dataclass(frozen=True)
class SystemConfig:
    """Immutable snapshot of the instance configuration used for one evaluation run."""
    features: frozenset[Feature]
    machine_learning: MachineLearningConfig
    max_concurrent_albums: int = 4
    semantic_page_size: int = 100
    metadata_page_size: int = 250

    def is_enabled(self, feature: Feature) -> bool:
        return feature in self.features

    @classmethod
    def from_settings(cls, settings: Settings) -> "SystemConfig":
        features = {Feature.smart_search} if settings.smart_search_enabled else set()
        return cls(
            features=frozenset(features),
            machine_learning=MachineLearningConfig(
                url=settings.ml_url,
                clip_model_name=settings.clip_model_name,
            ),
            max_concurrent_albums=settings.max_concurrent_albums,
            semantic_page_size=settings.semantic_page_size,
            metadata_page_size=settings.metadata_page_size,
        )


class ConfigProvider(Protocol):
    def get_config(self) -> SystemConfig: ...


class StaticConfigProvider:
    def __init__(self, config: SystemConfig):
        self._config = config

    def get_config(self) -> SystemConfig:
        return self._config


class SettingsConfigProvider:
    """Builds a fresh snapshot from settings on every call."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def get_config(self) -> SystemConfig:
        return SystemConfig.from_settings(self._settings)


def require_feature(config: SystemConfig, feature: Feature) -> None:
    if not config.is_enabled(feature):
        raise FeatureDisabled(feature)
