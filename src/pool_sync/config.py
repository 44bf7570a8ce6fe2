import tomllib
from pathlib import Path
from typing import Annotated

import tomlkit
from pydantic import BaseModel, Field, HttpUrl, PlainSerializer
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from pool_sync.logging import logger
from pool_sync.types.aliases import ChainId

CONFIG_DIR = Path.home() / ".config" / "pool_sync"
CONFIG_FILE = CONFIG_DIR / "config.toml"
CACHE_DIR = CONFIG_DIR / "cache"


class NodeEndpoints(BaseModel):
    # The archive node serves historical log queries, the full node serves current state reads. If
    # `full` is not set, the archive node serves both roles.
    archive: HttpUrl
    full: HttpUrl | None = None


class CacheSettings(BaseModel):
    # Serialize the path as a string representation of the absolute path
    path: Annotated[
        Path,
        PlainSerializer(lambda path: str(path.expanduser().absolute()), return_type=str),
    ] = CACHE_DIR


class RetrySettings(BaseModel):
    enabled: bool = True
    max_attempts: int = Field(default=5, ge=1)


class SyncSettings(BaseModel):
    """
    Tuning values for a sync run.

    Chain growth between iterations must be slower than catch-up for a run to finish. Set
    `max_iterations` to bound the loop when that cannot be assumed.
    """

    rate_limit: int = Field(default=20, ge=1)
    batch_size: int = Field(default=100, ge=1)
    max_blocks_per_request: int = Field(default=5_000, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
    max_iterations: int | None = Field(default=None, ge=1)
    retry: RetrySettings = Field(default_factory=RetrySettings)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POOL_SYNC_",
        env_nested_delimiter="__",
    )

    rpc: dict[ChainId, NodeEndpoints] = Field(default_factory=dict)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment variables override the values read from the configuration file
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_config_from_file(config_path: Path) -> Settings:
    return Settings(
        **tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    config_path.write_text(
        tomlkit.dumps(
            config.model_dump(mode="json", exclude_none=True),
        ),
    )


def get_settings(config_path: Path = CONFIG_FILE) -> Settings:
    """
    Load the settings from the configuration file, creating the file with default values if it does
    not exist.
    """

    if config_path.exists():
        return load_config_from_file(config_path)

    if not config_path.parent.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created a configuration directory at {config_path.parent}.")

    settings = Settings()
    save_config_to_file(settings, config_path)
    logger.info(f"Created a configuration file at {config_path}.")
    return settings
