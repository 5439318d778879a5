# region Docstring
"""
clipkeep.config.factory
Settings base class and cached settings factory.
Overview:
- FactoryBaseSettings layers environment variables, a `.env` file, and YAML settings
    files found in the application home directory over the field defaults.
- get_settings hands out one cached instance per settings class.
Contents:
- Classes:
    - FactoryBaseSettings:
        Sources, highest priority first:
            1. Environment variables (the CLIPKEEP_* field aliases)
            2. <home>/.env
            3. <home>/config.{env}.yaml
            4. <home>/config.yaml
            5. Init kwargs
            6. Field defaults
- Functions:
    - get_settings(settings_cls) -> instance, cached with functools.lru_cache. Call
        get_settings.cache_clear() after writing a settings file.
Design notes:
- The home directory is looked up each time a settings class is instantiated, so a
    CLIPKEEP_HOME set after import redirects both the `.env` file and the YAML files.
- YAML keys are field names (retention_days, max_items, ...); environment variables use
    the aliases.
"""
# endregion
# region Imports
from functools import lru_cache
from typing import Type, TypeVar

from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .base import AppEnv

# endregion
# region FactoryBaseSettings Class
T = TypeVar("T", bound=BaseSettings)


class FactoryBaseSettings(BaseSettings):
    """
    BaseSettings reading env vars, `<home>/.env`, and the YAML settings files.
    """

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        home_dotenv = DotEnvSettingsSource(
            settings_cls, env_file=AppEnv.app_home() / ".env"
        )
        yaml_files = YamlConfigSettingsSource(
            settings_cls, yaml_file=AppEnv.settings_files()
        )
        return env_settings, home_dotenv, yaml_files, init_settings


# endregion
# region get_settings Factory Function


@lru_cache
def get_settings(settings_cls: Type[T]) -> T:
    """
    Cached instance of `settings_cls`; files and env vars are read on the first call.
    """
    return settings_cls()


# endregion
