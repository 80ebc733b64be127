"""Application settings read from the environment."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Environment overrides.

    Unset database values fall back to the ``database`` section of the
    loaded configuration file.
    """

    # Database settings
    DATABASE_URL: Optional[str] = None
    SQL_ECHO: Optional[bool] = None
    DB_POOL_SIZE: Optional[int] = None

    # Optional YAML/JSON file with engine, database and logging sections
    CONFIG_PATH: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")
