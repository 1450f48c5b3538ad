from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "water-chemistry-service"

    # sqlite file for chemistry records; tests point this at a tmp dir
    DATABASE_PATH: str = "data/water_chemistry.db"
    STORAGE_TIMEOUT_S: float = 5.0

    SECRET_KEY: str = "change_me"
    ALGORITHM: str = "HS256"
    AUTH_ENABLED: bool = True

    PKA_MODE: Literal["nearest", "linear"] = "nearest"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
