from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    # Performance guard defaults (used when a guard is built without an explicit limit)
    SAFE_MAX_STRING_LENGTH: int = 50_000
    SAFE_MAX_ARRAY_LENGTH: int = 10_000
    SAFE_MAX_OBJECT_KEYS: int = 1_000
    SAFE_MAX_JSON_BYTES: int = 1024 * 1024
    SAFE_MAX_DEPTH: int = 20

    model_config = SettingsConfigDict(env_prefix="FIELDCHECK_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
