from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    log_level: str = "WARNING"

    # JSON catalog replacing the built-in identifier tables (empty = built-in)
    catalog_file: str = ""

    # Defaults for SanitizationOptions; CLI flags and request fields override
    use_role_names: bool = True
    preserve_structure: bool = False

    # CORS: comma-separated origins allowed to call the gate API
    cors_origins: str = "http://localhost:1313"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
