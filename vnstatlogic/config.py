"""Service configuration from environment (VNSTAT_API_*)."""
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import canon


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VNSTAT_API_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Routing
    api_path: str = canon.DEFAULT_API_PATH

    # Collector
    vnstat_binary: str = "vnstat"
    collector_timeout: float = 10.0

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
