from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Daemon configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Control API
    api_host: str = "127.0.0.1"
    api_port: int = 9013

    # Probes admitted at startup (YAML, optional)
    probes_file: str = ""

    # Worker threads running blocking probe I/O
    executor_workers: int = 16

    # Logging
    log_level: str = "INFO"


settings = Settings()
