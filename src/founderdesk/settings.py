"""Client configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Backend
    api_url: str = "http://localhost:8000/api/v1"
    request_timeout: float | None = None  # None = wait for the server

    # Local state (persisted session)
    state_dir: Path = Path.home() / ".founderdesk"

    # Where the view layer sends the user after a forced logout
    login_route: str = "/auth"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    model_config = {
        "env_prefix": "FOUNDERDESK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
