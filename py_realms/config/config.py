from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Load .env for local/dev environments only where values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from REALMS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REALMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Generation Configuration
    default_seed: str = Field(default="realms", description="Seed used when none is given")
    max_grid_cells: int = Field(default=250_000, description="Largest grid the API accepts")
    max_requested_states: int = Field(
        default=200, description="Most states one API job may request"
    )
    max_retained_jobs: int = Field(
        default=100, ge=0, description="Finished API jobs kept in memory"
    )


# Instantiate singleton settings object
settings = Settings()
