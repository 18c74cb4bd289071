from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_DIR = Path(__file__).resolve().parent / "conf"


class Settings(BaseSettings):
    """Client configuration settings."""

    # Schema
    schema_variant: str = "pulmoprobe"
    config_dir: Path = CONFIG_DIR

    # Scoring endpoint. api_url overrides the endpoint declared by the schema variant.
    api_url: Optional[str] = None
    api_path: str = "/predict"
    request_timeout: Optional[float] = None

    # Static figure shown on the dashboard
    model_accuracy: float = 94.5

    model_config = SettingsConfigDict(
        env_prefix="PULMOPROBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        protected_namespaces=("settings_",),
    )
