# race_relay/config.py
import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field
from pydantic import ValidationError
from pydantic_settings import BaseSettings

from .core.exceptions import ConfigError
from .models import RelayConfig


class Settings(BaseSettings):
    # --- Remote services ---
    MIDOS_API_KEY: Optional[str] = None
    MIDOS_GRAPHQL_URL: str = "https://midos.house/api/v1/graphql"
    FORM_BASE_URL: str = "https://docs.google.com/forms/d/e"

    # --- Files ---
    CONFIG_PATH: str = "config.json"
    STATE_PATH: str = "state.json"

    # --- Scheduling & rate limiting ---
    REFRESH_INTERVAL_SECONDS: float = Field(600.0, gt=0)  # 10 minutes
    SUBMISSION_DELAY_SECONDS: float = Field(1.0, ge=0)
    EVENT_DELAY_SECONDS: float = Field(2.0, ge=0)

    # --- HTTP ---
    HTTP_TIMEOUT: int = 20
    USER_AGENT: str = "race-relay/1.0"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def load_relay_config(path: str, api_key_override: Optional[str] = None) -> RelayConfig:
    """
    Loads the series/form configuration file.

    The file is read once at startup; any problem here is fatal to the process,
    so every failure is reported as a ConfigError.
    """
    log = structlog.get_logger(__name__)
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError("Configuration file not found", path=str(config_path)) from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read configuration: {e}", path=str(config_path)) from e

    try:
        config = RelayConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", path=str(config_path)) from e

    if api_key_override:
        config = config.model_copy(update={"midos_api_key": api_key_override})
    if not config.midos_api_key:
        raise ConfigError(
            "No midos.house API key configured (set midosAPIKey or MIDOS_API_KEY)",
            path=str(config_path),
        )

    keys = [event.key for event in config.events]
    if len(set(keys)) != len(keys):
        log.warning("duplicate_event_config", events=keys)

    log.info("Configuration loaded.", path=str(config_path), events=len(config.events))
    return config
