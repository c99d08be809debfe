"""Configuration management for tbwmon."""

import logging
import os
from datetime import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .clock.oracle import DEFAULT_TIME_API_URL, DEFAULT_TIME_ZONE
from .core.exceptions import ConfigurationError
from .storage.recorder import DEFAULT_REVISION_THRESHOLD_BYTES
from .storage.smart import DEFAULT_SCALE_FACTOR

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TBWMON_CONFIG"


def _default_base_dir() -> str:
    return os.path.join(os.path.expanduser("~"), ".tbwmon")


def default_config_path() -> str:
    return os.path.join(_default_base_dir(), "config.yaml")


class DatabaseSettings(BaseModel):
    url: str = Field(
        default_factory=lambda: f"sqlite:///{os.path.join(_default_base_dir(), 'tbw_history.db')}"
    )


class ProbeSettings(BaseModel):
    smartctl_path: str = "smartctl"
    command_timeout: float = Field(default=30.0, gt=0)
    scale_factor: float = Field(default=DEFAULT_SCALE_FACTOR, gt=0)


class TimeSettings(BaseModel):
    api_url: str = DEFAULT_TIME_API_URL
    field: str = "dateTime"
    timeout: float = Field(default=5.0, gt=0)
    # Zone of remote date-times that carry no UTC offset; null means local time
    timezone: Optional[str] = DEFAULT_TIME_ZONE
    require_remote_time: bool = False

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: Optional[str]) -> Optional[str]:
        if value:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"unknown time zone {value!r}") from e
        return value


class ScheduleSettings(BaseModel):
    window_start: time = time(17, 0)
    window_end: time = time(0, 0)
    tick_interval: float = Field(default=60.0, gt=0)
    revision_threshold_bytes: int = Field(default=DEFAULT_REVISION_THRESHOLD_BYTES, ge=0)

    @field_validator("window_start", "window_end", mode="before")
    @classmethod
    def _sexagesimal_time(cls, value: Any) -> Any:
        # YAML 1.1 reads an unquoted 17:00 as the base-60 integer 1020
        if isinstance(value, int) and not isinstance(value, bool):
            hours, minutes = divmod(value, 60)
            return time(hours % 24, minutes)
        return value


class DriftSettings(BaseModel):
    enabled: bool = True
    check_interval: float = Field(default=60.0, gt=0)
    tolerance: float = Field(default=120.0, gt=0)


class ApiSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class TbwmonConfig(BaseModel):
    """Complete tbwmon configuration."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    probe: ProbeSettings = Field(default_factory=ProbeSettings)
    time: TimeSettings = Field(default_factory=TimeSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    drift: DriftSettings = Field(default_factory=DriftSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> str:
    """Explicit path, else $TBWMON_CONFIG, else ~/.tbwmon/config.yaml."""
    if path:
        return str(path)
    return os.environ.get(CONFIG_ENV_VAR) or default_config_path()


def load_config(path: Optional[Union[str, Path]] = None) -> TbwmonConfig:
    """Load configuration from a YAML file.

    A missing file yields the defaults.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML or
            does not validate
    """
    config_path = resolve_config_path(path)

    if not os.path.exists(config_path):
        logger.info(f"Config file not found: {config_path}, using defaults")
        return TbwmonConfig()

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error loading config: {e}", path=config_path) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a mapping", path=config_path)

    try:
        config = TbwmonConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            path=config_path,
            details={"errors": e.errors(include_url=False)}
        ) from e

    logger.info(f"Loaded configuration from {config_path}")
    return config


def dump_config(config: TbwmonConfig) -> Dict[str, Any]:
    """Plain-data form of a configuration, suitable for YAML."""
    return config.model_dump(mode="json")
