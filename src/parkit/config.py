# File: src/parkit/config.py
"""
Configuration for the ParkIt parking system

Settings are resolved in three layers, each overriding the previous one:
1. Defaults declared on the Settings model
2. An optional YAML file (top-level mapping)
3. Environment variables prefixed with PARKIT_

Logging is configured here as well so the entry point and tests share it.
"""

import logging
import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "PARKIT_"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILENAME = 'parkit.log'


class Settings(BaseModel):
    """Runtime settings for the parking system"""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    database_url: str = Field(default="sqlite:///parkit.db", description="SQLAlchemy database URL")

    # Fare configuration
    car_rate_per_hour: Decimal = Field(default=Decimal("1.5"), ge=0)
    bike_rate_per_hour: Decimal = Field(default=Decimal("1.0"), ge=0)
    free_parking_minutes: int = Field(default=30, ge=0)
    recurring_discount: Decimal = Field(default=Decimal("0.95"), gt=0, le=1)

    # Spots seeded by --init-db
    car_spots: int = Field(default=3, ge=0)
    bike_spots: int = Field(default=2, ge=0)

    log_level: str = Field(default="INFO")
    log_dir: Optional[str] = Field(default="logs", description="Directory for the log file, None disables it")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Collect PARKIT_* overrides from the environment"""
        environ = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            value = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                overrides[name] = value
        return overrides


def load_yaml_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML config file, returning an empty mapping for an empty file"""
    with open(path, 'r', encoding='utf-8') as handle:
        data = yaml.safe_load(handle)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return data


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
    **overrides: Any
) -> Settings:
    """
    Build Settings from defaults, an optional YAML file, the environment
    and finally explicit keyword overrides (CLI flags).
    """
    values: Dict[str, Any] = {}
    if config_path:
        values.update(load_yaml_config(config_path))
    values.update(Settings.from_env(environ))
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)


def setup_logging(settings: Settings) -> logging.Logger:
    """Setup application logging configuration"""
    handlers = [logging.StreamHandler(sys.stdout)]

    if settings.log_dir:
        log_dir = settings.log_dir
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(os.path.join(log_dir, LOG_FILENAME)))

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
    return logging.getLogger("parkit")
