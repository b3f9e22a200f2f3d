"""Configuration loading for CamWatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from configs.validator import validate_config
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")


@dataclass(frozen=True)
class TrackingConfig:
    tolerance_px: int = 50
    debounce_s: float = 1.0
    eviction_s: float = 5.0
    alert_threshold_s: float = 10.0
    strict_lookups: bool = True  # False: unknown ids are logged and ignored


@dataclass(frozen=True)
class AlertConfig:
    cooldown_s: float = 2.0


@dataclass(frozen=True)
class StorageConfig:
    data_dir: str = "data"
    alerts_file: str = "alerts.json"
    image_dir_name: str = "img"
    image_extension: str = ".png"

    @property
    def alerts_path(self) -> Path:
        return Path(self.data_dir) / self.alerts_file

    @property
    def image_dir(self) -> Path:
        return Path(self.data_dir) / self.image_dir_name


@dataclass(frozen=True)
class LoopConfig:
    tick_ms: float = 33
    log_dir: str = "logs"

    @property
    def period_s(self) -> float:
        return self.tick_ms / 1000.0


@dataclass(frozen=True)
class AppConfig:
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)

    @classmethod
    def default(cls) -> "AppConfig":
        return cls()


def config_from_dict(data: Optional[Dict[str, Any]]) -> AppConfig:
    """Validate a raw mapping and build an AppConfig from it.

    Raises:
        ConfigValidationError: If the mapping fails schema validation
        InvalidConfigError: If the validated mapping cannot be turned into config objects
    """
    data = {} if data is None else data
    validate_config(data)

    try:
        return AppConfig(
            tracking=TrackingConfig(**data["tracking"]),
            alerts=AlertConfig(**data["alerts"]),
            storage=StorageConfig(**data["storage"]),
            loop=LoopConfig(**data["loop"]),
        )
    except (KeyError, TypeError) as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file (defaults to the bundled default.yaml)

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    logger.info(f"Loading configuration from {path}")
    if not path.exists():
        raise InvalidConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")
    except OSError as e:
        logger.error(f"Failed to read configuration file: {e}")
        raise InvalidConfigError(f"Failed to read configuration file: {e}")

    config = config_from_dict(data)
    logger.info(
        f"Configuration loaded: tolerance={config.tracking.tolerance_px}px, "
        f"threshold={config.tracking.alert_threshold_s}s, cooldown={config.alerts.cooldown_s}s"
    )
    return config


__all__ = [
    "AlertConfig",
    "AppConfig",
    "ConfigError",
    "LoopConfig",
    "StorageConfig",
    "TrackingConfig",
    "config_from_dict",
    "load_config",
]
