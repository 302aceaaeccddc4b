"""Configuration Management for Dockpool

The pool configuration is validated once, when it is created, and is immutable
afterwards: a malformed directory mapping or an out-of-range port never reaches
the placement path. Settings are read from ``DOCKPOOL_*`` environment variables
using Pydantic settings.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .bindings import parse_bindings
from .errors import BindingSyntaxError, ConfigurationError, DockpoolError
from .types import DirectoryBinding, ImageCatalog

ENV_PREFIX = "DOCKPOOL_"


class CloudConfig(BaseSettings):
    """Static configuration of one pool of Docker hosts."""

    name: str = Field(default="docker", description="Pool name")
    docker_port: int = Field(default=2375, description="Docker API port on every host")
    label_string: str = Field(default="", description="Labels offered by every host of the pool")
    max_executors: int = Field(default=1, description="Concurrent jobs allowed per host")
    tls_enabled: bool = Field(default=False, description="Talk to the Docker API over TLS")
    credentials_id: Optional[str] = Field(default=None, description="Credentials used with TLS")
    directory_mappings: str = Field(default="", description="Directories bound into every job")
    status_query_workers: int = Field(
        default=1, description="Threads used to query host status (1 = sequential)"
    )
    client_timeout_seconds: float = Field(default=10.0, description="Docker API call timeout")
    job_label: str = Field(
        default="dockpool.job", description="Container label marking jobs started by the pool"
    )

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, frozen=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("docker_port")
    @classmethod
    def validate_docker_port(cls, v):
        if v < 1 or v > 65535:
            raise ValueError("Invalid port value. Must be between 1 and 65535.")
        return v

    @field_validator("max_executors")
    @classmethod
    def validate_max_executors(cls, v):
        if v < 1:
            raise ValueError("Invalid limit value. Must be greater than or equal to 1.")
        return v

    @field_validator("status_query_workers")
    @classmethod
    def validate_status_query_workers(cls, v):
        if v < 1:
            raise ValueError("status_query_workers must be at least 1")
        return v

    @field_validator("client_timeout_seconds")
    @classmethod
    def validate_client_timeout(cls, v):
        if v <= 0:
            raise ValueError("client_timeout_seconds must be positive")
        return v

    @field_validator("label_string")
    @classmethod
    def validate_label_string(cls, v):
        from .labels.parser import parse_label_set

        try:
            parse_label_set(v)
        except DockpoolError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("directory_mappings")
    @classmethod
    def validate_directory_mappings(cls, v):
        try:
            parse_bindings(v)
        except BindingSyntaxError as e:
            raise ValueError(e.message) from e
        return v

    @model_validator(mode="after")
    def validate_credentials_need_tls(self):
        if self.credentials_id and not self.tls_enabled:
            raise ValueError("TLS is required when authentication is enabled")
        return self

    @property
    def labels(self) -> FrozenSet:
        """Labels every host of the pool offers, as atoms."""
        from .labels.parser import parse_label_set

        return parse_label_set(self.label_string)

    @property
    def directory_bindings(self) -> List[DirectoryBinding]:
        return parse_bindings(self.directory_mappings)


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    log_level: str = "INFO"
    log_format: str = "console"

    def __post_init__(self):
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_levels:
            raise ValueError(f"Invalid log level: {self.log_level}")

        valid_formats = ["console", "json"]
        if self.log_format not in valid_formats:
            raise ValueError(f"Invalid log format: {self.log_format}")

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv(f"{ENV_PREFIX}LOG_FORMAT", "console").lower(),
        )


@dataclass
class DockpoolConfig:
    """Main configuration class for Dockpool."""

    cloud: CloudConfig = field(default_factory=CloudConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    images: ImageCatalog = field(default_factory=ImageCatalog)

    debug: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "DockpoolConfig":
        """Load configuration from environment variables."""

        if env_file:
            cls._load_env_file(env_file)

        images_json = os.getenv(f"{ENV_PREFIX}LABELED_IMAGES", "")
        try:
            images = ImageCatalog.from_dicts(json.loads(images_json)) if images_json else ImageCatalog()
        except (ValueError, TypeError, ConfigurationError) as e:
            raise ValueError(f"Invalid {ENV_PREFIX}LABELED_IMAGES: {e}") from e

        return cls(
            cloud=CloudConfig(),
            logging=LoggingConfig.from_env(),
            images=images,
            debug=cls._get_bool_env(f"{ENV_PREFIX}DEBUG", False),
        )

    @staticmethod
    def _load_env_file(env_file: str):
        """Load environment variables from file."""
        env_path = Path(env_file)
        if not env_path.exists():
            return

        with open(env_path, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    os.environ[key.strip()] = value.strip()

    @staticmethod
    def _get_bool_env(key: str, default: bool) -> bool:
        value = os.getenv(key, str(default)).lower()
        return value in ("true", "1", "yes", "on")

    def validate(self) -> List[str]:
        """Validate cross-section settings and return any errors."""
        errors = []

        seen = set()
        for image in self.images:
            if image.image_name in seen:
                errors.append(f"Preconfigured image listed twice: {image.image_name}")
            seen.add(image.image_name)

        if self.cloud.status_query_workers > 64:
            errors.append("status_query_workers > 64 may exhaust threads")

        if self.cloud.tls_enabled and self.cloud.docker_port == 2375:
            errors.append("Port 2375 is the plain-text Docker port but TLS is enabled")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "cloud": self.cloud.model_dump(),
            "logging": {
                "log_level": self.logging.log_level,
                "log_format": self.logging.log_format,
            },
            "images": [
                {"image_name": image.image_name, "label_string": image.label_string}
                for image in self.images
            ],
            "debug": self.debug,
        }

    def __str__(self) -> str:
        return (
            f"DockpoolConfig(cloud={self.cloud.name}, max_executors={self.cloud.max_executors}, "
            f"images={len(self.images)})"
        )


# Global configuration instance, used by the CLI
_global_config: Optional[DockpoolConfig] = None


def get_config() -> DockpoolConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = DockpoolConfig.from_env()
    return _global_config


def set_config(config: DockpoolConfig):
    """Set the global configuration instance."""
    global _global_config

    errors = config.validate()
    if errors:
        raise ValueError(f"Configuration validation failed: {errors}")

    _global_config = config


def reset_config():
    """Reset the global configuration to default."""
    global _global_config
    _global_config = None
