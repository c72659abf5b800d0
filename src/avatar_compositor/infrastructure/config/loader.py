"""Configuration loading and validation."""

import os
import tempfile
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field, fields

from avatar_compositor.domain.exceptions import ConfigurationError
from avatar_compositor.shared.logging import get_logger

logger = get_logger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServiceConfig:
    """Configuration for the composite service."""

    # Blob store (S3-compatible API; GCS interoperability endpoint by default)
    storage_endpoint: Optional[str] = "https://storage.googleapis.com"
    storage_access_key: Optional[str] = None
    storage_secret_key: Optional[str] = None
    storage_region: Optional[str] = None
    locator_scheme: str = "gs"

    # Local scratch space
    scratch_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    # Transcoding engine
    ffmpeg_path: str = "ffmpeg"
    transcode_timeout: Optional[float] = None

    # Transfers
    transfer_attempts: int = 1
    transfer_backoff: float = 2.0

    # Service
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.scratch_dir = Path(self.scratch_dir)
        self.log_level = str(self.log_level).upper()
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if bool(self.storage_access_key) != bool(self.storage_secret_key):
            raise ConfigurationError(
                "storage_access_key and storage_secret_key must be set together"
            )

        if not self.locator_scheme or "://" in self.locator_scheme:
            raise ConfigurationError(f"Invalid locator scheme: {self.locator_scheme!r}")

        if not self.ffmpeg_path:
            raise ConfigurationError("ffmpeg_path must not be empty")

        if self.transcode_timeout is not None and self.transcode_timeout <= 0:
            raise ConfigurationError(
                f"Transcode timeout must be positive, got: {self.transcode_timeout}"
            )

        if self.transfer_attempts < 1:
            raise ConfigurationError(
                f"Transfer attempts must be at least 1, got: {self.transfer_attempts}"
            )

        if self.transfer_backoff < 0:
            raise ConfigurationError(
                f"Transfer backoff cannot be negative, got: {self.transfer_backoff}"
            )

        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.log_level}")

        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid port: {self.port}")


class ConfigLoader:
    """Loads and validates configuration from YAML files and environment variables."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            config_path: Optional path to YAML config file
        """
        self.config_path = Path(config_path) if config_path else Path("config.yaml")
        self._logger = get_logger(__name__)

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> ServiceConfig:
        """
        Load configuration from file and environment.

        Environment variables take precedence over the config file, and
        ``overrides`` (from the CLI) over both.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_dict: Dict[str, Any] = {}

        if self.config_path.exists():
            self._logger.info(f"Loading config from {self.config_path}")
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e
            if not isinstance(yaml_config, dict):
                raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")
            config_dict.update(yaml_config)
        else:
            self._logger.debug(f"Config file not found: {self.config_path}")

        config_dict.update(self._load_from_env())

        if overrides:
            for k, v in overrides.items():
                if v is None:
                    continue
                config_dict[k] = v

        valid_fields = {f.name for f in fields(ServiceConfig)}
        unknown = sorted(k for k in config_dict if k not in valid_fields)
        if unknown:
            self._logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        filtered_config = {k: v for k, v in config_dict.items() if k in valid_fields}

        try:
            return ServiceConfig(**filtered_config)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        # Blob store
        if endpoint := os.getenv("STORAGE_ENDPOINT"):
            env_config["storage_endpoint"] = endpoint

        if access_key := os.getenv("STORAGE_ACCESS_KEY"):
            env_config["storage_access_key"] = access_key

        if secret_key := os.getenv("STORAGE_SECRET_KEY"):
            env_config["storage_secret_key"] = secret_key

        if region := os.getenv("STORAGE_REGION"):
            env_config["storage_region"] = region

        if scheme := os.getenv("LOCATOR_SCHEME"):
            env_config["locator_scheme"] = scheme

        # Scratch space
        if scratch_dir := os.getenv("SCRATCH_DIR") or os.getenv("TMP_DIR"):
            env_config["scratch_dir"] = Path(scratch_dir)

        # Transcoding
        if ffmpeg_path := os.getenv("FFMPEG_PATH"):
            env_config["ffmpeg_path"] = ffmpeg_path

        if timeout := os.getenv("TRANSCODE_TIMEOUT"):
            env_config["transcode_timeout"] = self._parse_number(
                "TRANSCODE_TIMEOUT", timeout, float
            )

        # Transfers
        if attempts := os.getenv("TRANSFER_ATTEMPTS"):
            env_config["transfer_attempts"] = self._parse_number(
                "TRANSFER_ATTEMPTS", attempts, int
            )

        if backoff := os.getenv("TRANSFER_BACKOFF"):
            env_config["transfer_backoff"] = self._parse_number(
                "TRANSFER_BACKOFF", backoff, float
            )

        # Service
        if log_level := os.getenv("LOG_LEVEL"):
            env_config["log_level"] = log_level

        if host := os.getenv("HOST"):
            env_config["host"] = host

        if port := os.getenv("PORT"):
            env_config["port"] = self._parse_number("PORT", port, int)

        return env_config

    @staticmethod
    def _parse_number(name: str, value: str, kind):
        try:
            return kind(value)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {name} value: {value}") from e
