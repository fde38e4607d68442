"""
Subcheck Configuration Management.

Handles loading and validating configuration from various sources:
- Default values
- The YAML configuration document (shared with the subscription list)
- Environment variables

The configuration document is also the file the lifecycle manager edits
when it evicts a subscription, so it is always read as a generic mapping
and only the keys below are interpreted.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional

import yaml
from croniter import croniter

if TYPE_CHECKING:
    from subcheck_cli.scheduler.timing import TimingMode

logger = logging.getLogger(__name__)


# Configuration directory and file constants
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "subcheck"
DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "subcheck"

# Keys of the configuration document
SOURCE_LIST_KEY = "sub-urls"
CHECK_INTERVAL_KEY = "check-interval"
CRON_EXPRESSION_KEY = "cron-expression"
FAIL_REMOVE_KEY = "sub-urls-fail-remove"
TIMEOUT_KEY = "timeout"
RETRIES_KEY = "sub-urls-retry"
LOG_LEVEL_KEY = "log-level"

# Ledger file, stored next to the configuration document
LEDGER_FILE = "subs_state.json"


class ConfigLoadError(ValueError):
    """Raised when the configuration document cannot be read or parsed."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path: {self.path})"
        return self.message


@dataclass
class ValidationError:
    """Validation error for configuration."""
    field: str
    message: str
    severity: str  # "error" or "warning"

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.field}: {self.message}"


@dataclass
class SchedulerConfig:
    """Configuration for round scheduling."""

    # Minutes between rounds in interval mode
    check_interval: int = 720

    # When set, rounds follow this cron expression instead of the interval
    cron_expression: str = ""


@dataclass
class LifecycleConfig:
    """Configuration for subscription eviction."""

    # Consecutive failed rounds before a subscription is removed; <= 0 disables
    fail_threshold: int = 0


@dataclass
class ProbeConfig:
    """Configuration for the default subscription probe."""

    timeout: float = 20.0
    retries: int = 3
    user_agent: str = "subcheck"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[Path] = None


@dataclass
class SubcheckConfig:
    """Main configuration container for Subcheck."""

    # Paths
    config_path: Path = DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE
    data_dir: Path = DEFAULT_DATA_DIR

    # Subscription sources as written in the document
    sub_urls: List[Any] = field(default_factory=list)

    # Sub-configurations
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        return self.config_path.parent

    @property
    def ledger_path(self) -> Path:
        """Failure ledger location, derived from the config directory."""
        return ledger_path(self.config_path)

    @property
    def pid_path(self) -> Path:
        return self.data_dir / "subcheck.pid"

    def timing_mode(self) -> "TimingMode":
        """Timing mode selected by this configuration.

        A non-empty cron expression wins over the interval.
        """
        from subcheck_cli.scheduler.timing import CronMode, IntervalMode

        if self.scheduler.cron_expression:
            return CronMode(
                self.scheduler.cron_expression,
                fallback_minutes=self.scheduler.check_interval,
            )
        return IntervalMode(self.scheduler.check_interval)


def ledger_path(config_path: Path) -> Path:
    """Return ``<config dir>/subs_state.json`` for a configuration file."""
    return Path(config_path).parent / LEDGER_FILE


def read_document(path: Path) -> dict[str, Any]:
    """Read the configuration document as a generic mapping.

    An empty file yields an empty mapping.

    Raises:
        ConfigLoadError: If the file cannot be read, is not valid YAML,
            or its top level is not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigLoadError(f"Failed to read configuration: {e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse configuration: {e}", path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError("Configuration document must be a mapping", path)
    return data


def load_config(
    config_path: Optional[Path] = None,
    env_prefix: str = "SUBCHECK_",
    strict: bool = False,
) -> SubcheckConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file
    3. Default values

    Args:
        config_path: Path to config file (default: ~/.config/subcheck/config.yaml)
        env_prefix: Prefix for environment variables
        strict: Raise ConfigLoadError for an unreadable file instead of
            logging a warning and keeping the defaults

    Returns:
        Loaded configuration
    """
    if config_path is None:
        env_path = os.environ.get(f"{env_prefix}CONFIG_PATH")
        if env_path:
            config_path = Path(env_path)
        else:
            config_path = DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE

    config = SubcheckConfig(config_path=Path(config_path))

    if config.config_path.exists():
        try:
            config = _load_from_file(config.config_path, config)
        except ConfigLoadError as e:
            if strict:
                raise
            logger.warning(f"Failed to load config from {config.config_path}: {e}")

    config = _load_from_env(config, env_prefix)

    return config


def _load_from_file(path: Path, config: SubcheckConfig) -> SubcheckConfig:
    """Load configuration from the YAML document."""
    data = read_document(path)

    if SOURCE_LIST_KEY in data:
        value = data[SOURCE_LIST_KEY]
        config.sub_urls = list(value) if isinstance(value, list) else value

    if CHECK_INTERVAL_KEY in data:
        config.scheduler.check_interval = _as_int(data[CHECK_INTERVAL_KEY], CHECK_INTERVAL_KEY, path)
    if CRON_EXPRESSION_KEY in data:
        config.scheduler.cron_expression = str(data[CRON_EXPRESSION_KEY] or "").strip()

    if FAIL_REMOVE_KEY in data:
        config.lifecycle.fail_threshold = _as_int(data[FAIL_REMOVE_KEY], FAIL_REMOVE_KEY, path)

    if TIMEOUT_KEY in data:
        try:
            config.probe.timeout = float(data[TIMEOUT_KEY])
        except (TypeError, ValueError) as e:
            raise ConfigLoadError(f"Invalid value for '{TIMEOUT_KEY}': {e}", path) from e
    if RETRIES_KEY in data:
        config.probe.retries = _as_int(data[RETRIES_KEY], RETRIES_KEY, path)

    if LOG_LEVEL_KEY in data and data[LOG_LEVEL_KEY]:
        config.logging.level = str(data[LOG_LEVEL_KEY]).upper()

    return config


def _as_int(value: Any, key: str, path: Path) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"Invalid value for '{key}': {value!r}", path) from e


def _load_from_env(config: SubcheckConfig, prefix: str) -> SubcheckConfig:
    """Load configuration from environment variables."""

    # Scheduler settings
    if env_val := os.environ.get(f"{prefix}CHECK_INTERVAL"):
        try:
            config.scheduler.check_interval = int(env_val)
        except ValueError:
            logger.warning(f"Ignoring invalid {prefix}CHECK_INTERVAL: {env_val!r}")
    if env_val := os.environ.get(f"{prefix}CRON_EXPRESSION"):
        config.scheduler.cron_expression = env_val.strip()

    # Lifecycle settings
    if env_val := os.environ.get(f"{prefix}SUB_URLS_FAIL_REMOVE"):
        try:
            config.lifecycle.fail_threshold = int(env_val)
        except ValueError:
            logger.warning(f"Ignoring invalid {prefix}SUB_URLS_FAIL_REMOVE: {env_val!r}")

    # Logging settings
    if env_val := os.environ.get(f"{prefix}LOG_LEVEL"):
        config.logging.level = env_val.upper()

    # Paths
    if env_val := os.environ.get(f"{prefix}DATA_DIR"):
        config.data_dir = Path(env_val)

    return config


def ensure_directories(config: SubcheckConfig) -> None:
    """Ensure all required directories exist."""
    config.config_dir.mkdir(parents=True, exist_ok=True)
    config.data_dir.mkdir(parents=True, exist_ok=True)


def _validate_cron(cron: str) -> bool:
    """Validate a 5 or 6 field cron expression."""
    parts = cron.split()
    if len(parts) not in (5, 6):
        return False
    if len(parts) == 6:
        # croniter expects seconds last
        parts = parts[1:] + parts[:1]
    return croniter.is_valid(" ".join(parts))


def validate_config(config: Optional[SubcheckConfig] = None) -> List[ValidationError]:
    """
    Validate configuration and return list of errors.

    Args:
        config: Configuration to validate (default: loaded from file)

    Returns:
        List of validation errors (empty if valid)
    """
    if config is None:
        config = load_config()

    errors: List[ValidationError] = []

    if not config.config_path.exists():
        errors.append(ValidationError(
            field="config_path",
            message=f"Configuration file does not exist: {config.config_path}",
            severity="error"
        ))

    # Subscription list
    if not isinstance(config.sub_urls, list):
        errors.append(ValidationError(
            field=SOURCE_LIST_KEY,
            message="Subscription list must be a list",
            severity="error"
        ))
    elif not config.sub_urls:
        errors.append(ValidationError(
            field=SOURCE_LIST_KEY,
            message="No subscriptions configured, rounds will be empty.",
            severity="warning"
        ))

    # Scheduler validation
    if config.scheduler.check_interval <= 0:
        errors.append(ValidationError(
            field=CHECK_INTERVAL_KEY,
            message=f"Check interval must be positive: {config.scheduler.check_interval}",
            severity="error"
        ))
    if config.scheduler.cron_expression and not _validate_cron(config.scheduler.cron_expression):
        errors.append(ValidationError(
            field=CRON_EXPRESSION_KEY,
            message=(
                f"Invalid cron expression: {config.scheduler.cron_expression}. "
                "The check interval will be used instead."
            ),
            severity="warning"
        ))

    # Probe validation
    if config.probe.timeout <= 0:
        errors.append(ValidationError(
            field=TIMEOUT_KEY,
            message=f"Timeout must be positive: {config.probe.timeout}",
            severity="error"
        ))

    # Check if the config directory is writable, eviction rewrites the file
    try:
        if config.config_dir.exists():
            test_file = config.config_dir / ".write_test"
            test_file.touch()
            test_file.unlink()
    except (PermissionError, OSError):
        errors.append(ValidationError(
            field="config_dir",
            message=f"Config directory is not writable: {config.config_dir}",
            severity="error"
        ))

    return errors


def _config_to_dict(config: SubcheckConfig) -> dict[str, Any]:
    """
    Convert configuration to dictionary.

    Args:
        config: Configuration to convert

    Returns:
        Dictionary representation of config
    """
    return {
        "config_path": str(config.config_path),
        "data_dir": str(config.data_dir),
        "ledger_path": str(config.ledger_path),
        "sub_urls": config.sub_urls,
        "scheduler": {
            "check_interval": config.scheduler.check_interval,
            "cron_expression": config.scheduler.cron_expression,
            "mode": str(config.timing_mode()),
        },
        "lifecycle": {
            "fail_threshold": config.lifecycle.fail_threshold,
            "enabled": config.lifecycle.fail_threshold > 0,
        },
        "probe": {
            "timeout": config.probe.timeout,
            "retries": config.probe.retries,
            "user_agent": config.probe.user_agent,
        },
        "logging": {
            "level": config.logging.level,
            "format": config.logging.format,
            "file": str(config.logging.file) if config.logging.file else None,
        },
    }


def export_config_yaml(config: SubcheckConfig) -> str:
    """
    Export configuration as YAML string.

    Args:
        config: Configuration to export

    Returns:
        YAML string representation of config
    """
    config_dict = _config_to_dict(config)
    return yaml.dump(config_dict, default_flow_style=False, sort_keys=False, allow_unicode=True)


def export_config_json(config: SubcheckConfig) -> str:
    """
    Export configuration as JSON string.

    Args:
        config: Configuration to export

    Returns:
        JSON string representation of config
    """
    config_dict = _config_to_dict(config)
    return json.dumps(config_dict, indent=2)
