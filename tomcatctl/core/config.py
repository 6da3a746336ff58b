"""
Configuration.

Builds the immutable Config object used for the lifetime of one process.

Sources, lowest to highest precedence:
    1. Built-in defaults
    2. YAML file (--config, $TOMCATCTL_CONFIG, or ~/.config/tomcatctl/config.yaml)
    3. Environment variables (TOMCAT_MANAGER_URL, CATALINA_HOME, ...)
    4. Command-line overrides

File format:
    manager:
      url: "http://localhost:8080/manager/text"
      username: "admin"
      password: "secret"
      timeout: 30
    server:
      home: "/opt/tomcat"
      base: "/var/lib/tomcat"
    logging:
      level: "WARNING"
      format: "console"

Usage:
    from tomcatctl.core.config import load_config
    config = load_config(overrides={"manager": {"url": "http://host:8080/manager/text"}})
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from tomcatctl.core.exceptions import ConfigurationError
from tomcatctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

CONFIG_ENV_VAR = "TOMCATCTL_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/tomcatctl/config.yaml")

# (section, key) for each supported environment variable
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "TOMCAT_MANAGER_URL": ("manager", "url"),
    "TOMCAT_MANAGER_USER": ("manager", "username"),
    "TOMCAT_MANAGER_PASSWORD": ("manager", "password"),
    "TOMCAT_MANAGER_TIMEOUT": ("manager", "timeout"),
    "CATALINA_HOME": ("server", "home"),
    "CATALINA_BASE": ("server", "base"),
    "TOMCATCTL_LOG_LEVEL": ("logging", "level"),
}


@dataclass(frozen=True)
class ManagerSettings:
    """Connection settings for the manager text interface."""

    url: str = "http://localhost:8080/manager/text"
    username: str = "admin"
    password: str = ""
    timeout: float = 30.0


@dataclass(frozen=True)
class ServerSettings:
    """Location of the local server installation."""

    home: Path | None = None
    base: Path | None = None
    bootstrap_class: str = "org.apache.catalina.startup.Bootstrap"
    control_script: str = "catalina.sh"

    @property
    def control_script_path(self) -> Path:
        """Path of the server's own control script.

        Raises:
            ConfigurationError: If the server home is not configured
        """
        if self.home is None:
            raise ConfigurationError(
                "CATALINA_HOME is not set; configure server.home or export CATALINA_HOME"
            )
        return self.home / "bin" / self.control_script

    @property
    def log_dir(self) -> Path:
        """Log directory of the server instance (base, falling back to home)."""
        root = self.base or self.home
        if root is None:
            raise ConfigurationError(
                "CATALINA_BASE and CATALINA_HOME are not set; cannot locate the log directory"
            )
        return root / "logs"


@dataclass(frozen=True)
class LoggingSettings:
    """Diagnostic logging settings."""

    level: str = "WARNING"
    format: str = "console"
    file: Path | None = None


@dataclass(frozen=True)
class Config:
    """Complete, read-only configuration for one tomcatctl process."""

    manager: ManagerSettings = field(default_factory=ManagerSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


_SECTIONS: dict[str, type] = {
    "manager": ManagerSettings,
    "server": ServerSettings,
    "logging": LoggingSettings,
}

_PATH_KEYS = {("server", "home"), ("server", "base"), ("logging", "file")}


def _coerce(section: str, key: str, value: Any) -> Any:
    """Convert a raw value from YAML or the environment to the field's type."""
    if (section, key) in _PATH_KEYS:
        return Path(str(value)).expanduser() if value not in (None, "") else None
    if (section, key) == ("manager", "timeout"):
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"manager.timeout must be a number, got {value!r}") from e
    if (section, key) == ("logging", "level"):
        return str(value).upper()
    return str(value)


def _apply(config: Config, section: str, values: Mapping[str, Any], source: str) -> Config:
    """Return a copy of config with the given section values applied."""
    settings_cls = _SECTIONS.get(section)
    if settings_cls is None:
        raise ConfigurationError(f"Unknown configuration section '{section}' in {source}")

    known = {f.name for f in fields(settings_cls)}
    changes = {}
    for key, value in values.items():
        if key not in known:
            raise ConfigurationError(f"Unknown configuration key '{section}.{key}' in {source}")
        if value is None and (section, key) not in _PATH_KEYS:
            continue
        changes[key] = _coerce(section, key, value)

    if not changes:
        return config
    return replace(config, **{section: replace(getattr(config, section), **changes)})


def _resolve_config_file(config_file: Path | None) -> Path | None:
    """Pick the YAML file to load, if any.

    An explicitly requested file (argument or environment variable) must exist;
    the default location is optional.
    """
    if config_file is not None:
        explicit = config_file.expanduser()
    elif os.environ.get(CONFIG_ENV_VAR):
        explicit = Path(os.environ[CONFIG_ENV_VAR]).expanduser()
    else:
        default = DEFAULT_CONFIG_PATH.expanduser()
        return default if default.is_file() else None

    if not explicit.is_file():
        raise ConfigurationError(f"Configuration file not found: {explicit}")
    return explicit


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Read and validate the shape of a YAML configuration file.

    Args:
        path: File to read

    Returns:
        Mapping of section name to key/value mapping

    Raises:
        ConfigurationError: If the file cannot be read or is not a mapping of mappings
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    for section, values in data.items():
        if values is not None and not isinstance(values, dict):
            raise ConfigurationError(f"Section '{section}' in {path} must be a mapping")
    return data


def load_config(
    config_file: Path | None = None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """
    Build the configuration for this process.

    Args:
        config_file: Explicit YAML file. If None, $TOMCATCTL_CONFIG or the default location is used.
        overrides: Per-section values from the command line; None values are ignored.
        environ: Environment mapping. If None, os.environ is used.

    Returns:
        Frozen Config instance

    Raises:
        ConfigurationError: If a configuration source is missing or invalid
    """
    environ = os.environ if environ is None else environ
    config = Config()

    path = _resolve_config_file(config_file)
    if path is not None:
        for section, values in load_config_file(path).items():
            config = _apply(config, section, values or {}, str(path))
        log_with_source(logger, "config", "debug", "Loaded configuration file", path=str(path))

    for var, (section, key) in ENV_OVERRIDES.items():
        if environ.get(var):
            config = _apply(config, section, {key: environ[var]}, f"${var}")

    for section, values in (overrides or {}).items():
        present = {k: v for k, v in values.items() if v is not None}
        config = _apply(config, section, present, "command line")

    return config
