"""
SLA Configuration Loading
=========================

YAML-backed SLA configuration with hot reload:
- SLAConfigManager: loads sla_config.yaml and watches it with watchdog
- StaticConfigProvider: fixed configuration for embedding and tests
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from helpdesk_sla.config import Settings
from helpdesk_sla.core.exceptions import ConfigurationException
from helpdesk_sla.shared.infrastructure.logging import get_logger
from helpdesk_sla.sla.application.services import ISLAConfigProvider
from helpdesk_sla.sla.domain.value_objects import BusinessHoursConfig, SLAConfig

logger = get_logger(__name__)


def parse_sla_config(data: dict, default_hours: Optional[BusinessHoursConfig] = None) -> SLAConfig:
    """
    Build an SLAConfig from parsed YAML.

    ``default_hours`` supplies the calendar when the file has no
    ``business_hours`` section.

    Raises:
        ConfigurationException: the data does not describe a valid config
    """
    if not isinstance(data, dict):
        raise ConfigurationException("SLA config must be a mapping")

    if "business_hours" not in data and default_hours is not None:
        data = {**data, "business_hours": default_hours}

    try:
        return SLAConfig(**data)
    except ValidationError as e:
        raise ConfigurationException(
            f"Invalid SLA configuration: {e.error_count()} error(s)",
            {"errors": e.errors(include_url=False, include_context=False)}
        ) from e


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for SLA config file changes."""

    def __init__(self, config_manager: "SLAConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("Config file changed", extra={"path": str(event.src_path)})
            self.config_manager.reload()


class SLAConfigManager(ISLAConfigProvider):
    """
    Thread-safe SLA configuration manager with hot-reload support.

    Uses watchdog to monitor file changes and swap in a new configuration
    without restarting the service. A reload that fails validation keeps
    the previous configuration.
    """

    def __init__(self, default_hours: Optional[BusinessHoursConfig] = None):
        self._default_hours = default_hours
        self._config: Optional[SLAConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SLAConfigManager":
        try:
            default_hours = BusinessHoursConfig.from_settings(settings)
        except ValidationError as e:
            raise ConfigurationException(
                "Invalid default business hours in settings",
                {"errors": e.errors(include_url=False, include_context=False)}
            ) from e
        return cls(default_hours)

    def load(self, path: Path) -> SLAConfig:
        """
        Initial configuration load.

        Raises:
            ConfigurationException: the file exists but is invalid
        """
        self._path = Path(path)
        config = self._load_from_file(self._path)
        with self._lock:
            self._config = config
        return config

    def _load_from_file(self, path: Path) -> SLAConfig:
        """Load and parse YAML config file."""
        if not path.exists():
            logger.warning("SLA config file not found, using defaults", extra={"path": str(path)})
            return parse_sla_config({}, self._default_hours)

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(
                f"SLA config is not valid YAML: {path}", {"error": str(e)}
            ) from e

        return parse_sla_config(data, self._default_hours)

    def reload(self) -> bool:
        """Reload configuration from file."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except (ConfigurationException, OSError) as e:
            logger.error(
                "Failed to reload SLA config, keeping previous configuration",
                extra={"path": str(self._path), "error": str(e)}
            )
            return False

        with self._lock:
            self._config = new_config
        logger.info("SLA configuration reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching configuration file for changes.

        Skips watching if the file doesn't exist or the platform offers
        no file notifications (some container runtimes).
        """
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(
                "Config file doesn't exist, skipping file watch",
                extra={"path": str(self._path)}
            )
            return

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(handler, str(self._path.parent), recursive=False)
            self._observer.start()
            logger.info("Started watching config file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static config: %s", e)
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching configuration file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    @property
    def config(self) -> SLAConfig:
        """Get current configuration."""
        with self._lock:
            config = self._config
        if config is None:
            raise RuntimeError("SLA configuration not loaded")
        return config

    def get_config(self) -> SLAConfig:
        return self.config


class StaticConfigProvider(ISLAConfigProvider):
    """Config provider returning one fixed configuration."""

    def __init__(self, config: Optional[SLAConfig] = None):
        self._config = config or SLAConfig()

    def get_config(self) -> SLAConfig:
        return self._config
