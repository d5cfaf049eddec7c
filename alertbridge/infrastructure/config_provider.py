"""
YAML Config Provider
====================

Thread-safe runtime configuration manager with hot-reload support.

The YAML file holds the integration configuration (see
``alertbridge.config.runtime``). Environment settings for the CMDB base URL
and token take precedence over the file so secrets can stay out of it.
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from alertbridge.config import Settings
from alertbridge.config.runtime import IConfigProvider, RuntimeConfig
from alertbridge.core import ConfigurationException
from alertbridge.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for config file changes."""

    def __init__(self, config_manager: "YAMLConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("Config file changed", extra={"path": str(event.src_path)})
            self.config_manager.reload()


class YAMLConfigManager(IConfigProvider):
    """
    Runtime config provider backed by a YAML file.

    Uses watchdog to monitor file changes and reload configuration
    without restarting the service. A reload that fails validation keeps
    the previous configuration.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._config: Optional[RuntimeConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> RuntimeConfig:
        """Initial configuration load; invalid files are fatal here."""
        self._path = path
        try:
            config = self._load_from_file(path)
        except (yaml.YAMLError, ValidationError) as e:
            raise ConfigurationException(f"Invalid configuration file {path}: {e}")
        with self._lock:
            self._config = config
        return config

    def _load_from_file(self, path: Path) -> RuntimeConfig:
        """Load and parse YAML config file, then apply environment overrides."""
        if not path.exists():
            logger.warning("Config file not found, using defaults", extra={"path": str(path)})
            data = {}
        else:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}

        if self._settings is not None:
            cmdb = data.setdefault("cmdb", {})
            if self._settings.cmdb_base_url:
                cmdb["base_url"] = self._settings.cmdb_base_url
            if self._settings.cmdb_api_token:
                cmdb["api_token"] = self._settings.cmdb_api_token

        return RuntimeConfig.model_validate(data)

    def reload(self) -> bool:
        """Reload configuration from file."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.error("Failed to reload config, keeping previous", extra={"error": str(e)})
            return False

        with self._lock:
            self._config = new_config
        logger.info("Runtime configuration reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching configuration file for changes.

        Skips watching if the file doesn't exist or the platform cannot
        provide file notifications (e.g. some containers).
        """
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info("Config file doesn't exist, skipping file watch", extra={"path": str(self._path)})
            return

        try:
            self._observer = Observer()
            self._observer.schedule(
                ConfigFileHandler(self, self._path),
                str(self._path.parent),
                recursive=False
            )
            self._observer.start()
            logger.info("Started watching config file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static config", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching configuration file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def get_config(self) -> RuntimeConfig:
        with self._lock:
            if self._config is None:
                raise RuntimeError("Runtime configuration not loaded")
            return self._config
