"""
Intake External Integrations
=============================

Keyword rule providers:
- StaticRulesProvider: fixed rule tables, used by tests and embedding callers
- RulesConfigManager: YAML rules file with watchdog hot-reload
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from core import ConfigurationException
from intake.application.services import IRulesProvider
from intake.domain import RulesConfig
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class StaticRulesProvider(IRulesProvider):
    """Serves one immutable RulesConfig."""

    def __init__(self, rules: Optional[RulesConfig] = None):
        self._rules = rules or RulesConfig()

    def get_rules(self) -> RulesConfig:
        return self._rules


class RulesFileHandler(FileSystemEventHandler):
    """Watchdog event handler for rules file changes."""

    def __init__(self, manager: "RulesConfigManager", path: Path):
        self.manager = manager
        self.path = path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.path.resolve():
            logger.info(f"Rules file changed: {event.src_path}")
            self.manager.reload()

    on_created = on_modified


class RulesConfigManager(IRulesProvider):
    """
    Thread-safe keyword rules provider with hot-reload support.

    The initial load fails loudly on a malformed file. Later reloads keep
    the last good configuration when the new file does not parse.
    """

    def __init__(self):
        self._config: Optional[RulesConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> RulesConfig:
        """Initial configuration load."""
        self._path = Path(path)
        try:
            config = self._load_from_file(self._path)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise ConfigurationException(
                f"Invalid rules file: {self._path}", {"error": str(e)}
            ) from e
        with self._lock:
            self._config = config
        return config

    def _load_from_file(self, path: Path) -> RulesConfig:
        if not path.exists():
            logger.warning(f"Rules file not found: {path}, using defaults")
            return RulesConfig()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise TypeError(f"rules file must hold a mapping, got {type(data).__name__}")
        return RulesConfig(**data)

    def reload(self) -> bool:
        """Reload configuration from file, keeping the old one on failure."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
            logger.error(f"Failed to reload rules config: {e}", extra={"path": str(self._path)})
            return False

        with self._lock:
            self._config = new_config
        logger.info("Rules configuration reloaded successfully")
        return True

    def start_watching(self) -> None:
        """Watch the rules file for changes. No-op when the file does not exist."""
        if self._path is None:
            raise RuntimeError("Rules not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(f"Rules file doesn't exist, skipping file watch: {self._path}")
            return

        try:
            self._observer = Observer()
            self._observer.schedule(
                RulesFileHandler(self, self._path),
                str(self._path.parent.resolve()),
                recursive=False,
            )
            self._observer.start()
            logger.info(f"Started watching rules file: {self._path}")
        except OSError as e:
            logger.warning(f"File watching not available, using static rules: {e}")
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    @property
    def config(self) -> RulesConfig:
        with self._lock:
            if self._config is None:
                raise RuntimeError("Rules configuration not loaded")
            return self._config

    def get_rules(self) -> RulesConfig:
        return self.config

    def close(self) -> None:
        self.stop_watching()
