"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Environment variables (MAAT_DB_PATH, MAAT_SYMBOLS)
  2. Project config (.maat/config.yaml)
  3. User config (~/.maat/config.yaml)
  4. Defaults

Tokens for external trackers are never stored in config files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_DB_PATH = ".maat/graph.db"
SYMBOL_MODES = ("unicode", "ascii", "auto")


@dataclass
class StoreConfig:
    """Graph database location. Relative paths resolve against the project."""
    path: str = DEFAULT_DB_PATH

    def validate(self) -> Optional[str]:
        if not self.path:
            return "Store path cannot be empty"
        return None


@dataclass
class DisplayConfig:
    """Display preferences."""
    symbols: str = "auto"  # "unicode" | "ascii" | "auto"

    def validate(self) -> Optional[str]:
        if self.symbols not in SYMBOL_MODES:
            return f"Unknown symbols setting '{self.symbols}'. Valid: {', '.join(SYMBOL_MODES)}"
        return None


@dataclass
class SourcesConfig:
    """Limits for local ingestion scanners."""
    max_files: int = 200
    max_commits: int = 50

    def validate(self) -> Optional[str]:
        if self.max_files <= 0:
            return f"sources.max_files must be positive, got {self.max_files}"
        if self.max_commits <= 0:
            return f"sources.max_commits must be positive, got {self.max_commits}"
        return None


@dataclass
class Config:
    """Application configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store": {
                "path": self.store.path
            },
            "display": {
                "symbols": self.display.symbols
            },
            "sources": {
                "max_files": self.sources.max_files,
                "max_commits": self.sources.max_commits
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        store_data = data.get("store", {}) or {}
        display_data = data.get("display", {}) or {}
        sources_data = data.get("sources", {}) or {}

        return cls(
            store=StoreConfig(
                path=str(store_data.get("path", DEFAULT_DB_PATH))
            ),
            display=DisplayConfig(
                symbols=display_data.get("symbols", "auto")
            ),
            sources=SourcesConfig(
                max_files=int(sources_data.get("max_files", 200)),
                max_commits=int(sources_data.get("max_commits", 50))
            )
        )


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment
      2. Project config (.maat/config.yaml)
      3. User config (~/.maat/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".maat"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".maat"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        config_data: Dict[str, Any] = {}

        # Layer 1: User config
        config_data = self._merge(config_data, self._read_yaml(self.user_config_path))

        # Layer 2: Project config (higher priority)
        config_data = self._merge(config_data, self._read_yaml(self.project_config_path))

        # Layer 3: Environment overrides
        if os.environ.get("MAAT_DB_PATH"):
            config_data.setdefault("store", {})["path"] = os.environ["MAAT_DB_PATH"]
        if os.environ.get("MAAT_SYMBOLS"):
            config_data.setdefault("display", {})["symbols"] = os.environ["MAAT_SYMBOLS"]

        try:
            self._config = Config.from_dict(config_data)
        except (TypeError, ValueError):
            self._config = Config()  # Malformed values: fall back to defaults
        return self._config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return {}  # Ignore malformed config
        return data if isinstance(data, dict) else {}

    @property
    def db_path(self) -> Path:
        """Resolved graph database path."""
        path = Path(self.load().store.path).expanduser()
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self.user_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.user_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "display.symbols")
            value: Value to set
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'display.symbols')"

        section, setting = parts

        if section == "store":
            if setting == "path":
                config.store.path = value
            else:
                return f"Unknown store setting: {setting}. Valid: path"
            error = config.store.validate()

        elif section == "display":
            if setting == "symbols":
                config.display.symbols = value
            else:
                return f"Unknown display setting: {setting}. Valid: symbols"
            error = config.display.validate()

        elif section == "sources":
            if setting not in ("max_files", "max_commits"):
                return f"Unknown sources setting: {setting}. Valid: max_files, max_commits"
            try:
                number = int(value)
            except ValueError:
                return f"sources.{setting} must be an integer, got '{value}'"
            setattr(config.sources, setting, number)
            error = config.sources.validate()

        else:
            return f"Unknown section: {section}. Valid: store, display, sources"

        if error:
            self._config = None  # Drop the rejected in-memory change
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        data = self.load().to_dict()

        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts
        value = data.get(section, {}).get(setting)
        return None if value is None else str(value)

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()

        lines = [
            "Store:",
            f"  Path: {config.store.path}",
            f"  Resolved: {self.db_path}",
            "",
            "Display:",
            f"  Symbols: {config.display.symbols}",
            "",
            "Sources:",
            f"  Max files: {config.sources.max_files}",
            f"  Max commits: {config.sources.max_commits}",
            "",
            "Config files:",
            f"  User: {self.user_config_path}",
            f"  Project: {self.project_config_path}",
        ]

        return "\n".join(lines)


def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
