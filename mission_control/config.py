# Mission Control - configuration
# Defaults below; override via config.yaml, environment, or CLI args.

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent / "config.yaml"
CONFIG_ENV = "MISSION_CONTROL_CONFIG"
DATA_ENV = "MISSION_CONTROL_DATA"


@dataclass
class Config:
    """Runtime configuration for the Mission Control server."""

    # Storage
    data_file: str = "~/.local/share/mission-control/data.json"

    # HTTP
    host: str = "127.0.0.1"
    port: int = 3333

    # Behavior
    default_user: str = "Adam"
    activity_limit: int = 100
    recent_activity: int = 10
    upcoming_days: int = 7

    # Link title fetch
    link_title_timeout: float = 5.0
    link_title_max_bytes: int = 50_000

    log_level: str = "INFO"

    def resolve_paths(self):
        """Apply the data-file env override and expand ~."""
        env = os.environ.get(DATA_ENV)
        if env:
            self.data_file = env
        self.data_file = str(Path(self.data_file).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        path = path or os.environ.get(CONFIG_ENV)
        cfg_path = Path(path) if path else CONFIG_PATH
        known = {f.name for f in fields(cls)}
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if k in known})
            except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring unreadable config {cfg_path}: {e}")
                cfg = cls()
        else:
            cfg = cls()
        cfg.resolve_paths()
        return cfg
