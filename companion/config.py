"""
Engine configuration persistence.

Stores settings like the data directory and catalog path in a JSON file.
Environment variables override the file, the file overrides defaults.
"""

import json
import logging
import os
from pathlib import Path
from typing import TypedDict

logger = logging.getLogger(__name__)


class EngineConfig(TypedDict, total=False):
    """Engine configuration."""
    data_dir: str  # Where JsonPetStore keeps pets and logs
    catalog_path: str  # YAML species catalog
    log_level: str  # DEBUG, INFO, WARNING...


DEFAULT_CATALOG = Path(__file__).parent / "data" / "species.yaml"

DEFAULT_CONFIG: EngineConfig = {
    "data_dir": "data",
    "catalog_path": str(DEFAULT_CATALOG),
    "log_level": "INFO",
}

ENV_OVERRIDES: dict[str, str] = {
    "COMPANION_DATA_DIR": "data_dir",
    "COMPANION_CATALOG": "catalog_path",
    "COMPANION_LOG_LEVEL": "log_level",
}

CONFIG_FILENAME = ".companion_config.json"


def get_config_path(data_dir: Path | str = "data") -> Path:
    """Get path to config file."""
    return Path(data_dir) / CONFIG_FILENAME


def load_config(data_dir: Path | str = "data", use_env: bool = True) -> EngineConfig:
    """Load config from file and environment, or return defaults.

    use_env=False gives the file layered over defaults, which is what
    gets written back when settings change.
    """
    config = DEFAULT_CONFIG.copy()
    path = get_config_path(data_dir)

    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                saved = json.load(f)
            config.update(saved)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config {path}: {e}")

    if not use_env:
        return config

    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            config[key] = value

    return config


def save_config(config: EngineConfig, data_dir: Path | str = "data") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError as e:
        logger.warning(f"Could not save config {path}: {e}")
        return False


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for entry points (CLI, API server)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
