import json
from dataclasses import asdict
from pathlib import Path

from config import (
    Config,
    apply_dict_to_dataclass,
    migrate_config,
    nest_legacy_params,
)
from logging_utils import log_event


def get_config_dir() -> Path:
    """Get config directory in the user's home."""
    config_dir = Path.home() / '.spirosynth'
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_file() -> Path:
    """Get config file path."""
    return get_config_dir() / 'config.json'


def save_config(config: Config, path: Path | None = None) -> bool:
    """Save config to JSON file."""
    try:
        config_file = Path(path) if path is not None else get_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(asdict(config), f, indent=2)
        log_event("INFO", "Config", "Saved", path=config_file)
        return True
    except (OSError, TypeError, ValueError) as e:
        log_event("ERROR", "Config", "Failed to save", error=e)
        return False


def config_from_dict(data: dict) -> Config:
    """Build a migrated Config from a loaded dict (nested or flat)."""
    data = nest_legacy_params(data)
    config = Config()
    apply_dict_to_dataclass(config, data)
    migrate_config(config, data.get('version'))
    return config


def load_config(path: Path | None = None) -> Config:
    """Load config from JSON file, returns default if not found."""
    try:
        config_file = Path(path) if path is not None else get_config_file()
        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            loaded_version = data.get('version') if isinstance(data, dict) else None
            config = config_from_dict(data if isinstance(data, dict) else {})
            log_event("INFO", "Config", "Loaded", path=config_file, version=config.version)

            if loaded_version != config.version:
                save_config(config, config_file)
            return config

        log_event("INFO", "Config", "No saved config found, using defaults")
        return Config()
    except (OSError, ValueError) as e:
        log_event("ERROR", "Config", "Failed to load, using defaults", error=e)
        return Config()
