"""
Centralized Settings Loader

This module provides a single point of access for all runtime configuration.
All backend modules should import settings from here instead of defining their own.

Usage:
    from config.settings_loader import settings, save_settings, reset_settings

    # Access settings
    latency = settings["agent"]["command_latency_seconds"]

    # Update settings
    settings["scheduler"]["tick_seconds"] = 0.5
    save_settings()

    # Reset to defaults
    reset_settings()
"""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
CONFIG_DIR = Path(__file__).parent
PROJECT_ROOT = CONFIG_DIR.parent
SETTINGS_FILE = CONFIG_DIR / "settings.json"
DEFAULTS_FILE = CONFIG_DIR / "settings.defaults.json"

# Environment override for the durable storage directory
DATA_DIR_ENV = "BROWSER_AGENT_DATA_DIR"

# --- Settings Cache ---
_settings_cache = None

def load_settings() -> dict:
    """Load settings from file. Uses cache if already loaded."""
    global _settings_cache
    if _settings_cache is None:
        if SETTINGS_FILE.exists():
            _settings_cache = json.loads(SETTINGS_FILE.read_text())
        elif DEFAULTS_FILE.exists():
            # Fall back to defaults if settings.json doesn't exist
            _settings_cache = json.loads(DEFAULTS_FILE.read_text())
            save_settings()  # Create settings.json from defaults
        else:
            raise FileNotFoundError(f"No settings files found in {CONFIG_DIR}")
    return _settings_cache

def save_settings() -> None:
    """Save current settings to file."""
    global _settings_cache
    if _settings_cache is not None:
        SETTINGS_FILE.write_text(json.dumps(_settings_cache, indent=2))

def reset_settings() -> dict:
    """Reset settings to defaults."""
    global _settings_cache
    if DEFAULTS_FILE.exists():
        _settings_cache = json.loads(DEFAULTS_FILE.read_text())
        save_settings()
    return _settings_cache

def reload_settings() -> dict:
    """Force reload settings from disk (useful after external changes)."""
    global _settings_cache
    _settings_cache = None
    return load_settings()

# --- Convenience Accessors ---
# These provide direct access to commonly used settings

def get_data_dir() -> Path:
    """Directory holding the browserConfig / conversationContext / scheduledTasks files."""
    override = os.getenv(DATA_DIR_ENV)
    if override:
        return Path(override)
    path = Path(load_settings()["storage"]["data_dir"])
    return path if path.is_absolute() else PROJECT_ROOT / path

def get_command_latency() -> float:
    """Simulated browser work per command, in seconds."""
    return float(load_settings()["agent"]["command_latency_seconds"])

def get_reveal_delay() -> float:
    """Pause between revealed words when streaming a response."""
    return float(load_settings()["agent"]["reveal_delay_seconds"])

def get_max_history() -> int:
    return int(load_settings()["context"]["max_history"])

def get_scheduler_setting(key: str):
    """Get a scheduler setting (default_interval_minutes, max_results_per_task, tick_seconds)."""
    return load_settings()["scheduler"][key]

def get_event_history_size() -> int:
    return int(load_settings()["events"]["history_size"])

def get_server_setting(key: str):
    return load_settings()["server"][key]

# --- Initialize on import ---
settings = load_settings()
