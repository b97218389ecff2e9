"""Locations of enshrine's own files.

Configuration and history follow the XDG Base Directory layout:
- Config: $XDG_CONFIG_HOME/enshrine/ (default ~/.config/enshrine/)
- State: $XDG_STATE_HOME/enshrine/ (default ~/.local/state/enshrine/)

Deployment targets, their backups and snapshots live wherever the
operator points enshrine and are not governed by this module.
"""

import os
from pathlib import Path

APP_NAME = "enshrine"

_XDG_FALLBACKS = {
    "XDG_CONFIG_HOME": Path(".config"),
    "XDG_STATE_HOME": Path(".local") / "state",
}


def _xdg_app_dir(env_var: str) -> Path:
    base = os.environ.get(env_var)
    root = Path(base) if base else Path.home() / _XDG_FALLBACKS[env_var]
    return root / APP_NAME


def get_config_dir() -> Path:
    """Directory holding config.toml and theme.toml."""
    return _xdg_app_dir("XDG_CONFIG_HOME")


def get_state_dir() -> Path:
    """Directory holding the deployment history."""
    return _xdg_app_dir("XDG_STATE_HOME")


def get_config_path() -> Path:
    """Default configuration file, used when --config is not given."""
    return get_config_dir() / "config.toml"


def get_user_theme_path() -> Path:
    """User color overrides merged over the bundled theme."""
    return get_config_dir() / "theme.toml"


def get_history_path() -> Path:
    """JSON Lines file that deploy and finalise runs are appended to."""
    return get_state_dir() / "history.jsonl"
