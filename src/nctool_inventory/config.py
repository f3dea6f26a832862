"""
Settings locations and defaults.

Paths are resolved in order: explicit argument (CLI option), environment
variable, then a file under ``~/.nctool_inventory``.

Environment Variables:
    NCTOOL_SETTINGS      - plugin settings file holding {"tools": [...]}
    NCTOOL_APP_SETTINGS  - app settings file holding {"tool": {"count": N}}
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


CONFIG_DIR = Path.home() / ".nctool_inventory"

ENV_SETTINGS = "NCTOOL_SETTINGS"
ENV_APP_SETTINGS = "NCTOOL_APP_SETTINGS"

DEFAULT_SORT = "toolNumber-asc"
DEFAULT_THUMB_PX = 160

# tool-inventory-updated イベントの送信元
PLUGIN_ID = "com.ncsender.toolinventory"


def settings_path(explicit: Optional[str] = None) -> Path:
    value = explicit or os.getenv(ENV_SETTINGS)
    return Path(value).expanduser() if value else CONFIG_DIR / "settings.json"


def app_settings_path(explicit: Optional[str] = None) -> Path:
    value = explicit or os.getenv(ENV_APP_SETTINGS)
    return Path(value).expanduser() if value else CONFIG_DIR / "app_settings.json"
