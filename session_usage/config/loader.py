"""
Configuration management and loading.

Handles the optional YAML config file and environment defaults.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from session_usage.core.colors import RGB
from session_usage.log import level_from_name

CONFIG_FILENAME = "config.yaml"
APP_DIRNAME = "session-usage"
AGENT_DIR_ENV = "PI_CODING_AGENT_DIR"

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")

FOREGROUND_ROLES = ("text", "dim", "success", "warning", "error", "accent")
BACKGROUND_ROLES = ("tool_pending_bg",)

# Catppuccin Mocha
DEFAULT_FOREGROUNDS: Dict[str, RGB] = {
    "text": RGB(205, 214, 244),
    "dim": RGB(127, 132, 156),
    "success": RGB(166, 227, 161),
    "warning": RGB(249, 226, 175),
    "error": RGB(243, 139, 168),
    "accent": RGB(137, 180, 250),
}
DEFAULT_BACKGROUNDS: Dict[str, Optional[RGB]] = {
    "tool_pending_bg": RGB(49, 50, 68),
}


@dataclass(frozen=True)
class ThemeConfig:
    """Colors for each theme role; a background of None means terminal default."""
    foregrounds: Dict[str, RGB] = field(default_factory=lambda: dict(DEFAULT_FOREGROUNDS))
    backgrounds: Dict[str, Optional[RGB]] = field(default_factory=lambda: dict(DEFAULT_BACKGROUNDS))


@dataclass(frozen=True)
class UsageConfig:
    """Complete application configuration."""
    sessions_dir: Path
    log_level: str = "warning"
    theme: ThemeConfig = field(default_factory=ThemeConfig)


def default_agent_dir(environ: Optional[Dict[str, str]] = None) -> Path:
    environ = os.environ if environ is None else environ
    override = environ.get(AGENT_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".pi" / "agent"


def default_sessions_dir(environ: Optional[Dict[str, str]] = None) -> Path:
    return default_agent_dir(environ) / "sessions"


def default_config_path(environ: Optional[Dict[str, str]] = None) -> Path:
    environ = os.environ if environ is None else environ
    base = environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base).expanduser() / APP_DIRNAME / CONFIG_FILENAME


def load_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> UsageConfig:
    """Load and validate configuration.

    An explicit path must exist. Without one, the default location is used
    when present and built-in defaults otherwise.

    Args:
        path: Path to a YAML configuration file
        environ: Environment to read defaults from (defaults to os.environ)

    Returns:
        Validated UsageConfig

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        config_path = default_config_path(environ)
        if not config_path.exists():
            return UsageConfig(sessions_dir=default_sessions_dir(environ))
    else:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {config_path}: {e}")

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {"sessions_dir", "log_level", "theme"}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    sessions_dir = raw_config.get("sessions_dir")
    if sessions_dir is None:
        resolved_dir = default_sessions_dir(environ)
    elif isinstance(sessions_dir, str) and sessions_dir.strip():
        resolved_dir = Path(sessions_dir).expanduser()
    else:
        raise ValueError("'sessions_dir' must be a non-empty string")

    log_level = raw_config.get("log_level", "warning")
    if not isinstance(log_level, str):
        raise ValueError("'log_level' must be a string")
    level_from_name(log_level)

    theme_data = raw_config.get("theme", {})
    if theme_data is None:
        theme_data = {}
    if not isinstance(theme_data, dict):
        raise ValueError("'theme' must be a dictionary")

    return UsageConfig(
        sessions_dir=resolved_dir,
        log_level=log_level.lower(),
        theme=_parse_theme(theme_data),
    )


def _parse_theme(data: Dict) -> ThemeConfig:
    """Parse and validate theme colors.

    Raises:
        ValueError: If a role is unknown or a color is invalid
    """
    unknown_roles = set(data.keys()) - set(FOREGROUND_ROLES) - set(BACKGROUND_ROLES)
    if unknown_roles:
        raise ValueError(f"Unknown theme roles: {unknown_roles}")

    foregrounds = dict(DEFAULT_FOREGROUNDS)
    backgrounds = dict(DEFAULT_BACKGROUNDS)
    for role, value in data.items():
        if role in BACKGROUND_ROLES:
            backgrounds[role] = None if value is None else parse_hex_color(value, f"theme.{role}")
        else:
            foregrounds[role] = parse_hex_color(value, f"theme.{role}")

    return ThemeConfig(foregrounds=foregrounds, backgrounds=backgrounds)


def parse_hex_color(value: object, path: str = "color") -> RGB:
    """Parse `#rrggbb` (the `#` is optional).

    Raises:
        ValueError: If the value is not a six-digit hex color
    """
    if not isinstance(value, str):
        raise ValueError(f"'{path}' must be a hex color string")
    match = _HEX_COLOR.match(value.strip())
    if not match:
        raise ValueError(f"'{path}' must look like #rrggbb, got {value!r}")
    digits = match.group(1)
    return RGB(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
