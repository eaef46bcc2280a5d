"""
Unit tests for configuration loading and validation.

Tests strict validation and defaults for the usage config.
"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from session_usage.config.loader import (
    DEFAULT_BACKGROUNDS,
    DEFAULT_FOREGROUNDS,
    default_config_path,
    default_sessions_dir,
    load_config,
    parse_hex_color,
)
from session_usage.core.colors import RGB


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.environ = {"XDG_CONFIG_HOME": self.temp_dir, "PI_CODING_AGENT_DIR": "/agent"}

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_path = self._write_config({
            "sessions_dir": "/data/sessions",
            "log_level": "DEBUG",
            "theme": {"dim": "#010203", "tool_pending_bg": None},
        })

        config = load_config(config_path, self.environ)

        assert config.sessions_dir == Path("/data/sessions")
        assert config.log_level == "debug"
        assert config.theme.foregrounds["dim"] == RGB(1, 2, 3)
        assert config.theme.foregrounds["text"] == DEFAULT_FOREGROUNDS["text"]
        assert config.theme.backgrounds["tool_pending_bg"] is None

    def test_defaults_without_config_file(self):
        """Test built-in defaults when no config file exists."""
        config = load_config(None, self.environ)

        assert config.sessions_dir == Path("/agent/sessions")
        assert config.log_level == "warning"
        assert config.theme.backgrounds == DEFAULT_BACKGROUNDS

    def test_default_location_is_used(self):
        """Test the XDG config file is picked up without a path."""
        os.makedirs(os.path.join(self.temp_dir, "session-usage"))
        self._write_config({"log_level": "info"}, os.path.join("session-usage", "config.yaml"))

        assert load_config(None, self.environ).log_level == "info"

    def test_empty_file_uses_defaults(self):
        """Test an empty YAML document is valid."""
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, "w").close()

        config = load_config(config_path, self.environ)
        assert config.sessions_dir == Path("/agent/sessions")

    def test_missing_explicit_file(self):
        """Test that a missing explicit path raises."""
        with pytest.raises(FileNotFoundError):
            load_config(os.path.join(self.temp_dir, "nope.yaml"), self.environ)

    def test_unknown_top_level_key(self):
        """Test that unknown keys are rejected."""
        config_path = self._write_config({"sessions": "/x"})
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_config(config_path, self.environ)

    def test_non_mapping_config(self):
        """Test that a list document is rejected."""
        config_path = self._write_config(["a", "b"])
        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(config_path, self.environ)

    def test_invalid_log_level(self):
        """Test that unknown log levels are rejected."""
        config_path = self._write_config({"log_level": "chatty"})
        with pytest.raises(ValueError, match="Unknown log level"):
            load_config(config_path, self.environ)

    def test_blank_sessions_dir(self):
        """Test that an empty sessions_dir is rejected."""
        config_path = self._write_config({"sessions_dir": "  "})
        with pytest.raises(ValueError, match="sessions_dir"):
            load_config(config_path, self.environ)

    def test_unknown_theme_role(self):
        """Test that unknown theme roles are rejected."""
        config_path = self._write_config({"theme": {"sparkle": "#ffffff"}})
        with pytest.raises(ValueError, match="Unknown theme roles"):
            load_config(config_path, self.environ)

    def test_invalid_yaml(self):
        """Test that malformed YAML raises a YAML error."""
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            f.write("theme: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(config_path, self.environ)


class TestDefaults:
    """Test environment-derived defaults."""

    def test_sessions_dir_from_home(self):
        """Test fallback to the home agent directory."""
        assert default_sessions_dir({}) == Path.home() / ".pi" / "agent" / "sessions"

    def test_config_path_from_xdg(self):
        """Test XDG_CONFIG_HOME is honored."""
        assert default_config_path({"XDG_CONFIG_HOME": "/cfg"}) == Path("/cfg/session-usage/config.yaml")


class TestParseHexColor:
    """Test hex color parsing."""

    def test_valid_colors(self):
        """Test with and without the leading hash."""
        assert parse_hex_color("#ff8000") == RGB(255, 128, 0)
        assert parse_hex_color("FF8000") == RGB(255, 128, 0)

    def test_invalid_colors(self):
        """Test malformed values raise ValueError."""
        for value in ["#fff", "red", 123, None]:
            with pytest.raises(ValueError):
                parse_hex_color(value, "theme.text")
