"""Tests for config loading."""

import os
import tempfile

from bodyfatai.config import BodyFatConfig, load_config


def test_load_config_defaults(monkeypatch):
    """Loading with no path returns all defaults."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    config = load_config()
    assert isinstance(config, BodyFatConfig)
    assert config.capture.max_dimension == 1024
    assert config.capture.jpeg_quality == 0.7
    assert config.capture.camera_index == 0
    assert config.vision.backend == "gemini"
    assert config.vision.timeout == 120.0
    assert config.vision.gemini.model == "gemini-2.5-flash"
    assert config.vision.gemini.api_key == ""
    assert config.share.branding == "BodyFatAI Analysis"
    assert config.share.debounce == 0.5
    assert config.share.adjustable is True
    assert config.share.output_dir == "."
    assert config.reminder.enabled is True
    assert config.reminder.interval_days == 14


def test_load_config_nonexistent_file():
    """Loading a nonexistent file returns defaults."""
    config = load_config("/nonexistent/path.toml")
    assert config.capture.max_dimension == 1024


def test_load_config_from_toml():
    """Loading a valid TOML file populates config."""
    toml_content = b"""\
[capture]
max_dimension = 800
jpeg_quality = 0.5
camera_index = 2

[vision]
backend = "claude"
timeout = 30

[vision.claude]
api_key = "test-key-123"
model = "claude-test"

[share]
branding = "Gym Buddy"
debounce = 0.25
output_dir = "/tmp/cards"
adjustable = false

[reminder]
enabled = false
db_path = "/tmp/x.db"
interval_days = 7
"""
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(toml_content)
        f.flush()
        config = load_config(f.name)

    os.unlink(f.name)

    assert config.capture.max_dimension == 800
    assert config.capture.jpeg_quality == 0.5
    assert config.capture.camera_index == 2
    assert config.vision.backend == "claude"
    assert config.vision.timeout == 30
    assert config.vision.claude.api_key == "test-key-123"
    assert config.vision.claude.model == "claude-test"
    assert config.share.branding == "Gym Buddy"
    assert config.share.debounce == 0.25
    assert config.share.adjustable is False
    assert config.share.output_dir == "/tmp/cards"
    assert config.reminder.enabled is False
    assert config.reminder.db_path == "/tmp/x.db"
    assert config.reminder.interval_days == 7


def test_load_config_env_override(monkeypatch):
    """Environment variables fill empty API keys."""
    monkeypatch.setenv("GEMINI_API_KEY", "env-gemini-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-anthropic-key")

    config = load_config()
    assert config.vision.gemini.api_key == "env-gemini-key"
    assert config.vision.claude.api_key == "env-anthropic-key"


def test_load_config_file_key_takes_precedence(monkeypatch):
    """Config file API key takes precedence over env var."""
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")

    toml_content = b"""\
[vision.gemini]
api_key = "file-key"
"""
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(toml_content)
        f.flush()
        config = load_config(f.name)

    os.unlink(f.name)
    assert config.vision.gemini.api_key == "file-key"
