"""Tests for configuration loading."""

import pytest

from statline.config import (
    DEFAULT_BANDWIDTH_URL,
    ConfigError,
    DisplayOptions,
    Settings,
    load_settings,
    settings_from_mapping,
)

APP_YAML = """
refresh_interval: 2500
display:
  show_os: false
  icon_only: true
bandwidth:
  url: http://localhost:8080/payload
  timeout: 2
disk:
  strategy: native
  timeout: 1.5
traffic:
  source: procfs
logging:
  level: warning
  file: custom.log
"""


def test_defaults_without_file(tmp_path, monkeypatch):
    """Test a missing default config file yields defaults."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STATLINE_CONFIG", raising=False)

    settings = load_settings()

    assert settings == Settings()
    assert settings.refresh_interval == 1000
    assert settings.poll_rate == 1.0
    assert settings.bandwidth_url == DEFAULT_BANDWIDTH_URL
    assert settings.display == DisplayOptions()


def test_load_from_file(tmp_path):
    """Test every recognised key is read from YAML."""
    path = tmp_path / "statline.yaml"
    path.write_text(APP_YAML)

    settings = load_settings(path)

    assert settings.refresh_interval == 2500
    assert settings.poll_rate == 2.5
    assert settings.display.show_os is False
    assert settings.display.show_cpu is True
    assert settings.display.icon_only is True
    assert settings.bandwidth_url == "http://localhost:8080/payload"
    assert settings.bandwidth_timeout == 2.0
    assert settings.disk_strategy == "native"
    assert settings.disk_timeout == 1.5
    assert settings.traffic_source == "procfs"
    assert settings.log_level == "WARNING"
    assert settings.log_file == "custom.log"


def test_env_var_path(tmp_path, monkeypatch):
    """Test STATLINE_CONFIG points at the config file."""
    path = tmp_path / "other.yaml"
    path.write_text("refresh_interval: 500\n")
    monkeypatch.setenv("STATLINE_CONFIG", str(path))

    assert load_settings().refresh_interval == 500


def test_explicit_missing_file(tmp_path):
    """Test an explicitly named file must exist."""
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")


def test_empty_file(tmp_path):
    """Test an empty file yields defaults."""
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_settings(path) == Settings()


@pytest.mark.parametrize(
    "data,key",
    [
        ({"refresh_interval": 0}, "refresh_interval"),
        ({"refresh_interval": -5}, "refresh_interval"),
        ({"refresh_interval": 1.5}, "refresh_interval"),
        ({"refresh_interval": True}, "refresh_interval"),
        ({"display": {"show_cpu": "yes"}}, "display.show_cpu"),
        ({"display": ["show_cpu"]}, "display"),
        ({"bandwidth": {"url": "ftp://example.com"}}, "bandwidth.url"),
        ({"bandwidth": {"timeout": 0}}, "bandwidth.timeout"),
        ({"disk": {"strategy": "statvfs"}}, "disk.strategy"),
        ({"traffic": {"source": "snmp"}}, "traffic.source"),
    ],
)
def test_invalid_values(data, key):
    """Test invalid values raise ConfigError naming the key."""
    with pytest.raises(ConfigError, match=key.replace(".", r"\.")):
        settings_from_mapping(data)


def test_invalid_yaml(tmp_path):
    """Test unparseable YAML raises ConfigError."""
    path = tmp_path / "bad.yaml"
    path.write_text("display: [unclosed\n")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_top_level_must_be_mapping(tmp_path):
    """Test a YAML list at the top level is rejected."""
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_visible_fields_order():
    """Test visible fields keep the status line order."""
    options = DisplayOptions(show_ram=False, show_os=False)
    assert options.visible_fields() == ["cpu", "disk", "traffic", "bandwidth"]
