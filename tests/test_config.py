"""Tests for configuration loading and validation."""

from unittest.mock import patch

import yaml

from sony_av.config import (
    DEFAULT_CONFIG,
    device_config,
    find_device,
    get_device_by_id,
    load_config,
    validate_config,
)

from .conftest import MOCK_PS5_CONFIG, MOCK_TV_CONFIG


def write_config(path, data):
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestValidation:
    """Tests for validate_config."""

    def test_valid(self):
        config = {"devices": {"ps5": MOCK_PS5_CONFIG, "tv": MOCK_TV_CONFIG}}
        assert validate_config(config) == []

    def test_no_devices(self):
        assert validate_config({"devices": {}}) == ["No devices configured in 'devices' section"]

    def test_missing_secrets(self):
        config = {"devices": {"console": {"type": "ps5", "host": "ps5.local"}, "tv": {"type": "tv"}}}
        errors = validate_config(config)

        assert "devices.console.credential is required" in errors
        assert "devices.tv.host is required" in errors
        assert "devices.tv.psk is required" in errors

    def test_unknown_type(self):
        errors = validate_config({"devices": {"amp": {"type": "receiver", "host": "amp.local"}}})
        assert errors == ["devices.amp.type must be one of ps5, tv"]

    def test_refresh_interval(self):
        config = {"devices": {"tv": {**MOCK_TV_CONFIG, "refresh_interval": 0}}}
        assert validate_config(config) == ["devices.tv.refresh_interval must be a positive number"]

    def test_bridge_needs_mqtt_host(self):
        config = {"mqtt": {"host": None}, "devices": {"tv": MOCK_TV_CONFIG}}
        assert validate_config(config, for_bridge=True) == ["mqtt.host is required for bridge mode"]


class TestDeviceDefaults:
    """Tests for per-type defaults."""

    def test_ps5_defaults(self):
        device = device_config({"type": "ps5", "host": "ps5.local"})
        assert device["refresh_interval"] == 10
        assert device["credential"] is None

    def test_tv_defaults(self):
        device = device_config({"type": "tv", "host": "tv.local", "psk": "0000"})
        assert device["refresh_interval"] == 5
        assert device["offline_timeout"] == 10.0
        assert device["request_timeout"] == 1.5

    def test_lookup(self):
        config = {"devices": {"console": {"type": "ps5", "host": "ps5.local"}}}
        assert get_device_by_id(config, "console")["host"] == "ps5.local"
        assert get_device_by_id(config, "missing") is None
        assert find_device(config, "ps5")["refresh_interval"] == 10
        assert find_device(config, "tv") is None


class TestLoadConfig:
    """Tests for file loading and env overrides."""

    def test_load_file(self, clean_env):
        path = write_config(clean_env / "sony.yaml", {
            "mqtt": {"host": "broker.local"},
            "devices": {"living_room": MOCK_TV_CONFIG},
        })

        config = load_config(path)

        assert config["mqtt"]["host"] == "broker.local"
        assert config["mqtt"]["port"] == 1883
        assert config["devices"]["living_room"]["psk"] == "0000"
        assert config["_loaded_from"] == path

    def test_defaults_without_file(self, clean_env):
        config = load_config(str(clean_env / "missing.yaml"))

        assert config["devices"] == {}
        assert config["mqtt"]["base_topic"] == "sony2mqtt"

    def test_env_overrides_first_device_of_type(self, clean_env, monkeypatch):
        path = write_config(clean_env / "config.yaml", {"devices": {"living_room": MOCK_TV_CONFIG}})
        monkeypatch.setenv("TV_PSK", "secret")
        monkeypatch.setenv("MQTT_PORT", "8883")

        config = load_config(path)

        assert config["devices"]["living_room"]["psk"] == "secret"
        assert config["mqtt"]["port"] == 8883

    def test_env_creates_device(self, clean_env, monkeypatch):
        monkeypatch.setenv("PS5_HOST", "192.168.1.50")
        monkeypatch.setenv("PS5_CREDENTIAL", "1234abcd")

        config = load_config(str(clean_env / "missing.yaml"))

        assert config["devices"]["ps5"] == {
            "type": "ps5",
            "host": "192.168.1.50",
            "credential": "1234abcd",
        }
        assert validate_config(config) == []

    def test_invalid_env_value_ignored(self, clean_env, monkeypatch):
        monkeypatch.setenv("MQTT_PORT", "not-a-port")

        config = load_config(str(clean_env / "missing.yaml"))

        assert config["mqtt"]["port"] == 1883

    def test_defaults_not_shared(self, clean_env, monkeypatch):
        monkeypatch.setenv("MQTT_HOST", "broker.local")
        load_config(str(clean_env / "missing.yaml"))

        assert DEFAULT_CONFIG["mqtt"]["host"] is None
        assert DEFAULT_CONFIG["devices"] == {}

    def test_cache_and_reload(self, clean_env):
        (clean_env / "config.yaml").write_text("devices:\n  tv:\n    type: tv\n")
        with patch("sony_av.config.loader.CONFIG_SEARCH_PATHS", [clean_env / "config.yaml"]):
            first = load_config()
            (clean_env / "config.yaml").write_text("devices:\n  ps5:\n    type: ps5\n")

            assert load_config() is first
            assert list(load_config(use_cache=False)["devices"]) == ["ps5"]
