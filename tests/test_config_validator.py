"""
Startup configuration validation
"""

import copy

import pytest

from config import RELAY_CONFIG, LOGGING_CONFIG, ASSET_CONFIG
from core.config_validator import ConfigValidator, ConfigValidationError, validate_startup_config


@pytest.fixture
def storage_config(tmp_path):
    return {"path": str(tmp_path / "settings.json")}


def test_defaults_are_valid(storage_config):
    validator = ConfigValidator(RELAY_CONFIG, storage_config, LOGGING_CONFIG, ASSET_CONFIG)
    is_valid, errors, _ = validator.validate_all()

    assert is_valid, errors


def test_invalid_port_and_backoff(storage_config):
    relay_config = copy.deepcopy(RELAY_CONFIG)
    relay_config["default_port"] = 70000
    relay_config["reconnect"]["backoff"] = 0.5

    with pytest.raises(ConfigValidationError) as excinfo:
        validate_startup_config(relay_config, storage_config, LOGGING_CONFIG)

    assert "Invalid relay port: 70000" in str(excinfo.value)
    assert "reconnect.backoff must be at least 1" in str(excinfo.value)


def test_disabled_reconnect_is_a_warning(storage_config):
    relay_config = copy.deepcopy(RELAY_CONFIG)
    relay_config["reconnect"]["max_attempts"] = 0

    warnings = validate_startup_config(relay_config, storage_config, LOGGING_CONFIG)

    assert any("reconnection is disabled" in w for w in warnings)


def test_asset_url_placeholders(storage_config):
    validator = ConfigValidator(RELAY_CONFIG, storage_config, LOGGING_CONFIG,
                                {"asset_url": "http://{address}:{port}/assets/{file}"})
    _, errors, _ = validator.validate_all()

    assert errors == ["asset_url is missing the {panel} placeholder"]


def test_settings_path_must_be_file(tmp_path):
    _, errors, _ = ConfigValidator(RELAY_CONFIG, {"path": str(tmp_path)}, LOGGING_CONFIG).validate_all()

    assert errors == [f"Settings path must be a file: {tmp_path}"]


def test_unknown_log_level(storage_config):
    logging_config = dict(LOGGING_CONFIG, log_level="chatty")
    _, errors, _ = ConfigValidator(RELAY_CONFIG, storage_config, logging_config).validate_all()

    assert errors == ["Unknown log level: CHATTY"]
