from pathlib import Path

import pytest

from vmrunner.config import DEFAULT_REPOLL_DELAYS, DEFAULT_STATUS_FIELDS, Settings, load_settings


def test_defaults():
    settings = load_settings({"APP_USERNAME": "u", "APP_PASSWORD": "p"})
    assert settings.compute_base_url == "https://compute.excloud.in"
    assert settings.status_fields == DEFAULT_STATUS_FIELDS
    assert settings.repoll_delays == DEFAULT_REPOLL_DELAYS
    assert settings.production is False
    assert settings.log_level == "INFO"


def test_overrides(tmp_path):
    settings = load_settings({
        "APP_USERNAME": "u",
        "APP_PASSWORD": "p",
        "COMPUTE_BASE_URL": "http://localhost:9000/",
        "APP_ENV": "Production",
        "VM_STATUS_FIELDS": "status, data.status",
        "VM_REPOLL_DELAYS": "0, 2.5",
        "VMRUNNER_CREDENTIALS_FILE": str(tmp_path / "c.json"),
        "LOG_LEVEL": "debug",
    })
    assert settings.compute_base_url == "http://localhost:9000"
    assert settings.production is True
    assert settings.status_fields == ("status", "data.status")
    assert settings.repoll_delays == (0.0, 2.5)
    assert settings.credentials_file == Path(tmp_path / "c.json")
    assert settings.log_level == "DEBUG"


def test_login_secrets_are_optional_for_settings():
    settings = load_settings({})
    assert settings.app_username == ""


@pytest.mark.parametrize(
    "env",
    [
        {"COMPUTE_BASE_URL": "compute.test"},
        {"VM_STATUS_FIELDS": " , "},
        {"VM_REPOLL_DELAYS": ""},
        {"VM_REPOLL_DELAYS": "0,soon"},
        {"VM_REPOLL_DELAYS": "-1"},
    ],
)
def test_invalid_values(env):
    with pytest.raises(ValueError):
        load_settings(env)


def test_settings_are_immutable():
    settings = Settings(app_username="u", app_password="p")
    with pytest.raises(AttributeError):
        settings.app_password = "other"
