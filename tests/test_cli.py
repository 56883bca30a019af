import json

import pytest

from conftest import FakeComputeAPI
from vmrunner import cli


@pytest.fixture
def env(tmp_path, monkeypatch):
    path = tmp_path / "credentials.json"
    monkeypatch.setenv("VMRUNNER_CREDENTIALS_FILE", str(path))
    monkeypatch.setenv("COMPUTE_BASE_URL", "https://compute.test")
    monkeypatch.setenv("VM_REPOLL_DELAYS", "0")
    monkeypatch.delenv("VM_STATUS_FIELDS", raising=False)
    return path


def test_configure_saves_fields(env, capsys):
    assert cli.main(["configure", "--vm-id", "42"]) == 0
    assert json.loads(env.read_text()) == {"vmId": "42"}

    assert cli.main(["configure", "--token", "tok"]) == 0
    assert json.loads(env.read_text()) == {"vmId": "42", "bearerToken": "tok"}
    assert "Credentials saved" in capsys.readouterr().out


def test_status_requires_credentials(env, capsys):
    api = FakeComputeAPI()
    assert cli.main(["status"], transport=api.transport) == 1
    assert "vmrunner configure" in capsys.readouterr().err
    assert api.requests == []


def test_status_prints_state(env, capsys):
    cli.main(["configure", "--vm-id", "42", "--token", "tok"])
    api = FakeComputeAPI(status_body={"status": "active"})
    assert cli.main(["status"], transport=api.transport) == 0
    assert capsys.readouterr().out.strip().endswith("RUNNING")


def test_start_with_watch(env, capsys):
    cli.main(["configure", "--vm-id", "42", "--token", "tok"])
    api = FakeComputeAPI(status_body={"state": "stopped"})

    assert cli.main(["start", "--watch"], transport=api.transport) == 0
    out = capsys.readouterr().out
    assert "VM started successfully" in out
    assert "status: stopped" in out
    assert FakeComputeAPI.body(api.posts()[0]) == {"vm_id": 42}
    assert len(api.gets()) == 2  # pre-action refresh + one re-poll


def test_redundant_action_is_not_a_failure(env, capsys):
    cli.main(["configure", "--vm-id", "42", "--token", "tok"])
    api = FakeComputeAPI(status_body={"state": "running"})

    assert cli.main(["start"], transport=api.transport) == 0
    assert "already running" in capsys.readouterr().out
    assert api.posts() == []


def test_failed_action_exit_code(env, capsys):
    cli.main(["configure", "--vm-id", "vm-x", "--token", "tok"])
    api = FakeComputeAPI(status_body={"state": "running"}, action_code=500)

    assert cli.main(["stop"], transport=api.transport) == 1
    assert "Failed to stop VM" in capsys.readouterr().err


def test_invalid_configuration(env, monkeypatch, capsys):
    monkeypatch.setenv("VM_REPOLL_DELAYS", "soon")
    assert cli.main(["status"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_serve_refuses_without_login_secrets(env, monkeypatch, capsys):
    monkeypatch.setenv("APP_USERNAME", "")
    monkeypatch.setenv("APP_PASSWORD", "")
    assert cli.main(["serve"]) == 2
    assert "APP_USERNAME" in capsys.readouterr().err
