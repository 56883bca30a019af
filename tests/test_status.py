import asyncio

import httpx
import pytest

from conftest import FakeComputeAPI, connect_error
from vmrunner.compute import ComputeClient
from vmrunner.status import (
    CanonicalState,
    StatusNormalizer,
    StatusRule,
    build_rules,
    extract_status,
    normalize,
)


def _fetch(api: FakeComputeAPI, vm_id="123", token="tok", rules=None):
    async def run():
        async with ComputeClient("https://compute.test", transport=api.transport) as client:
            normalizer = StatusNormalizer(client, rules)
            report = await normalizer.fetch_state(vm_id, token)
            assert normalizer.fetching is False
            return report

    return asyncio.run(run())


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"state": "RUNNING"}, CanonicalState.RUNNING),
        ({"status": "active"}, CanonicalState.RUNNING),
        ({"data": {"state": "off"}}, CanonicalState.STOPPED),
        ({"data": {"status": "Stopped"}}, CanonicalState.STOPPED),
        ({"state": "provisioning"}, CanonicalState.UNKNOWN),
        ({"id": 123, "name": "web"}, CanonicalState.UNKNOWN),
        ({}, CanonicalState.UNKNOWN),
        (["running"], CanonicalState.UNKNOWN),
        ({"data": "running"}, CanonicalState.UNKNOWN),
    ],
)
def test_payload_shapes(payload, expected):
    report = _fetch(FakeComputeAPI(status_body=payload))
    assert report.state == expected.value


def test_state_wins_over_status_by_default():
    rules = build_rules()
    assert extract_status({"status": "stopped", "state": "running"}, rules) == "running"
    assert extract_status({"data": {"state": "off"}, "status": "active"}, rules) == "active"


def test_priority_follows_configured_order():
    rules = build_rules(["status", "state"])
    payload = {"status": "stopped", "state": "running"}
    assert extract_status(payload, rules) == "stopped"


def test_null_value_is_treated_as_absent():
    assert extract_status({"state": None, "status": "off"}, build_rules()) == "off"


def test_rule_parse_rejects_empty_path():
    with pytest.raises(ValueError):
        StatusRule.parse(" . ")
    assert str(StatusRule.parse("data.state")) == "data.state"


def test_normalize_ignores_case_and_whitespace():
    assert normalize("  Active ") == CanonicalState.RUNNING
    assert normalize("OFF") == CanonicalState.STOPPED
    assert normalize(1) == CanonicalState.UNKNOWN


def test_raw_status_is_reported():
    report = _fetch(FakeComputeAPI(status_body={"status": "Active"}))
    assert report.raw == "Active"


@pytest.mark.parametrize("code", [401, 404, 500, 503])
def test_http_failure_is_error_regardless_of_body(code):
    report = _fetch(FakeComputeAPI(status_body={"state": "running"}, status_code=code))
    assert report.state == CanonicalState.ERROR.value


def test_transport_failure_is_offline():
    api = FakeComputeAPI()
    api.fail_with = connect_error
    assert _fetch(api).state == CanonicalState.OFFLINE.value


def test_undecodable_body_is_offline():
    api = FakeComputeAPI(status_body="<html>gateway</html>")
    assert _fetch(api).state == CanonicalState.OFFLINE.value


def test_missing_credentials_skip_the_request():
    api = FakeComputeAPI()
    assert _fetch(api, vm_id="") is None
    assert _fetch(api, token="") is None
    assert api.requests == []


def test_request_shape():
    api = FakeComputeAPI()
    _fetch(api, vm_id="vm-abc", token="secret-token")
    request = api.requests[0]
    assert request.method == "GET"
    assert str(request.url) == "https://compute.test/compute/vm-abc"
    assert request.headers["Authorization"] == "Bearer secret-token"


def test_fetching_flag_set_during_request():
    seen = []

    async def run():
        async with ComputeClient("https://compute.test") as client:
            normalizer = StatusNormalizer(client)

            async def get_vm(vm_id, token):
                seen.append(normalizer.fetching)
                raise httpx.ReadError("reset")

            client.get_vm = get_vm
            report = await normalizer.fetch_state("1", "t")
            return normalizer, report

    normalizer, report = asyncio.run(run())
    assert seen == [True]
    assert normalizer.fetching is False
    assert report.state == CanonicalState.OFFLINE.value


def test_header_encoding_failure_is_offline():
    api = FakeComputeAPI()
    report = _fetch(api, token="tok…")
    assert report.state == CanonicalState.OFFLINE.value
    assert api.requests == []


def test_unexpected_client_error_is_offline():
    async def run():
        async with ComputeClient("https://compute.test") as client:
            normalizer = StatusNormalizer(client)

            async def get_vm(vm_id, token):
                raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

            client.get_vm = get_vm
            return normalizer, await normalizer.fetch_state("vm", "tok")

    normalizer, report = asyncio.run(run())
    assert report.state == CanonicalState.OFFLINE.value
    assert normalizer.fetching is False


def test_vm_id_is_escaped_in_path():
    api = FakeComputeAPI()
    _fetch(api, vm_id="vm?x#y\x00")
    request = api.requests[0]
    assert request.url.raw_path == b"/compute/vm%3Fx%23y%00"
    assert request.url.query == b""
