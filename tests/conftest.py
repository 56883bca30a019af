import json
from pathlib import Path
from typing import Callable, List, Optional

import httpx
import pytest

from vmrunner.config import Settings


class FakeComputeAPI:
    """Stands in for the compute API; records every request it receives."""

    def __init__(self, status_body=None, status_code: int = 200, action_code: int = 200, action_body=None):
        self.status_body = status_body if status_body is not None else {"state": "stopped"}
        self.status_code = status_code
        self.action_code = action_code
        self.action_body = action_body
        self.fail_with: Optional[Callable[[httpx.Request], Exception]] = None
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with(request)
        if request.method == "GET":
            return self._response(self.status_code, self.status_body)
        return self._response(self.action_code, self.action_body)

    @staticmethod
    def _response(code, body) -> httpx.Response:
        if body is None:
            return httpx.Response(code)
        if isinstance(body, (bytes, str)):
            return httpx.Response(code, content=body)
        return httpx.Response(code, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def gets(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def posts(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @staticmethod
    def body(request: httpx.Request):
        return json.loads(request.content)


def connect_error(request: httpx.Request) -> Exception:
    return httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def api() -> FakeComputeAPI:
    return FakeComputeAPI()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_username="operator",
        app_password="s3cret",
        compute_base_url="https://compute.test",
        credentials_file=tmp_path / "credentials.json",
    )
