"""Client for the remote compute-management API."""
import logging
import re
from typing import Optional, Union
from urllib.parse import quote

import httpx

from vmrunner.models import VMActionRequest

logger = logging.getLogger(__name__)

_INTEGER_ID = re.compile(r"^[+-]?\d+$")


def coerce_vm_id(vm_id: str) -> Union[int, str]:
    """Send numeric identifiers as numbers, anything else unchanged.

    The compute API accepts both shapes, and existing VMs were registered with
    whichever one the operator typed.
    """
    if _INTEGER_ID.match(vm_id):
        return int(vm_id)
    return vm_id


class ComputeClient:
    """Thin async wrapper around the compute API endpoints.

    Responses are returned as-is; transport failures propagate as
    ``httpx.HTTPError`` so callers can tell them apart from HTTP rejections.
    """

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize the client.

        Args:
            base_url: Scheme and host of the compute API, without trailing slash
            transport: Optional httpx transport override
        """
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(transport=self._transport)
        return self._client

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    async def get_vm(self, vm_id: str, token: str) -> httpx.Response:
        """Fetch the status document of a VM."""
        url = f"{self.base_url}/compute/{quote(vm_id, safe='')}"
        response = await self._get_client().get(url, headers=self._headers(token))
        logger.debug(f"GET {url} -> {response.status_code}")
        return response

    async def post_action(self, action: str, vm_id: str, token: str) -> httpx.Response:
        """Request a power state change (start, stop or restart)."""
        url = f"{self.base_url}/compute/{action}"
        body = VMActionRequest(vm_id=coerce_vm_id(vm_id))
        response = await self._get_client().post(
            url,
            json=body.model_dump(),
            headers=self._headers(token),
        )
        logger.debug(f"POST {url} -> {response.status_code}")
        return response
