"""Status normalization for the compute API's free-form VM status."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import httpx

from vmrunner.compute import ComputeClient
from vmrunner.config import DEFAULT_STATUS_FIELDS
from vmrunner.models import StatusReport

logger = logging.getLogger(__name__)


class CanonicalState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"
    ERROR = "error"
    OFFLINE = "offline"


RUNNING_VALUES = frozenset({"running", "active"})
STOPPED_VALUES = frozenset({"stopped", "off"})


@dataclass(frozen=True)
class StatusRule:
    """Location of a status value inside the response body, e.g. ``data.state``."""
    path: Tuple[str, ...]

    @classmethod
    def parse(cls, field: str) -> "StatusRule":
        parts = tuple(part for part in field.strip().split(".") if part)
        if not parts:
            raise ValueError(f"Invalid status field: {field!r}")
        return cls(parts)

    def lookup(self, payload: Any) -> Optional[Any]:
        """Return the value at this path, or None when any step is missing."""
        node = payload
        for key in self.path:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    def __str__(self):
        return ".".join(self.path)


def build_rules(fields: Iterable[str] = DEFAULT_STATUS_FIELDS) -> List[StatusRule]:
    return [StatusRule.parse(field) for field in fields]


def extract_status(payload: Any, rules: Sequence[StatusRule]) -> Optional[Any]:
    """Return the value of the first rule that matches, in rule order."""
    for rule in rules:
        value = rule.lookup(payload)
        if value is not None:
            return value
    return None


def normalize(raw: Any) -> CanonicalState:
    """Map a raw status value onto the canonical states."""
    if not isinstance(raw, str):
        return CanonicalState.UNKNOWN
    value = raw.strip().lower()
    if value in RUNNING_VALUES:
        return CanonicalState.RUNNING
    if value in STOPPED_VALUES:
        return CanonicalState.STOPPED
    return CanonicalState.UNKNOWN


class StatusNormalizer:
    """Fetches a VM's status and reduces it to a CanonicalState."""

    def __init__(self, client: ComputeClient, rules: Optional[Sequence[StatusRule]] = None):
        self.client = client
        self.rules = list(rules) if rules is not None else build_rules()
        self.fetching = False

    async def fetch_state(self, vm_id: str, token: str) -> Optional[StatusReport]:
        """Fetch and normalize the status of ``vm_id``.

        Returns None without touching the network when either credential is
        empty, so the caller keeps whatever state it already shows.
        """
        if not vm_id or not token:
            return None

        self.fetching = True
        try:
            response = await self.client.get_vm(vm_id, token)
            if not response.is_success:
                logger.warning(f"Status request for VM {vm_id} failed with HTTP {response.status_code}")
                return StatusReport(state=CanonicalState.ERROR.value)

            raw = extract_status(response.json(), self.rules)
            state = normalize(raw)
            logger.info(f"VM {vm_id} status: {raw!r} -> {state.value}")
            return StatusReport(state=state.value, raw=raw if isinstance(raw, str) else None)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching status of VM {vm_id}: {e}")
            return StatusReport(state=CanonicalState.OFFLINE.value)
        except Exception as e:
            logger.error(f"Unexpected error fetching status of VM {vm_id}: {e}")
            return StatusReport(state=CanonicalState.OFFLINE.value)
        finally:
            self.fetching = False
