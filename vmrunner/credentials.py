"""Persistent storage for the operator's VM identifier and token."""
import json
import logging
from pathlib import Path

from vmrunner.models import Credentials

logger = logging.getLogger(__name__)

VM_ID_KEY = "vmId"
TOKEN_KEY = "bearerToken"
FIELDS = (VM_ID_KEY, TOKEN_KEY)


class CredentialStore:
    """JSON file holding ``vmId`` and ``bearerToken``.

    Values are stored verbatim and written on every change. Nothing ever
    clears them except overwriting.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> Credentials:
        data = self._read()
        vm_id = data.get(VM_ID_KEY)
        token = data.get(TOKEN_KEY)
        return Credentials(
            vm_id=vm_id if isinstance(vm_id, str) else "",
            token=token if isinstance(token, str) else "",
        )

    def save(self, field: str, value: str) -> None:
        if field not in FIELDS:
            raise KeyError(f"Unknown credential field: {field}")
        data = self._read()
        data[field] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        logger.debug(f"Saved {field} to {self.path}")
