"""Executor for VM power actions against the compute API."""
import logging
from typing import Optional, Sequence

import httpx

from vmrunner.compute import ComputeClient
from vmrunner.config import DEFAULT_REPOLL_DELAYS
from vmrunner.gate import VMAction, can_perform
from vmrunner.models import ActionOutcome, Credentials, Notification
from vmrunner.status import CanonicalState

logger = logging.getLogger(__name__)

PAST_TENSE = {
    VMAction.START: "started",
    VMAction.STOP: "stopped",
    VMAction.RESTART: "restarted",
}

# State the VM is probably already in when the API refuses the action.
DESIRED_STATE = {
    VMAction.START: "running",
    VMAction.STOP: "stopped",
    VMAction.RESTART: "restarting",
}

GATE_MESSAGES = {
    "missing VM identifier": "Please enter a VM ID",
    "missing credential": "Please enter your Bearer Token",
    "already running": "VM is already running",
    "already stopped": "VM is already stopped",
    "use start instead": "VM is stopped, use Start instead",
}

BUSY_MESSAGE = "Another action is already in progress"
CONNECTION_ERROR_MESSAGE = "Error connecting to compute service"


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


class ActionExecutor:
    """Runs one power action at a time.

    The executor only reports which re-polls are due after a successful
    action; scheduling them is left to whoever owns the view.
    """

    def __init__(self, client: ComputeClient, repoll_delays: Sequence[float] = DEFAULT_REPOLL_DELAYS):
        """Initialize the executor.

        Args:
            client: Compute API client
            repoll_delays: Seconds after a successful action at which the
                status should be fetched again
        """
        self.client = client
        self.repoll_delays = tuple(repoll_delays)
        self._in_progress: Optional[VMAction] = None

    @property
    def in_progress(self) -> Optional[VMAction]:
        return self._in_progress

    def _rejected(self, action: VMAction, level: str, message: str) -> ActionOutcome:
        return ActionOutcome(
            action=action.value,
            performed=False,
            success=False,
            notification=Notification(level=level, message=message),
        )

    async def perform(
        self,
        action: VMAction,
        credentials: Credentials,
        state: Optional[CanonicalState],
    ) -> ActionOutcome:
        """Check, send and interpret a power action."""
        decision = can_perform(action, state, credentials)
        if not decision.allowed:
            level = "info" if decision.informational else "error"
            logger.info(f"Rejected {action.value} locally: {decision.reason}")
            return self._rejected(action, level, GATE_MESSAGES.get(decision.reason, decision.reason))

        if self._in_progress is not None:
            logger.info(f"Rejected {action.value}: {self._in_progress.value} still pending")
            return self._rejected(action, "warning", BUSY_MESSAGE)

        self._in_progress = action
        try:
            logger.info(f"Requesting {action.value} for VM {credentials.vm_id}")
            response = await self.client.post_action(action.value, credentials.vm_id, credentials.token)

            if response.is_success:
                logger.info(f"VM {credentials.vm_id} {PAST_TENSE[action]}")
                return ActionOutcome(
                    action=action.value,
                    performed=True,
                    success=True,
                    notification=Notification(
                        level="success",
                        message=f"VM {PAST_TENSE[action]} successfully",
                    ),
                    repoll_delays=self.repoll_delays,
                )

            message = _error_message(response) or (
                f"Failed to {action.value} VM. It may already be {DESIRED_STATE[action]}."
            )
            logger.warning(
                f"Compute API rejected {action.value} for VM {credentials.vm_id}: "
                f"HTTP {response.status_code} {message}"
            )
            return ActionOutcome(
                action=action.value,
                performed=True,
                success=False,
                notification=Notification(level="error", message=message),
            )

        except httpx.HTTPError as e:
            logger.error(f"Error performing {action.value} on VM {credentials.vm_id}: {e}")
            return ActionOutcome(
                action=action.value,
                performed=True,
                success=False,
                notification=Notification(level="error", message=CONNECTION_ERROR_MESSAGE),
            )
        except Exception as e:
            logger.error(f"Unexpected error performing {action.value} on VM {credentials.vm_id}: {e}")
            return ActionOutcome(
                action=action.value,
                performed=True,
                success=False,
                notification=Notification(level="error", message=CONNECTION_ERROR_MESSAGE),
            )
        finally:
            self._in_progress = None
