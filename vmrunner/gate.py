"""Local pre-flight checks for power actions."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from vmrunner.models import Credentials
from vmrunner.status import CanonicalState


class VMAction(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: Optional[str] = None
    informational: bool = False


ALLOW = GateDecision(allowed=True)

# (action, blocking state) -> reason; these are not errors, the VM is
# already where the operator wants it.
_STATE_RULES = (
    (VMAction.START, CanonicalState.RUNNING, "already running"),
    (VMAction.STOP, CanonicalState.STOPPED, "already stopped"),
    (VMAction.RESTART, CanonicalState.STOPPED, "use start instead"),
)


def can_perform(action: VMAction, state: Optional[CanonicalState], credentials: Credentials) -> GateDecision:
    """Decide whether ``action`` should be sent to the compute API at all."""
    if not credentials.vm_id:
        return GateDecision(allowed=False, reason="missing VM identifier")
    if not credentials.token:
        return GateDecision(allowed=False, reason="missing credential")
    for rule_action, blocking_state, reason in _STATE_RULES:
        if action == rule_action and state == blocking_state:
            return GateDecision(allowed=False, reason=reason, informational=True)
    return ALLOW
