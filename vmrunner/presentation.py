"""Display hints derived from the current VM state."""
from typing import List, Optional

from pydantic import BaseModel

from vmrunner.gate import VMAction
from vmrunner.status import CanonicalState

PLACEHOLDER = "Enter credentials to see status"

CAPTIONS = {
    VMAction.START: ("Start", "Starting..."),
    VMAction.STOP: ("Stop", "Stopping..."),
    VMAction.RESTART: ("Restart", "Restarting..."),
}


class Badge(BaseModel):
    label: str
    tone: str  # positive, negative, neutral


class ActionButton(BaseModel):
    action: str
    caption: str
    disabled: bool
    emphasized: bool
    busy: bool


class DashboardView(BaseModel):
    badge: Optional[Badge] = None
    placeholder: Optional[str] = None
    refresh_disabled: bool
    refreshing: bool
    buttons: List[ActionButton]


def badge_tone(state: CanonicalState) -> str:
    if state == CanonicalState.RUNNING:
        return "positive"
    if state == CanonicalState.STOPPED:
        return "negative"
    return "neutral"


def is_emphasized(action: VMAction, state: Optional[CanonicalState]) -> bool:
    """Whether a button is shown at full weight.

    Only a hint: the gate decides what actually gets sent.
    """
    if action == VMAction.START:
        return state != CanonicalState.RUNNING
    if action == VMAction.STOP:
        return state != CanonicalState.STOPPED
    return state is not None and state != CanonicalState.STOPPED


def derive_view(
    state: Optional[CanonicalState],
    loading: Optional[VMAction],
    fetching: bool,
    has_credentials: bool,
) -> DashboardView:
    buttons = []
    for action in VMAction:
        idle, busy = CAPTIONS[action]
        buttons.append(ActionButton(
            action=action.value,
            caption=busy if loading == action else idle,
            disabled=loading is not None,
            emphasized=is_emphasized(action, state),
            busy=loading == action,
        ))

    return DashboardView(
        badge=Badge(label=state.value.upper(), tone=badge_tone(state)) if state is not None else None,
        placeholder=None if state is not None else PLACEHOLDER,
        refresh_disabled=fetching or not has_credentials,
        refreshing=fetching,
        buttons=buttons,
    )
