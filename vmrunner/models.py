"""Pydantic models for API requests and responses."""
from typing import Optional, Tuple, Union

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Login request model."""
    username: str
    password: str


class LoginResult(BaseModel):
    """Outcome of a login attempt."""
    success: bool
    message: Optional[str] = None


class VMRequest(BaseModel):
    """Browser request against the proxied compute API."""
    vm_id: str = ""
    state: Optional[str] = None  # last known canonical state, actions only


class VMActionRequest(BaseModel):
    """Body sent to the compute API action endpoints."""
    vm_id: Union[int, str]


class Credentials(BaseModel):
    """VM identifier and bearer token supplied by the operator."""
    vm_id: str = ""
    token: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.vm_id) and bool(self.token)


class Notification(BaseModel):
    """Toast shown to the operator."""
    level: str  # success, info, warning, error
    message: str


class StatusReport(BaseModel):
    """Result of a status fetch."""
    state: str
    raw: Optional[str] = None  # status string as sent by the compute API


class ActionOutcome(BaseModel):
    """Result of a start/stop/restart request."""
    action: str
    performed: bool  # True when a request reached the compute API
    success: bool
    notification: Notification
    repoll_delays: Tuple[float, ...] = ()
