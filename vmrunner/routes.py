"""API routes for the application."""
import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from vmrunner.auth import SessionGate
from vmrunner.gate import VMAction
from vmrunner.models import ActionOutcome, Credentials, LoginRequest, VMRequest
from vmrunner.presentation import derive_view
from vmrunner.status import CanonicalState

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def _require_session(auth: Optional[str]):
    if not SessionGate.is_authenticated(auth):
        raise HTTPException(status_code=401, detail="Not authenticated")


def _parse_state(value: Optional[str]) -> Optional[CanonicalState]:
    if not value:
        return None
    try:
        return CanonicalState(value.lower())
    except ValueError:
        return CanonicalState.UNKNOWN


def _outcome_status_code(outcome: ActionOutcome) -> int:
    if outcome.success:
        return 200
    if outcome.performed:
        return 502
    if outcome.notification.level == "error":
        return 400
    return 409


# ==================== Authentication Routes ====================

@router.post("/api/auth/login")
async def login(request: Request):
    """Login endpoint."""
    session_gate: SessionGate = request.app.state.session_gate
    try:
        req = LoginRequest.model_validate(await request.json())
        result = session_gate.login(req.username, req.password)
    except Exception as e:
        logger.error(f"Error handling login request: {e}")
        return JSONResponse(
            {"success": False, "message": "Something went wrong"},
            status_code=500,
        )

    if not result.success:
        return JSONResponse(result.model_dump(), status_code=401)

    response = JSONResponse({"success": True})
    session_gate.apply_session(response)
    return response


@router.post("/api/auth/logout")
async def logout(request: Request):
    """Logout endpoint."""
    response = JSONResponse({"success": True})
    request.app.state.session_gate.clear_session(response)
    return response


@router.get("/api/auth/check")
async def check_auth_endpoint(auth: Optional[str] = Cookie(None)):
    """Check if the operator is authenticated."""
    return JSONResponse({"authenticated": SessionGate.is_authenticated(auth)})


# ==================== VM Routes ====================

@router.post("/api/vm/status")
async def vm_status(
    req: VMRequest,
    request: Request,
    auth: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
):
    """Fetch and normalize the VM status."""
    _require_session(auth)

    token = _bearer_token(authorization)
    report = await request.app.state.normalizer.fetch_state(req.vm_id, token)
    state = CanonicalState(report.state) if report else _parse_state(req.state)
    executor = request.app.state.executor
    view = derive_view(state, executor.in_progress, False, bool(req.vm_id and token))

    return JSONResponse({
        "report": report.model_dump(mode="json") if report else None,
        "view": view.model_dump(mode="json"),
    })


@router.post("/api/vm/{action}")
async def vm_action(
    action: VMAction,
    req: VMRequest,
    request: Request,
    auth: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
):
    """Start, stop or restart the VM."""
    _require_session(auth)

    credentials = Credentials(vm_id=req.vm_id, token=_bearer_token(authorization))
    outcome = await request.app.state.executor.perform(action, credentials, _parse_state(req.state))

    return JSONResponse(
        outcome.model_dump(mode="json"),
        status_code=_outcome_status_code(outcome),
    )
