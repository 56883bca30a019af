"""In-process view-model tying credentials, status and actions together."""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from vmrunner.compute import ComputeClient
from vmrunner.config import DEFAULT_REPOLL_DELAYS
from vmrunner.credentials import TOKEN_KEY, VM_ID_KEY, CredentialStore
from vmrunner.executor import ActionExecutor
from vmrunner.gate import VMAction
from vmrunner.models import ActionOutcome, Credentials, Notification
from vmrunner.presentation import DashboardView, derive_view
from vmrunner.status import CanonicalState, StatusNormalizer, StatusRule

logger = logging.getLogger(__name__)


class VMDashboard:
    """State behind one dashboard view.

    Re-polls after an action are tasks owned by the dashboard; ``close()``
    cancels whatever has not fired yet.
    """

    def __init__(
        self,
        store: CredentialStore,
        client: ComputeClient,
        rules: Optional[List[StatusRule]] = None,
        repoll_delays=DEFAULT_REPOLL_DELAYS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_refresh: Optional[Callable[[Optional[CanonicalState]], None]] = None,
    ):
        self.store = store
        self.normalizer = StatusNormalizer(client, rules)
        self.executor = ActionExecutor(client, repoll_delays)
        self.credentials: Credentials = store.load()
        self.state: Optional[CanonicalState] = None
        self.raw_status: Optional[str] = None
        self.notifications: List[Notification] = []
        self._sleep = sleep
        self._on_refresh = on_refresh
        self._repolls: Set[asyncio.Task] = set()

    def set_vm_id(self, value: str):
        self.credentials = self.credentials.model_copy(update={"vm_id": value})
        self.store.save(VM_ID_KEY, value)

    def set_token(self, value: str):
        self.credentials = self.credentials.model_copy(update={"token": value})
        self.store.save(TOKEN_KEY, value)

    @property
    def fetching(self) -> bool:
        return self.normalizer.fetching

    @property
    def loading(self) -> Optional[VMAction]:
        return self.executor.in_progress

    @property
    def pending_repolls(self) -> int:
        return len(self._repolls)

    def view(self) -> DashboardView:
        return derive_view(self.state, self.loading, self.fetching, self.credentials.complete)

    async def refresh(self) -> Optional[CanonicalState]:
        """Fetch the status; keeps the current state when credentials are missing."""
        report = await self.normalizer.fetch_state(self.credentials.vm_id, self.credentials.token)
        if report is not None:
            self.state = CanonicalState(report.state)
            self.raw_status = report.raw
        if self._on_refresh:
            self._on_refresh(self.state)
        return self.state

    async def perform(self, action: VMAction) -> ActionOutcome:
        outcome = await self.executor.perform(action, self.credentials, self.state)
        self.notifications.append(outcome.notification)
        if outcome.success:
            self.schedule_repolls(outcome.repoll_delays)
        return outcome

    def schedule_repolls(self, delays):
        for delay in delays:
            task = asyncio.create_task(self._repoll_after(delay))
            self._repolls.add(task)
            task.add_done_callback(self._repolls.discard)

    async def _repoll_after(self, delay: float):
        if delay > 0:
            await self._sleep(delay)
        try:
            await self.refresh()
        except Exception as e:
            logger.error(f"Error in scheduled status refresh: {e}")

    async def wait_for_repolls(self):
        """Wait until every scheduled re-poll has run."""
        while self._repolls:
            await asyncio.gather(*list(self._repolls), return_exceptions=True)

    async def close(self):
        """Drop re-polls that have not fired yet."""
        pending = list(self._repolls)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._repolls.clear()
