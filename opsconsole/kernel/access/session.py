"""
Live access session for one client.

Holds the current principal and its resolved account, and re-evaluates the
gate on demand. Re-evaluation is explicit: on navigation (``navigate``) or
on invalidation (``invalidate``), never on a timer or through hidden
reactive state.

Loads are keyed by identity. When the principal changes while a load is
in flight, the result of that load is discarded instead of being applied
to the new identity.
"""

import uuid
from typing import Callable, Dict, List, Optional

from opsconsole.kernel.access.account import Account, Principal
from opsconsole.kernel.access.gate import GateDecision, SessionGate
from opsconsole.kernel.access.loader import AccountLoader
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)

Listener = Callable[["AccessSession"], None]


class AccessSession:
    """Principal + account snapshot with explicit refresh semantics."""

    def __init__(self, loader: AccountLoader, gate: Optional[SessionGate] = None):
        self.loader = loader
        self.gate = gate or SessionGate()
        self._principal: Optional[Principal] = None
        self._account: Optional[Account] = None
        self._identity_known = False
        self._inflight: Dict[uuid.UUID, int] = {}
        self._listeners: List[Listener] = []

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def account(self) -> Optional[Account]:
        return self._account

    @property
    def loading(self) -> bool:
        """True until the identity is known and every fetch for it has landed."""
        if not self._identity_known:
            return True
        if self._principal is None:
            return False
        return self._inflight.get(self._principal.id, 0) > 0 or self._account is None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state-change callback; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def identify(self, principal: Optional[Principal]) -> None:
        """Switch to ``principal`` (None on sign-out) and load its account."""
        changed = (
            not self._identity_known
            or (self._principal is None) != (principal is None)
            or (principal is not None and self._principal is not None and principal.id != self._principal.id)
        )
        self._identity_known = True
        self._principal = principal
        if changed:
            self._account = None
            self._notify()
        if principal is not None:
            await self._load(principal)

    async def invalidate(self) -> None:
        """Re-fetch the current identity's account, e.g. after an admin edit."""
        if self._principal is not None:
            await self._load(self._principal)

    def evaluate(self, path: str) -> GateDecision:
        """Decide on the current snapshot without fetching."""
        return self.gate.evaluate(self._principal, self._account, path, loading=self.loading)

    async def navigate(self, path: str) -> GateDecision:
        """Refresh, then decide. Use this on every navigation."""
        await self.invalidate()
        return self.evaluate(path)

    async def _load(self, principal: Principal) -> None:
        key = principal.id
        self._inflight[key] = self._inflight.get(key, 0) + 1
        try:
            account = await self.loader.load(principal)
        finally:
            remaining = self._inflight[key] - 1
            if remaining:
                self._inflight[key] = remaining
            else:
                del self._inflight[key]

        if self._principal is None or self._principal.id != key:
            logger.info(
                "Discarding account load for superseded identity",
                extra={"account_id": str(key)},
            )
            return
        self._account = account
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
