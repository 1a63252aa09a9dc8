"""
Session gate: the single render decision for a navigation.

Checks run in a fixed order and the first that applies wins:

1. LOADING          any of identity/role/permission data is still in flight
2. UNAUTHENTICATED  no principal
3. PENDING          account awaiting approval
4. SUSPENDED        account blocked by an administrator
5. FORBIDDEN        the route's module is not accessible
6. ALLOWED

Lifecycle checks come before the role check, so a pending or suspended
admin is gated like anyone else. The gate holds no state and must be
asked again on every navigation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from opsconsole.kernel.access.account import Account, Principal
from opsconsole.kernel.access.routes import can_access_route, normalize_path
from opsconsole.kernel.models.account import AccountStatus


class GateOutcome(str, Enum):
    """Possible results of a gate evaluation."""
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    PENDING = "pending"
    SUSPENDED = "suspended"
    FORBIDDEN = "forbidden"
    ALLOWED = "allowed"


class GateScreen(str, Enum):
    """What the presentation layer should render for an outcome."""
    LOADING = "loading"
    PENDING_APPROVAL = "pending_approval"
    REQUESTED_VIEW = "requested_view"


@dataclass(frozen=True)
class GateDecision:
    """Outcome plus rendering instructions."""

    outcome: GateOutcome
    path: str
    redirect_to: Optional[str] = None
    screen: Optional[GateScreen] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == GateOutcome.ALLOWED


class SessionGate:
    """
    Evaluates (principal, account, path) into a GateDecision.

    Redirect targets are injectable; defaults match the console's routes.
    """

    def __init__(
        self,
        sign_in_path: str = "/auth",
        access_denied_path: str = "/access-denied",
    ):
        self.sign_in_path = sign_in_path
        self.access_denied_path = access_denied_path

    def evaluate(
        self,
        principal: Optional[Principal],
        account: Optional[Account],
        path: str,
        *,
        loading: bool = False,
    ) -> GateDecision:
        """
        Decide what to render for ``path``.

        ``account`` is None while the account is being fetched. An account
        that belongs to a different identity than ``principal`` is stale
        and is treated the same way.
        """
        path = normalize_path(path)

        if loading:
            return self._loading(path)

        if principal is None:
            return GateDecision(
                outcome=GateOutcome.UNAUTHENTICATED,
                path=path,
                redirect_to=self.sign_in_path,
            )

        if account is None or account.id != principal.id:
            return self._loading(path)

        # Suspended accounts see the same notice as pending ones
        if account.status == AccountStatus.PENDING:
            return GateDecision(GateOutcome.PENDING, path, screen=GateScreen.PENDING_APPROVAL)
        if account.status == AccountStatus.SUSPENDED:
            return GateDecision(GateOutcome.SUSPENDED, path, screen=GateScreen.PENDING_APPROVAL)
        if account.status != AccountStatus.ACTIVE:
            # Unknown lifecycle state: gate like pending
            return GateDecision(GateOutcome.PENDING, path, screen=GateScreen.PENDING_APPROVAL)

        if not can_access_route(account, path):
            return GateDecision(
                outcome=GateOutcome.FORBIDDEN,
                path=path,
                redirect_to=self.access_denied_path,
            )

        return GateDecision(GateOutcome.ALLOWED, path, screen=GateScreen.REQUESTED_VIEW)

    @staticmethod
    def _loading(path: str) -> GateDecision:
        return GateDecision(GateOutcome.LOADING, path, screen=GateScreen.LOADING)

    @classmethod
    def from_settings(cls, settings) -> "SessionGate":
        return cls(
            sign_in_path=settings.sign_in_path,
            access_denied_path=settings.access_denied_path,
        )


_default_gate = SessionGate()


def evaluate(
    principal: Optional[Principal],
    account: Optional[Account],
    path: str,
    *,
    loading: bool = False,
) -> GateDecision:
    """Evaluate with the default redirect targets."""
    return _default_gate.evaluate(principal, account, path, loading=loading)
