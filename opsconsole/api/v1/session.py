"""
Session endpoints: the render decision and the current account.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from opsconsole.api.deps import CurrentAccount, CurrentPrincipal, Gate, Loader, OptionalPrincipal
from opsconsole.kernel.access import visible_navigation
from opsconsole.schemas.access import (
    AccountResponse,
    GateDecisionResponse,
    NavItemResponse,
    SessionResponse,
)

router = APIRouter()


@router.get("/decision", response_model=GateDecisionResponse)
async def session_decision(
    principal: OptionalPrincipal,
    loader: Loader,
    gate: Gate,
    path: Annotated[str, Query(max_length=2048)] = "/",
):
    """
    Decide what to render for a navigation to ``path``.

    Account data is fetched on every call so administrator edits made in
    another session apply on the very next navigation.
    """
    account = await loader.load(principal) if principal is not None else None
    decision = gate.evaluate(principal, account, path)
    return GateDecisionResponse.from_decision(decision)


@router.get("/me", response_model=SessionResponse)
async def current_session(principal: CurrentPrincipal, account: CurrentAccount):
    """Current account, effective levels and the navigation it may see."""
    # Pending and suspended accounts reach no module, so no navigation either
    navigation = visible_navigation(account) if account.is_active else []
    return SessionResponse(
        account=AccountResponse.from_account(account),
        email=principal.email,
        navigation=[NavItemResponse.from_item(item) for item in navigation],
    )
