"""
API v1 routes.
"""

from fastapi import APIRouter

from opsconsole.api.v1 import accounts, session

router = APIRouter()

router.include_router(session.router, prefix="/session", tags=["Session"])
router.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
