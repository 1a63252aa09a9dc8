"""
Pydantic schemas for API request/response validation.
"""

from opsconsole.schemas.common import ErrorResponse, HealthResponse, SuccessResponse
from opsconsole.schemas.access import (
    AccountListItem,
    AccountResponse,
    GateDecisionResponse,
    NavItemResponse,
    PermissionsUpdate,
    RoleUpdate,
    SessionResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthResponse",
    "SuccessResponse",
    # Access
    "AccountListItem",
    "AccountResponse",
    "GateDecisionResponse",
    "NavItemResponse",
    "PermissionsUpdate",
    "RoleUpdate",
    "SessionResponse",
]
