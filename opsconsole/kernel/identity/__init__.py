"""
Identity - verification of externally issued access tokens.
"""

from opsconsole.kernel.identity.tokens import (
    TokenVerifier,
    get_token_verifier,
    verify_access_token,
)

__all__ = [
    "TokenVerifier",
    "get_token_verifier",
    "verify_access_token",
]
