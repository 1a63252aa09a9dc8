"""
Verification of access tokens issued by the external identity provider.

Sign-in and token issuance happen elsewhere; this module only checks the
signature and turns the claims into a Principal.
"""

import uuid
from typing import Optional

from jose import JWTError, jwt

from opsconsole.config import get_settings
from opsconsole.kernel.access.account import Principal
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


class TokenVerifier:
    """Decodes bearer tokens into principals."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.audience = settings.jwt_audience if audience is None else audience

    def verify(self, token: str) -> Optional[Principal]:
        """
        Verify a token.

        Args:
            token: JWT access token

        Returns:
            Principal if the token is valid, None otherwise
        """
        options = {"verify_aud": bool(self.audience)}
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience or None,
                options=options,
            )
        except JWTError as e:
            logger.info("Rejected access token: %s", e)
            return None

        try:
            principal_id = uuid.UUID(str(payload["sub"]))
        except (KeyError, ValueError):
            logger.info("Access token without a usable subject")
            return None

        return Principal(id=principal_id, email=payload.get("email"))


_verifier: Optional[TokenVerifier] = None


def get_token_verifier() -> TokenVerifier:
    """Get or create the default verifier."""
    global _verifier
    if _verifier is None:
        _verifier = TokenVerifier()
    return _verifier


def verify_access_token(token: str) -> Optional[Principal]:
    """Verify a token with the default verifier."""
    return get_token_verifier().verify(token)
