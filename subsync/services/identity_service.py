"""Bearer credential verification backed by signed JWTs."""

import logging
from typing import Optional

import jwt

from ..domain.exceptions import UnauthorizedError
from ..domain.models import VerifiedIdentity

logger = logging.getLogger(__name__)


class JWTIdentityVerifier:
    """Verifies identity-provider tokens and extracts the subject and email."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    def verify(self, token: str) -> VerifiedIdentity:
        """
        Decode and validate a bearer token.

        Args:
            token: Raw credential taken from the Authorization header

        Returns:
            VerifiedIdentity with the ``sub`` claim and optional ``email`` claim

        Raises:
            UnauthorizedError: If the token is expired, tampered with or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"require": ["sub"], "verify_aud": self._audience is not None},
            )
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected bearer token: %s", exc.__class__.__name__)
            raise UnauthorizedError("Invalid token") from exc

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise UnauthorizedError("Invalid token")

        email = payload.get("email")
        return VerifiedIdentity(subject=subject, email=email if isinstance(email, str) and email else None)
