from __future__ import annotations

from typing import Protocol

from ..models import VerifiedIdentity


class IdentityVerifier(Protocol):
    """Turns a bearer credential into a verified identity."""

    def verify(self, token: str) -> VerifiedIdentity:
        """Raise ``UnauthorizedError`` when the credential cannot be trusted."""
        ...
