from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...core.dependencies import get_identity_verifier
from ...domain.exceptions import UnauthorizedError
from ...domain.models import VerifiedIdentity
from ...domain.ports.identity import IdentityVerifier

_bearer_scheme = HTTPBearer(auto_error=False)


def require_identity(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    """Dependency resolving the caller's verified identity from the bearer token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        return verifier.verify(credentials.credentials)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized") from exc
