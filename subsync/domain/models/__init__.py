"""Domain models for the subscription sync service."""

from .identity import VerifiedIdentity
from .subscription import SubscriptionStatus, derive_status

__all__ = [
    "SubscriptionStatus",
    "VerifiedIdentity",
    "derive_status",
]
