"""Subscription status as persisted for each subject."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class SubscriptionStatus(str, Enum):
    """User-facing subscription state stored per subject."""

    SUBSCRIBED = "subscribed"
    PENDING_CANCELLATION = "pending_cancellation"
    UNSUBSCRIBED = "unsubscribed"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SubscriptionStatus":
        """Read a stored value; a missing or unknown value means unsubscribed."""
        if value is None:
            return cls.UNSUBSCRIBED
        try:
            return cls(value)
        except ValueError:
            return cls.UNSUBSCRIBED


def derive_status(stripe_status: Optional[str], cancel_at_period_end: bool) -> SubscriptionStatus:
    """
    Map a Stripe subscription's fields onto the stored status.

    Args:
        stripe_status: Stripe subscription status (active, past_due, canceled, ...)
        cancel_at_period_end: Whether Stripe will end the subscription at period end

    Returns:
        ``pending_cancellation`` for an active subscription flagged to cancel,
        ``subscribed`` for any other active subscription, ``unsubscribed`` otherwise.
    """
    if stripe_status != "active":
        return SubscriptionStatus.UNSUBSCRIBED
    if cancel_at_period_end:
        return SubscriptionStatus.PENDING_CANCELLATION
    return SubscriptionStatus.SUBSCRIBED
