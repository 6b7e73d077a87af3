from __future__ import annotations

from typing import Optional, Protocol

from ..models import SubscriptionStatus


class SubscriptionStatusRepository(Protocol):
    """Point reads and writes of the status field stored per subject."""

    def get_status(self, subject: str) -> SubscriptionStatus:
        """Return the stored status, ``UNSUBSCRIBED`` when no record exists."""
        ...

    def set_status(self, subject: str, status: SubscriptionStatus) -> None:
        """Unconditionally overwrite the status; creates the record if needed."""
        ...


class CustomerMappingRepository(Protocol):
    """Subject to Stripe customer id mapping, plus its reverse index."""

    def get_customer_id(self, subject: str) -> Optional[str]:
        ...

    def set_customer_id(self, subject: str, customer_id: str) -> None:
        ...

    def find_subject_by_customer_id(self, customer_id: str) -> Optional[str]:
        """
        Reverse lookup over the stored mappings.

        At most one subject is expected per customer id. When several records
        reference the same customer, the first one wins and the call still
        succeeds.
        """
        ...


class SubscriptionStateStore(
    SubscriptionStatusRepository,
    CustomerMappingRepository,
    Protocol,
):
    """Composite store shared by the request handlers and the webhook reconciler.

    Every write is a plain "set" with no locking across calls. Handlers that read
    and then write may interleave; the last write wins.
    """

