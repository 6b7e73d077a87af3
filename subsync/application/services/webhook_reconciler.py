"""Applies Stripe webhook events to the subscription state store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from ...domain.exceptions import SignatureVerificationFailed
from ...domain.models import SubscriptionStatus, derive_status
from ...domain.ports.persistence import SubscriptionStateStore
from ...services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)

_Resolution = Tuple[Optional[str], Optional[SubscriptionStatus]]


@dataclass(slots=True, frozen=True)
class WebhookOutcome:
    """What a delivered event did to the store.

    ``status`` is ``None`` when the event was acknowledged without a write
    (unhandled type, or no subject could be matched).
    """

    event_id: Optional[str]
    event_type: str
    subject: Optional[str] = None
    status: Optional[SubscriptionStatus] = None

    @property
    def applied(self) -> bool:
        return self.status is not None


class WebhookReconciler:
    """Authenticates Stripe events and writes the status they imply.

    Every branch ends in an unconditional ``set_status``, so redelivering an
    event leaves the store as a single delivery would. Events are applied in
    the order they arrive; two events for the same subject delivered out of
    order leave the later-processed one in place until Stripe sends another.
    """

    def __init__(self, stripe_gateway: StripeGateway, store: SubscriptionStateStore) -> None:
        self._stripe = stripe_gateway
        self._store = store
        self._handlers: Dict[str, Callable[[Dict[str, Any]], _Resolution]] = {
            "checkout.session.completed": self._checkout_completed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
        }

    def handle(self, payload: bytes, sig_header: Optional[str]) -> WebhookOutcome:
        """
        Verify and apply one webhook delivery.

        Args:
            payload: Raw request body
            sig_header: ``Stripe-Signature`` header value

        Returns:
            WebhookOutcome describing the write, if any

        Raises:
            SignatureVerificationFailed: If the header is missing or does not match
            InvalidWebhookPayload: If the authenticated body is not a Stripe event
        """
        if not sig_header:
            raise SignatureVerificationFailed("No signature")

        event = self._stripe.construct_event(payload, sig_header)
        event_id = event.get("id")
        event_type = event["type"]
        data_object = event["data"]["object"]

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled event type: %s (%s)", event_type, event_id)
            return WebhookOutcome(event_id=event_id, event_type=event_type)

        subject, status = handler(data_object)
        if subject is None or status is None:
            logger.info("Event %s (%s) matched no subject; acknowledged", event_id, event_type)
            return WebhookOutcome(event_id=event_id, event_type=event_type)

        self._store.set_status(subject, status)
        logger.info(
            "Event %s (%s) set subject %s to %s",
            event_id,
            event_type,
            subject,
            status.value,
        )
        return WebhookOutcome(event_id=event_id, event_type=event_type, subject=subject, status=status)

    def _checkout_completed(self, session: Dict[str, Any]) -> _Resolution:
        subject = session.get("client_reference_id")
        if not subject:
            return None, None
        return subject, SubscriptionStatus.SUBSCRIBED

    def _subscription_updated(self, subscription: Dict[str, Any]) -> _Resolution:
        subject = self._subject_for(subscription)
        if subject is None:
            return None, None
        status = derive_status(
            subscription.get("status"),
            bool(subscription.get("cancel_at_period_end", False)),
        )
        return subject, status

    def _subscription_deleted(self, subscription: Dict[str, Any]) -> _Resolution:
        subject = self._subject_for(subscription)
        if subject is None:
            return None, None
        return subject, SubscriptionStatus.UNSUBSCRIBED

    def _subject_for(self, subscription: Dict[str, Any]) -> Optional[str]:
        customer = subscription.get("customer")
        if isinstance(customer, dict):
            customer = customer.get("id")
        if not customer:
            return None
        return self._store.find_subject_by_customer_id(customer)
