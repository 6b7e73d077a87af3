"""Stripe payment integration service."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import stripe

from ..domain.exceptions import InvalidWebhookPayload, SignatureVerificationFailed, UpstreamError

logger = logging.getLogger(__name__)


class StripeGateway:
    """Typed calls to the Stripe customer, subscription, checkout and webhook APIs.

    Every ``stripe.StripeError`` is re-raised as ``UpstreamError``; nothing here
    retries.
    """

    def __init__(
        self,
        secret_key: Optional[str],
        webhook_secret: str,
        webhook_tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
    ) -> None:
        self._webhook_secret = webhook_secret
        self._webhook_tolerance = webhook_tolerance
        stripe.api_key = secret_key or None
        stripe.max_network_retries = 0

    def is_configured(self) -> bool:
        return bool(stripe.api_key)

    # ============ CUSTOMERS ============

    def find_customer_by_email(self, email: str) -> Optional[str]:
        """Return the id of the first customer with this email, if any."""
        try:
            customers = stripe.Customer.list(email=email, limit=1)
        except stripe.StripeError as exc:
            raise self._upstream("customer lookup", exc) from exc
        if customers.data:
            return customers.data[0].id
        return None

    def create_customer(self, email: str, subject: str) -> str:
        try:
            customer = stripe.Customer.create(email=email, metadata={"subject": subject})
        except stripe.StripeError as exc:
            raise self._upstream("customer creation", exc) from exc
        logger.info("Created Stripe customer %s for subject %s", customer.id, subject)
        return customer.id

    # ============ CHECKOUT ============

    def create_checkout_session(
        self,
        customer_id: str,
        subject: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
    ) -> str:
        """
        Open a subscription-mode Checkout session for one unit of ``price_id``.

        The subject is stored as ``client_reference_id`` so the completion
        webhook can be attributed without a customer lookup.
        """
        try:
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                mode="subscription",
                customer=customer_id,
                line_items=[
                    {
                        "price": price_id,
                        "quantity": 1,
                    }
                ],
                success_url=success_url,
                cancel_url=cancel_url,
                client_reference_id=subject,
            )
        except stripe.StripeError as exc:
            raise self._upstream("checkout session creation", exc) from exc
        return session.id

    # ============ SUBSCRIPTIONS ============

    def find_active_subscription_id(self, customer_id: str) -> Optional[str]:
        """
        Return the customer's active subscription id.

        Only the first result is considered; a customer is assumed to hold at
        most one active subscription at a time.
        """
        try:
            subscriptions = stripe.Subscription.list(
                customer=customer_id,
                status="active",
                limit=1,
            )
        except stripe.StripeError as exc:
            raise self._upstream("subscription lookup", exc) from exc
        if subscriptions.data:
            return subscriptions.data[0].id
        return None

    def set_cancel_at_period_end(self, subscription_id: str, cancel_at_period_end: bool) -> None:
        try:
            stripe.Subscription.modify(
                subscription_id,
                cancel_at_period_end=cancel_at_period_end,
            )
        except stripe.StripeError as exc:
            raise self._upstream("subscription update", exc) from exc
        logger.info(
            "Stripe subscription %s updated with cancel_at_period_end=%s",
            subscription_id,
            cancel_at_period_end,
        )

    # ============ WEBHOOK ============

    def construct_event(self, payload: bytes, sig_header: str) -> Dict[str, Any]:
        """
        Authenticate a webhook body and decode it into an event dict.

        Args:
            payload: Raw request body, exactly as received
            sig_header: Value of the ``Stripe-Signature`` header

        Returns:
            The decoded event (``id``, ``type``, ``data.object``, ...)

        Raises:
            SignatureVerificationFailed: If the signature does not match the body
            InvalidWebhookPayload: If the authenticated body is not a Stripe event
        """
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SignatureVerificationFailed("Payload is not valid UTF-8") from exc

        try:
            stripe.WebhookSignature.verify_header(
                body,
                sig_header,
                self._webhook_secret,
                self._webhook_tolerance,
            )
        except stripe.SignatureVerificationError as exc:
            raise SignatureVerificationFailed(str(exc)) from exc

        try:
            event = json.loads(body)
        except ValueError as exc:
            raise InvalidWebhookPayload("Webhook body is not valid JSON") from exc

        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise InvalidWebhookPayload("Webhook body is not a Stripe event")
        data = event.get("data")
        if not isinstance(data, dict) or not isinstance(data.get("object"), dict):
            raise InvalidWebhookPayload("Webhook event has no data object")
        return event

    @staticmethod
    def _upstream(operation: str, exc: "stripe.StripeError") -> UpstreamError:
        logger.error(
            "Stripe %s failed: %s (request id %s)",
            operation,
            exc.__class__.__name__,
            getattr(exc, "request_id", None),
        )
        return UpstreamError(operation, getattr(exc, "user_message", None) or exc.__class__.__name__)
